"""Run the PowerLink API server with uvicorn."""

import logging

import uvicorn
from dotenv import load_dotenv

from powerlink.config import get_settings
from powerlink.services.logging import setup_server_logging

logger = logging.getLogger(__name__)


def main() -> None:
    load_dotenv()
    setup_server_logging()
    settings = get_settings()
    logger.info("Starting PowerLink API (billing policy: %s)", settings.billing_status_policy.value)
    uvicorn.run("powerlink.api.app:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
