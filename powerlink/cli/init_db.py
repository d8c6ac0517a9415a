"""CLI entry point for initializing the PowerLink database.

Usage:
    python -m powerlink.cli.init_db
    powerlink-init-db

Exit Codes:
    0 - Success: schema present, pool provisioned
    1 - Failure: error encountered

Logging:
    INFO level logs to both stdout and logs/server.log
"""

import logging
import sys

from powerlink.errors import PowerlinkError
from powerlink.services.logging import setup_server_logging


def main() -> int:
    """
    Create tables, provision the C001-C160 pool and the default admin.

    Returns:
        Exit code: 0 for success, 1 for failure
    """
    setup_server_logging()
    logger = logging.getLogger("powerlink.init_db")

    from powerlink.services import SessionLocal, engine
    from powerlink.services.seeding import DatabaseInitializer

    try:
        logger.info("Initializing database...")
        DatabaseInitializer.create_schema(engine)

        db = SessionLocal()
        try:
            DatabaseInitializer(db, logger).run()
        finally:
            db.close()
        return 0
    except PowerlinkError as e:
        logger.error("Initialization failed: %s", e.message)
        return 1
    except KeyboardInterrupt:
        logger.warning("Initialization interrupted by user")
        return 1


if __name__ == "__main__":
    sys.exit(main())
