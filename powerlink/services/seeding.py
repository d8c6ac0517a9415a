"""Database initialization: schema, account number pool and default admin."""

import logging
from dataclasses import dataclass

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from powerlink.config import Settings, get_settings
from powerlink.models import Base
from powerlink.services.account_registry import AccountRegistry
from powerlink.services.security import get_password_hash
from powerlink.services.storage import Storage


@dataclass
class SeedResult:
    """Outcome of an initialization run."""

    pool_entries_created: int
    admin_created: bool


class DatabaseInitializer:
    """Idempotent setup of a fresh or partially initialized database."""

    def __init__(self, db: Session, logger: logging.Logger, settings: Settings | None = None):
        self.storage = Storage(db)
        self.logger = logger
        self.settings = settings or get_settings()

    @staticmethod
    def create_schema(engine: Engine) -> None:
        """Create missing tables (development and tests; production uses Alembic)."""
        Base.metadata.create_all(bind=engine)

    def ensure_admin(self) -> bool:
        """Create the default admin when configured and absent."""
        if not self.settings.admin_password:
            self.logger.warning("POWERLINK_ADMIN_PASSWORD not set, skipping default admin")
            return False
        if self.storage.read_admin_by_username(self.settings.admin_username) is not None:
            return False

        self.storage.insert_admin(
            {
                "username": self.settings.admin_username,
                "password_hash": get_password_hash(self.settings.admin_password),
                "email": self.settings.admin_email,
                "full_name": "System Administrator",
                "role": "admin",
            }
        )
        self.storage.commit()
        self.logger.info("Default admin %s created", self.settings.admin_username)
        return True

    def run(self) -> SeedResult:
        created = AccountRegistry(self.storage, self.settings).provision_pool()
        admin_created = self.ensure_admin()
        self.logger.info(
            "Initialization complete: %d account numbers created, admin created=%s",
            created,
            admin_created,
        )
        return SeedResult(pool_entries_created=created, admin_created=admin_created)


__all__ = ["DatabaseInitializer", "SeedResult"]
