"""Audit trail for application decisions, provisioning, readings, bills and payments."""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from sqlalchemy.orm import Session

from powerlink.models.audit_log import AuditLog


def _to_json(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    return value


class AuditService:
    """Adds audit rows to the caller's session; the caller commits."""

    @staticmethod
    def log(
        db: Session,
        entity_type: str,
        entity_id: int,
        action: str,
        actor: str | None = None,
        changes: dict | None = None,
    ) -> AuditLog:
        """Record `action` on an entity.

        Decimal, date and enum values in `changes` are stored as strings so
        the JSON column can hold them.
        """
        audit = AuditLog(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            actor=actor,
            changes={key: _to_json(value) for key, value in changes.items()} if changes else None,
        )
        db.add(audit)
        return audit


__all__ = ["AuditService"]
