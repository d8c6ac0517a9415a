"""Storage boundary for the account lifecycle and billing engine.

Wraps a SQLAlchemy session and exposes the reads and writes the core needs.
Driver errors are translated at this boundary:

- IntegrityError (unique constraint on a natural key) -> ConflictError
- OperationalError / InterfaceError, pool timeouts and disconnects,
  invalidated connections -> TransientStorageError

so that callers can tell "not there" (None / NotFoundError) from "store is
down, retry later".
"""

import logging
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterator

from sqlalchemy import case, desc, func, select, update
from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.orm import Session

from powerlink.errors import ConflictError, TransientStorageError
from powerlink.models import (
    AccountNumber,
    Admin,
    Application,
    ApplicationStatus,
    Bill,
    BillStatus,
    Consumer,
    MeterReading,
    Payment,
)

logger = logging.getLogger(__name__)


class Storage:
    """SQLAlchemy-backed storage used by the core services."""

    def __init__(self, db_session: Session):
        self.db = db_session

    @contextmanager
    def _guard(self, operation: str, conflict_message: str | None = None) -> Iterator[None]:
        """Translate driver errors raised while running `operation`."""
        try:
            yield
        except IntegrityError as e:
            self._safe_rollback(operation)
            logger.warning("Storage conflict during %s: %s", operation, e.orig)
            raise ConflictError(conflict_message or f"Duplicate record rejected during {operation}") from e
        except (OperationalError, InterfaceError, PoolTimeoutError, DisconnectionError) as e:
            self._safe_rollback(operation)
            logger.error("Storage unavailable during %s", operation, exc_info=True)
            raise TransientStorageError() from e
        except DBAPIError as e:
            if e.connection_invalidated:
                self._safe_rollback(operation)
                logger.error("Storage connection lost during %s", operation, exc_info=True)
                raise TransientStorageError() from e
            raise

    def _safe_rollback(self, operation: str) -> None:
        try:
            self.db.rollback()
        except SQLAlchemyError:
            logger.error("Rollback failed after %s", operation, exc_info=True)

    def commit(self) -> None:
        with self._guard("commit"):
            self.db.commit()

    def rollback(self) -> None:
        self._safe_rollback("rollback")

    # ------------------------------------------------------------------
    # Account number pool
    # ------------------------------------------------------------------

    def read_account_pool_entry(self, account_number: str) -> AccountNumber | None:
        with self._guard("read_account_pool_entry"):
            return self.db.execute(
                select(AccountNumber).where(AccountNumber.account_number == account_number)
            ).scalar_one_or_none()

    def insert_pool_entries(self, account_numbers: list[str]) -> int:
        """Insert pool entries that are not there yet; return how many were added."""
        with self._guard("insert_pool_entries"):
            existing = set(
                self.db.execute(
                    select(AccountNumber.account_number).where(
                        AccountNumber.account_number.in_(account_numbers)
                    )
                ).scalars()
            )
            missing = [number for number in account_numbers if number not in existing]
            for number in missing:
                self.db.add(AccountNumber(account_number=number, is_assigned=False))
            self.db.flush()
            return len(missing)

    def mark_account_assigned(
        self, account_number: str, consumer_id: int | None, assigned_at: datetime
    ) -> bool:
        """Flip an unassigned entry to assigned. False if it was already assigned."""
        with self._guard("mark_account_assigned"):
            result = self.db.execute(
                update(AccountNumber)
                .where(
                    AccountNumber.account_number == account_number,
                    AccountNumber.is_assigned.is_(False),
                )
                .values(is_assigned=True, assigned_to=consumer_id, assigned_at=assigned_at)
                .execution_options(synchronize_session="fetch")
            )
            return result.rowcount == 1

    def mark_account_released(self, account_number: str) -> bool:
        with self._guard("mark_account_released"):
            result = self.db.execute(
                update(AccountNumber)
                .where(
                    AccountNumber.account_number == account_number,
                    AccountNumber.is_assigned.is_(True),
                )
                .values(is_assigned=False, assigned_to=None, assigned_at=None)
                .execution_options(synchronize_session="fetch")
            )
            return result.rowcount == 1

    def list_unassigned_account_numbers(self, limit: int) -> list[str]:
        with self._guard("list_unassigned_account_numbers"):
            return list(
                self.db.execute(
                    select(AccountNumber.account_number)
                    .where(AccountNumber.is_assigned.is_(False))
                    .order_by(AccountNumber.account_number)
                    .limit(limit)
                ).scalars()
            )

    # ------------------------------------------------------------------
    # Applications
    # ------------------------------------------------------------------

    def read_application_by_account_number(self, account_number: str) -> Application | None:
        """Application linked to an account number; an approved one wins over others."""
        with self._guard("read_application_by_account_number"):
            return self.db.execute(
                select(Application)
                .where(Application.account_number == account_number)
                .order_by(
                    case((Application.status == ApplicationStatus.APPROVED, 0), else_=1),
                    desc(Application.submitted_at),
                )
                .limit(1)
            ).scalar_one_or_none()

    def read_application(self, application_id: str) -> Application | None:
        with self._guard("read_application"):
            return self.db.execute(
                select(Application).where(Application.application_id == application_id)
            ).scalar_one_or_none()

    def list_applications(self, status: ApplicationStatus | None = None) -> list[Application]:
        with self._guard("list_applications"):
            stmt = select(Application).order_by(Application.submitted_at)
            if status is not None:
                stmt = stmt.where(Application.status == status)
            return list(self.db.execute(stmt).scalars())

    def insert_application(self, fields: dict[str, Any]) -> Application:
        """Insert an application and derive its public id (APP + 6 digits) from the row id."""
        with self._guard("insert_application", "Application already exists"):
            application = Application(**fields)
            self.db.add(application)
            self.db.flush()
            application.application_id = f"APP{application.id:06d}"
            self.db.flush()
            return application

    def update_application_status(
        self,
        application_id: str,
        status: ApplicationStatus,
        reviewer: str,
        reviewed_at: datetime,
    ) -> bool:
        """Move a pending application to `status`. False if it was no longer pending."""
        with self._guard(
            "update_application_status",
            "Account number is already held by another approved application",
        ):
            result = self.db.execute(
                update(Application)
                .where(
                    Application.application_id == application_id,
                    Application.status == ApplicationStatus.PENDING,
                )
                .values(status=status, reviewed_by=reviewer, reviewed_at=reviewed_at)
                .execution_options(synchronize_session="fetch")
            )
            self.db.flush()
            return result.rowcount == 1

    def update_application_account_number(self, application_id: str, account_number: str) -> None:
        with self._guard("update_application_account_number"):
            self.db.execute(
                update(Application)
                .where(Application.application_id == application_id)
                .values(account_number=account_number)
                .execution_options(synchronize_session="fetch")
            )
            self.db.flush()

    # ------------------------------------------------------------------
    # Consumers and admins
    # ------------------------------------------------------------------

    def insert_consumer(self, fields: dict[str, Any]) -> Consumer:
        with self._guard("insert_consumer", "Consumer with this account number, email or meter already exists"):
            consumer = Consumer(**fields)
            self.db.add(consumer)
            self.db.flush()
            return consumer

    def read_consumer(self, consumer_id: int) -> Consumer | None:
        with self._guard("read_consumer"):
            return self.db.execute(
                select(Consumer).where(Consumer.id == consumer_id)
            ).scalar_one_or_none()

    def read_consumer_by_account_number(self, account_number: str) -> Consumer | None:
        with self._guard("read_consumer_by_account_number"):
            return self.db.execute(
                select(Consumer).where(Consumer.account_number == account_number)
            ).scalar_one_or_none()

    def read_consumer_by_email(self, email: str) -> Consumer | None:
        with self._guard("read_consumer_by_email"):
            return self.db.execute(
                select(Consumer).where(func.lower(Consumer.email) == email.lower())
            ).scalar_one_or_none()

    def delete_consumer(self, consumer: Consumer) -> None:
        with self._guard("delete_consumer"):
            self.db.delete(consumer)
            self.db.flush()

    def read_admin_by_username(self, username: str) -> Admin | None:
        with self._guard("read_admin_by_username"):
            return self.db.execute(
                select(Admin).where(Admin.username == username)
            ).scalar_one_or_none()

    def read_admin_by_email(self, email: str) -> Admin | None:
        with self._guard("read_admin_by_email"):
            return self.db.execute(
                select(Admin).where(func.lower(Admin.email) == email.lower())
            ).scalar_one_or_none()

    def insert_admin(self, fields: dict[str, Any]) -> Admin:
        with self._guard("insert_admin", "Admin username already exists"):
            admin = Admin(**fields)
            self.db.add(admin)
            self.db.flush()
            return admin

    # ------------------------------------------------------------------
    # Meter readings, bills and payments
    # ------------------------------------------------------------------

    def read_latest_meter_readings(self, consumer_id: int, limit: int = 2) -> list[MeterReading]:
        """Most recent readings first."""
        with self._guard("read_latest_meter_readings"):
            return list(
                self.db.execute(
                    select(MeterReading)
                    .where(MeterReading.consumer_id == consumer_id)
                    .order_by(desc(MeterReading.reading_date))
                    .limit(limit)
                ).scalars()
            )

    def read_previous_meter_reading(self, consumer_id: int, before: date) -> MeterReading | None:
        with self._guard("read_previous_meter_reading"):
            return self.db.execute(
                select(MeterReading)
                .where(
                    MeterReading.consumer_id == consumer_id,
                    MeterReading.reading_date < before,
                )
                .order_by(desc(MeterReading.reading_date))
                .limit(1)
            ).scalar_one_or_none()

    def read_next_meter_reading(self, consumer_id: int, after: date) -> MeterReading | None:
        with self._guard("read_next_meter_reading"):
            return self.db.execute(
                select(MeterReading)
                .where(
                    MeterReading.consumer_id == consumer_id,
                    MeterReading.reading_date > after,
                )
                .order_by(MeterReading.reading_date)
                .limit(1)
            ).scalar_one_or_none()

    def insert_meter_reading(self, consumer_id: int, reading_date: date, value: Decimal) -> MeterReading:
        with self._guard(
            "insert_meter_reading",
            f"A meter reading for {reading_date.isoformat()} already exists",
        ):
            reading = MeterReading(
                consumer_id=consumer_id,
                reading_date=reading_date,
                meter_reading=value,
            )
            self.db.add(reading)
            self.db.flush()
            return reading

    def insert_bill(self, fields: dict[str, Any]) -> Bill:
        with self._guard("insert_bill", "A bill for this billing period already exists"):
            bill = Bill(**fields)
            self.db.add(bill)
            self.db.flush()
            return bill

    def read_bill(self, bill_id: int) -> Bill | None:
        with self._guard("read_bill"):
            return self.db.execute(select(Bill).where(Bill.id == bill_id)).scalar_one_or_none()

    def list_unpaid_bills(self, consumer_id: int) -> list[Bill]:
        """Unpaid bills, oldest due date first."""
        with self._guard("list_unpaid_bills"):
            return list(
                self.db.execute(
                    select(Bill)
                    .where(Bill.consumer_id == consumer_id, Bill.status != BillStatus.PAID)
                    .order_by(Bill.due_date)
                ).scalars()
            )

    def mark_bill_paid(self, bill_id: int, paid_at: datetime) -> bool:
        """Flip an unpaid bill to paid. False if it was already paid."""
        with self._guard("mark_bill_paid"):
            result = self.db.execute(
                update(Bill)
                .where(Bill.id == bill_id, Bill.status != BillStatus.PAID)
                .values(status=BillStatus.PAID, paid_at=paid_at)
                .execution_options(synchronize_session="fetch")
            )
            return result.rowcount == 1

    def insert_payment(self, fields: dict[str, Any]) -> Payment:
        with self._guard("insert_payment", "A payment for this bill already exists"):
            payment = Payment(**fields)
            self.db.add(payment)
            self.db.flush()
            return payment

    def flush(self) -> None:
        with self._guard("flush"):
            self.db.flush()


__all__ = ["Storage"]
