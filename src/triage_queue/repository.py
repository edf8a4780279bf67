import logging
from contextlib import contextmanager
from typing import Callable, List, Optional, Tuple, TypeVar

from sqlalchemy import func, select, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from . import models
from .errors import ConcurrencyConflictError, NotFoundError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Written only under the hospital queue lock
QUEUE_FIELDS = frozenset({"status", "queue_position", "hospital_id"})


class TriageRepository:
    """Persistence collaborator for the triage queue, backed by one SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    # --- lookups ---
    def find_user(self, user_id: int) -> Optional[models.User]:
        return self.db.get(models.User, user_id)

    def find_hospital(self, hospital_id: int) -> Optional[models.Hospital]:
        return self.db.get(models.Hospital, hospital_id)

    def find_doctor(self, doctor_id: int) -> Optional[models.Doctor]:
        return self.db.get(models.Doctor, doctor_id)

    def find_receipt(self, receipt_id: int, fresh: bool = False) -> Optional[models.Receipt]:
        return self.db.get(models.Receipt, receipt_id, populate_existing=fresh)

    def find_appointment(self, appointment_id: int) -> Optional[models.Appointment]:
        return self.db.get(models.Appointment, appointment_id)

    def find_alert(self, alert_id: int) -> Optional[models.EmergencyAlert]:
        return self.db.get(models.EmergencyAlert, alert_id)

    def require(self, entity: str, obj: Optional[T], entity_id) -> T:
        if obj is None:
            raise NotFoundError(entity, entity_id)
        return obj

    def find_receipts_by_hospital_and_status(
        self,
        hospital_id: int,
        status: models.ReceiptStatus,
        limit: Optional[int] = None,
    ) -> List[models.Receipt]:
        stmt = (
            select(models.Receipt)
            .where(models.Receipt.hospital_id == hospital_id, models.Receipt.status == status)
            .order_by(models.Receipt.queue_position.asc(), models.Receipt.id.asc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        # Positions and severities held by this session may predate the queue lock
        return list(self.db.scalars(stmt.execution_options(populate_existing=True)))

    def find_receipts_by_user(self, user_id: int) -> List[models.Receipt]:
        stmt = (
            select(models.Receipt)
            .where(models.Receipt.user_id == user_id)
            .order_by(models.Receipt.uploaded_at.desc(), models.Receipt.id.desc())
        )
        return list(self.db.scalars(stmt))

    def find_appointments(self, hospital_id: int, status: Optional[models.AppointmentStatus] = None):
        stmt = select(models.Appointment).where(models.Appointment.hospital_id == hospital_id)
        if status is not None:
            stmt = stmt.where(models.Appointment.status == status)
        return list(self.db.scalars(stmt.order_by(models.Appointment.preferred_date.asc())))

    def find_alerts(self, hospital_id: int, status: Optional[models.EmergencyAlertStatus] = None):
        stmt = select(models.EmergencyAlert).where(models.EmergencyAlert.hospital_id == hospital_id)
        if status is not None:
            stmt = stmt.where(models.EmergencyAlert.status == status)
        return list(
            self.db.scalars(stmt.order_by(models.EmergencyAlert.created_at.desc(), models.EmergencyAlert.id.desc()))
        )

    def find_hospitals(self, state: Optional[str] = None) -> List[models.Hospital]:
        stmt = select(models.Hospital)
        if state is not None:
            stmt = stmt.where(models.Hospital.state == state)
        return list(self.db.scalars(stmt.order_by(models.Hospital.name.asc(), models.Hospital.id.asc())))

    def find_doctors_with_queued_counts(self, hospital_id: int) -> List[Tuple[models.Doctor, int]]:
        """Doctors of a hospital with how many QUEUED receipts are assigned to each, busiest first."""
        queued = (
            select(models.Receipt.doctor_id, func.count(models.Receipt.id).label("queued"))
            .where(
                models.Receipt.hospital_id == hospital_id,
                models.Receipt.status == models.ReceiptStatus.QUEUED,
                models.Receipt.doctor_id.is_not(None),
            )
            .group_by(models.Receipt.doctor_id)
            .subquery()
        )
        queued_count = func.coalesce(queued.c.queued, 0)
        stmt = (
            select(models.Doctor, queued_count)
            .outerjoin(queued, queued.c.doctor_id == models.Doctor.id)
            .where(models.Doctor.hospital_id == hospital_id)
            .order_by(queued_count.desc(), models.Doctor.specialty.asc(), models.Doctor.id.asc())
        )
        return [(doctor, int(count)) for doctor, count in self.db.execute(stmt).all()]

    def find_reminder(self, reminder_id: int) -> Optional[models.MedicineReminder]:
        return self.db.get(models.MedicineReminder, reminder_id)

    def find_reminders_by_user(self, user_id: int, include_inactive: bool = False) -> List[models.MedicineReminder]:
        stmt = select(models.MedicineReminder).where(models.MedicineReminder.user_id == user_id)
        if not include_inactive:
            stmt = stmt.where(models.MedicineReminder.is_active.is_(True))
        return list(
            self.db.scalars(
                stmt.order_by(models.MedicineReminder.created_at.desc(), models.MedicineReminder.id.desc())
            )
        )

    def count_by_status(self, model, hospital_id: int) -> dict:
        rows = self.db.execute(
            select(model.status, func.count(model.id))
            .where(model.hospital_id == hospital_id)
            .group_by(model.status)
        ).all()
        return {status.value: count for status, count in rows}

    # --- writes ---
    def add(self, obj: T) -> T:
        self.db.add(obj)
        self.db.flush()
        return obj

    def delete(self, obj) -> None:
        self.db.delete(obj)
        self.db.flush()

    def update_receipt(self, receipt_id: int, **fields) -> models.Receipt:
        """Update descriptive receipt fields. Queue fields only change through the manager."""
        locked = QUEUE_FIELDS.intersection(fields)
        if locked:
            raise ValueError(f"Queue fields cannot be updated directly: {sorted(locked)}")
        receipt = self.require("Receipt", self.find_receipt(receipt_id), receipt_id)
        for key, value in fields.items():
            setattr(receipt, key, value)
        self.db.flush()
        return receipt

    # --- queue positions ---
    def lock_hospital_queue(self, hospital_id: int) -> None:
        """Serialize queue mutations for one hospital until the transaction ends.

        The UPDATE takes a row lock on PostgreSQL and the write lock on SQLite,
        so it must be the first statement of the transaction that reads positions.
        """
        result = self.db.execute(
            update(models.Hospital)
            .where(models.Hospital.id == hospital_id)
            .values(queue_version=models.Hospital.queue_version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError("Hospital", hospital_id)

    def max_queue_position(self, hospital_id: int) -> int:
        value = self.db.scalar(
            select(func.max(models.Receipt.queue_position)).where(
                models.Receipt.hospital_id == hospital_id,
                models.Receipt.status == models.ReceiptStatus.QUEUED,
            )
        )
        return int(value or 0)

    def shift_queue_positions(self, hospital_id: int, from_position: int, delta: int) -> int:
        """Add ``delta`` to every QUEUED position >= ``from_position``; returns rows touched."""
        result = self.db.execute(
            update(models.Receipt)
            .where(
                models.Receipt.hospital_id == hospital_id,
                models.Receipt.status == models.ReceiptStatus.QUEUED,
                models.Receipt.queue_position >= from_position,
            )
            .values(queue_position=models.Receipt.queue_position + delta)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount

    # --- transactions ---
    @contextmanager
    def transaction(self):
        try:
            yield self.db
            self.db.commit()
        except OperationalError as exc:
            self.db.rollback()
            logger.warning("Queue transaction aborted by the database: %s", exc.orig)
            raise ConcurrencyConflictError("Queue is busy, please retry") from exc
        except Exception:
            self.db.rollback()
            raise

    def run_in_transaction(self, fn: Callable[[], T]) -> T:
        with self.transaction():
            return fn()
