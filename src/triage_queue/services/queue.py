"""Per-hospital triage queue and the status workflows around it.

Queue positions for a hospital are kept dense: the QUEUED receipts of a
hospital always hold positions ``1..n``. Every mutation that reads or writes
positions locks the hospital row first (see ``TriageRepository.lock_hospital_queue``)
so concurrent requests against the same hospital commit one at a time.
"""

import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, TypeVar

from sqlalchemy.orm import Session

from .. import models
from ..config import settings
from ..errors import (
    ConcurrencyConflictError,
    DoctorUnavailableError,
    InvalidStateError,
    InvalidTransitionError,
)
from ..models import AppointmentStatus, EmergencyAlertStatus, ReceiptStatus, utcnow
from ..repository import TriageRepository
from .state_machine import (
    ALERT_TRANSITIONS,
    APPOINTMENT_TRANSITIONS,
    check_transition,
    receipt_transitions,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

QUEUE_POLICIES = ("fifo", "severity")


def retry_on_conflict(fn: Callable[[], T], retries: Optional[int] = None, backoff: float = 0.05) -> T:
    """Run ``fn`` again when it loses a race for the queue lock."""
    retries = max(settings.conflict_retries if retries is None else retries, 0)
    for attempt in range(retries + 1):
        try:
            return fn()
        except ConcurrencyConflictError:
            if attempt == retries:
                raise
            logger.warning("Queue conflict, retrying (attempt %d of %d)", attempt + 1, retries)
            time.sleep(backoff * (attempt + 1))
    raise RuntimeError("unreachable")


class TriageQueueManager:
    def __init__(
        self,
        db: Session,
        queue_policy: Optional[str] = None,
        allow_direct_completion: Optional[bool] = None,
    ):
        self.repo = TriageRepository(db)
        self.queue_policy = queue_policy or settings.queue_policy
        if self.queue_policy not in QUEUE_POLICIES:
            raise ValueError(f"Unknown queue policy: {self.queue_policy}")
        if allow_direct_completion is None:
            allow_direct_completion = settings.allow_direct_completion
        self.receipt_transitions = receipt_transitions(allow_direct_completion)

    # ------------------------------------------------------------------
    # Receipts
    # ------------------------------------------------------------------
    def submit_receipt(
        self,
        user_id: int,
        image_url: str,
        hospital_id: Optional[int] = None,
        condition: Optional[str] = None,
        severity: Optional[int] = None,
        ai_analysis: Optional[str] = None,
    ) -> models.Receipt:
        with self.repo.transaction():
            self.repo.require("User", self.repo.find_user(user_id), user_id)
            if hospital_id is not None:
                self.repo.require("Hospital", self.repo.find_hospital(hospital_id), hospital_id)
            receipt = self.repo.add(
                models.Receipt(
                    user_id=user_id,
                    image_url=image_url,
                    hospital_id=hospital_id,
                    condition=condition,
                    severity=severity,
                    ai_analysis=ai_analysis,
                    status=ReceiptStatus.PENDING,
                )
            )
        logger.info("Receipt %s submitted by user %s", receipt.id, user_id)
        return receipt

    def get_receipt(self, receipt_id: int) -> models.Receipt:
        return self.repo.require("Receipt", self.repo.find_receipt(receipt_id), receipt_id)

    def enqueue(self, receipt_id: int, hospital_id: int) -> int:
        with self.repo.transaction():
            self.repo.lock_hospital_queue(hospital_id)
            receipt = self.repo.require("Receipt", self.repo.find_receipt(receipt_id, fresh=True), receipt_id)
            position = self._place_in_queue(receipt, hospital_id)
        return position

    def dequeue_next(self, hospital_id: int) -> Optional[models.Receipt]:
        self.repo.require("Hospital", self.repo.find_hospital(hospital_id), hospital_id)
        head = self.repo.find_receipts_by_hospital_and_status(hospital_id, ReceiptStatus.QUEUED, limit=1)
        return head[0] if head else None

    def list_queue(self, hospital_id: int) -> List[models.Receipt]:
        self.repo.require("Hospital", self.repo.find_hospital(hospital_id), hospital_id)
        return self.repo.find_receipts_by_hospital_and_status(hospital_id, ReceiptStatus.QUEUED)

    def list_user_receipts(self, user_id: int) -> List[models.Receipt]:
        self.repo.require("User", self.repo.find_user(user_id), user_id)
        return self.repo.find_receipts_by_user(user_id)

    def advance(
        self,
        receipt_id: int,
        new_status: ReceiptStatus,
        doctor_id: Optional[int] = None,
    ) -> models.Receipt:
        new_status = ReceiptStatus(new_status)
        with self.repo.transaction():
            receipt = self._lock_receipt(receipt_id)
            current = receipt.status
            try:
                check_transition("Receipt", self.receipt_transitions, current, new_status)
            except InvalidTransitionError:
                logger.warning("Rejected receipt %s transition %s -> %s", receipt_id, current.value, new_status.value)
                raise

            doctor = self._eligible_doctor(doctor_id, receipt.hospital_id) if doctor_id is not None else None

            if new_status == ReceiptStatus.QUEUED:
                if receipt.hospital_id is None:
                    raise InvalidStateError(f"Receipt {receipt_id} has no hospital to queue at")
                self._place_in_queue(receipt, receipt.hospital_id)
            elif current == ReceiptStatus.QUEUED:
                self._leave_queue(receipt, new_status)
            else:
                if receipt.processed_at is None:
                    receipt.processed_at = utcnow()
                receipt.status = new_status

            if doctor is not None:
                receipt.doctor_id = doctor.id
            self.repo.db.flush()

        logger.info("Receipt %s moved %s -> %s", receipt_id, current.value, new_status.value)
        return receipt

    def _lock_receipt(self, receipt_id: int) -> models.Receipt:
        """Load a receipt with its hospital's queue locked, re-reading it under the lock."""
        receipt = self.repo.require("Receipt", self.repo.find_receipt(receipt_id), receipt_id)
        locked = None
        while receipt.hospital_id is not None and receipt.hospital_id != locked:
            locked = receipt.hospital_id
            self.repo.lock_hospital_queue(locked)
            receipt = self.repo.require("Receipt", self.repo.find_receipt(receipt_id, fresh=True), receipt_id)
        return receipt

    def _place_in_queue(self, receipt: models.Receipt, hospital_id: int) -> int:
        # Caller holds the queue lock for hospital_id
        if receipt.status == ReceiptStatus.COMPLETED:
            raise InvalidStateError(f"Receipt {receipt.id} is already completed")
        if receipt.status == ReceiptStatus.QUEUED:
            raise InvalidStateError(f"Receipt {receipt.id} is already queued at position {receipt.queue_position}")

        tail = self.repo.max_queue_position(hospital_id) + 1
        position = tail
        if self.queue_policy == "severity":
            position = self._severity_slot(hospital_id, receipt.severity, tail)
            if position < tail:
                self.repo.shift_queue_positions(hospital_id, position, +1)

        receipt.hospital_id = hospital_id
        receipt.status = ReceiptStatus.QUEUED
        receipt.queue_position = position
        if receipt.processed_at is None:
            receipt.processed_at = utcnow()
        self.repo.db.flush()
        logger.info("Receipt %s queued at hospital %s position %d", receipt.id, hospital_id, position)
        return position

    def _severity_slot(self, hospital_id: int, severity: Optional[int], tail: int) -> int:
        severity = severity or 0
        for item in self.repo.find_receipts_by_hospital_and_status(hospital_id, ReceiptStatus.QUEUED):
            if severity > (item.severity or 0):
                return item.queue_position
        return tail

    def _leave_queue(self, receipt: models.Receipt, new_status: ReceiptStatus) -> None:
        vacated = receipt.queue_position
        receipt.queue_position = None
        receipt.status = new_status
        self.repo.db.flush()
        if vacated is not None:
            shifted = self.repo.shift_queue_positions(receipt.hospital_id, vacated + 1, -1)
            logger.debug("Compacted %d receipts behind position %d at hospital %s", shifted, vacated, receipt.hospital_id)

    def _eligible_doctor(self, doctor_id: int, hospital_id: Optional[int]) -> models.Doctor:
        doctor = self.repo.require("Doctor", self.repo.find_doctor(doctor_id), doctor_id)
        if not doctor.available:
            raise DoctorUnavailableError(f"Doctor {doctor_id} is not available")
        if hospital_id is None or doctor.hospital_id != hospital_id:
            raise DoctorUnavailableError(f"Doctor {doctor_id} does not work at hospital {hospital_id}")
        return doctor

    # ------------------------------------------------------------------
    # Appointments
    # ------------------------------------------------------------------
    def request_appointment(
        self,
        user_id: int,
        hospital_id: int,
        symptoms: str,
        preferred_date: datetime,
        severity: Optional[int] = None,
        ai_analysis: Optional[str] = None,
    ) -> models.Appointment:
        with self.repo.transaction():
            self.repo.require("User", self.repo.find_user(user_id), user_id)
            self.repo.require("Hospital", self.repo.find_hospital(hospital_id), hospital_id)
            appointment = self.repo.add(
                models.Appointment(
                    user_id=user_id,
                    hospital_id=hospital_id,
                    symptoms=symptoms,
                    preferred_date=preferred_date,
                    severity=severity,
                    ai_analysis=ai_analysis,
                    status=AppointmentStatus.PENDING,
                )
            )
        logger.info("Appointment %s requested at hospital %s", appointment.id, hospital_id)
        return appointment

    def confirm_appointment(
        self,
        appointment_id: int,
        scheduled_date: Optional[datetime] = None,
        doctor_id: Optional[int] = None,
    ) -> models.Appointment:
        def apply(appointment: models.Appointment):
            if doctor_id is not None:
                appointment.doctor_id = self._eligible_doctor(doctor_id, appointment.hospital_id).id
            appointment.scheduled_date = scheduled_date or appointment.preferred_date

        return self._move_appointment(appointment_id, AppointmentStatus.CONFIRMED, apply)

    def complete_appointment(self, appointment_id: int) -> models.Appointment:
        return self._move_appointment(appointment_id, AppointmentStatus.COMPLETED)

    def cancel_appointment(self, appointment_id: int) -> models.Appointment:
        return self._move_appointment(appointment_id, AppointmentStatus.CANCELLED)

    def list_appointments(self, hospital_id: int, status: Optional[AppointmentStatus] = None):
        self.repo.require("Hospital", self.repo.find_hospital(hospital_id), hospital_id)
        return self.repo.find_appointments(hospital_id, status)

    def _move_appointment(
        self,
        appointment_id: int,
        target: AppointmentStatus,
        apply: Optional[Callable[[models.Appointment], None]] = None,
    ) -> models.Appointment:
        with self.repo.transaction():
            appointment = self.repo.require(
                "Appointment", self.repo.find_appointment(appointment_id), appointment_id
            )
            current = appointment.status
            check_transition("Appointment", APPOINTMENT_TRANSITIONS, current, target)
            if apply is not None:
                apply(appointment)
            appointment.status = target
            self.repo.db.flush()
        logger.info("Appointment %s moved %s -> %s", appointment_id, current.value, target.value)
        return appointment

    # ------------------------------------------------------------------
    # Emergency alerts
    # ------------------------------------------------------------------
    def raise_alert(
        self,
        user_id: int,
        hospital_id: int,
        patient_info: Dict[str, Any],
        medical_history: Dict[str, Any],
        notes: Optional[str] = None,
    ) -> models.EmergencyAlert:
        with self.repo.transaction():
            self.repo.require("User", self.repo.find_user(user_id), user_id)
            self.repo.require("Hospital", self.repo.find_hospital(hospital_id), hospital_id)
            alert = self.repo.add(
                models.EmergencyAlert(
                    user_id=user_id,
                    hospital_id=hospital_id,
                    patient_info=patient_info,
                    medical_history=medical_history,
                    notes=notes,
                    status=EmergencyAlertStatus.PENDING,
                )
            )
        logger.warning("Emergency alert %s raised at hospital %s", alert.id, hospital_id)
        return alert

    def acknowledge_alert(self, alert_id: int) -> models.EmergencyAlert:
        return self._move_alert(alert_id, EmergencyAlertStatus.ACKNOWLEDGED)

    def respond_to_alert(self, alert_id: int, notes: Optional[str] = None) -> models.EmergencyAlert:
        return self._move_alert(alert_id, EmergencyAlertStatus.RESPONDED, notes)

    def close_alert(self, alert_id: int, notes: Optional[str] = None) -> models.EmergencyAlert:
        return self._move_alert(alert_id, EmergencyAlertStatus.CLOSED, notes)

    def list_alerts(self, hospital_id: int, status: Optional[EmergencyAlertStatus] = None):
        self.repo.require("Hospital", self.repo.find_hospital(hospital_id), hospital_id)
        return self.repo.find_alerts(hospital_id, status)

    def _move_alert(
        self,
        alert_id: int,
        target: EmergencyAlertStatus,
        notes: Optional[str] = None,
    ) -> models.EmergencyAlert:
        with self.repo.transaction():
            alert = self.repo.require("EmergencyAlert", self.repo.find_alert(alert_id), alert_id)
            current = alert.status
            check_transition("EmergencyAlert", ALERT_TRANSITIONS, current, target)
            alert.status = target
            if target == EmergencyAlertStatus.RESPONDED:
                alert.responded_at = utcnow()
            if notes is not None:
                alert.notes = notes
            self.repo.db.flush()
        logger.info("Emergency alert %s moved %s -> %s", alert_id, current.value, target.value)
        return alert

    # ------------------------------------------------------------------
    # Hospitals & doctors
    # ------------------------------------------------------------------
    def register_hospital(
        self,
        name: str,
        city: Optional[str] = None,
        state: Optional[str] = None,
        doctors: Optional[List[Dict[str, Any]]] = None,
    ) -> models.Hospital:
        """Create a hospital together with its starting doctor roster."""
        with self.repo.transaction():
            hospital = self.repo.add(models.Hospital(name=name, city=city, state=state))
            for doctor in doctors or []:
                self.repo.add(models.Doctor(hospital_id=hospital.id, **doctor))
        logger.info("Hospital %s registered with %d doctors", hospital.id, len(doctors or []))
        return hospital

    def list_hospitals(self, state: Optional[str] = None) -> List[models.Hospital]:
        return self.repo.find_hospitals(state)

    def add_doctor(
        self,
        hospital_id: int,
        name: str,
        specialty: str,
        available: bool = True,
    ) -> models.Doctor:
        with self.repo.transaction():
            self.repo.require("Hospital", self.repo.find_hospital(hospital_id), hospital_id)
            doctor = self.repo.add(
                models.Doctor(hospital_id=hospital_id, name=name, specialty=specialty, available=available)
            )
        logger.info("Doctor %s added to hospital %s", doctor.id, hospital_id)
        return doctor

    def list_doctors(self, hospital_id: int) -> List[Dict[str, Any]]:
        """Roster with the number of queued receipts assigned to each doctor."""
        self.repo.require("Hospital", self.repo.find_hospital(hospital_id), hospital_id)
        return [
            {
                "id": doctor.id,
                "name": doctor.name,
                "specialty": doctor.specialty,
                "hospital_id": doctor.hospital_id,
                "available": doctor.available,
                "queued_patients": queued,
            }
            for doctor, queued in self.repo.find_doctors_with_queued_counts(hospital_id)
        ]

    def set_doctor_availability(self, doctor_id: int, available: bool) -> models.Doctor:
        with self.repo.transaction():
            doctor = self.repo.require("Doctor", self.repo.find_doctor(doctor_id), doctor_id)
            doctor.available = available
            self.repo.db.flush()
        logger.info("Doctor %s availability set to %s", doctor_id, available)
        return doctor

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------
    def hospital_summary(self, hospital_id: int) -> Dict[str, Any]:
        hospital = self.repo.require("Hospital", self.repo.find_hospital(hospital_id), hospital_id)
        head = self.dequeue_next(hospital_id)
        return {
            "hospital_id": hospital.id,
            "hospital_name": hospital.name,
            "receipts": self.repo.count_by_status(models.Receipt, hospital_id),
            "appointments": self.repo.count_by_status(models.Appointment, hospital_id),
            "emergency_alerts": self.repo.count_by_status(models.EmergencyAlert, hospital_id),
            "next_receipt_id": head.id if head else None,
        }
