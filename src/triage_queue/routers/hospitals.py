from typing import List, Optional

from fastapi import APIRouter, Depends, status as http_status

from .. import models, schemas
from ..deps import get_queue_manager
from ..services.queue import TriageQueueManager

router = APIRouter(prefix="/hospitals", tags=["hospitals"])


@router.get("", response_model=List[schemas.HospitalOut])
def list_hospitals(state: Optional[str] = None, manager: TriageQueueManager = Depends(get_queue_manager)):
    return manager.list_hospitals(state)


@router.post("", response_model=schemas.HospitalOut, status_code=http_status.HTTP_201_CREATED)
def register_hospital(payload: schemas.HospitalCreate, manager: TriageQueueManager = Depends(get_queue_manager)):
    return manager.register_hospital(
        payload.name,
        city=payload.city,
        state=payload.state,
        doctors=[doctor.model_dump() for doctor in payload.doctors],
    )


@router.get("/{hospital_id}/doctors", response_model=List[schemas.DoctorRosterEntry])
def hospital_doctors(hospital_id: int, manager: TriageQueueManager = Depends(get_queue_manager)):
    """Doctors with their queued-patient counts, busiest first."""
    return manager.list_doctors(hospital_id)


@router.post(
    "/{hospital_id}/doctors", response_model=schemas.DoctorOut, status_code=http_status.HTTP_201_CREATED
)
def add_doctor(
    hospital_id: int,
    payload: schemas.DoctorCreate,
    manager: TriageQueueManager = Depends(get_queue_manager),
):
    return manager.add_doctor(hospital_id, **payload.model_dump())


@router.get("/{hospital_id}/queue", response_model=List[schemas.ReceiptOut])
def hospital_queue(hospital_id: int, manager: TriageQueueManager = Depends(get_queue_manager)):
    """Queued receipts for a hospital, next-in-line first."""
    return manager.list_queue(hospital_id)


@router.get("/{hospital_id}/queue/next", response_model=Optional[schemas.ReceiptOut])
def next_in_line(hospital_id: int, manager: TriageQueueManager = Depends(get_queue_manager)):
    return manager.dequeue_next(hospital_id)


@router.get("/{hospital_id}/appointments", response_model=List[schemas.AppointmentOut])
def hospital_appointments(
    hospital_id: int,
    status: Optional[models.AppointmentStatus] = None,
    manager: TriageQueueManager = Depends(get_queue_manager),
):
    return manager.list_appointments(hospital_id, status)


@router.get("/{hospital_id}/alerts", response_model=List[schemas.EmergencyAlertOut])
def hospital_alerts(
    hospital_id: int,
    status: Optional[models.EmergencyAlertStatus] = None,
    manager: TriageQueueManager = Depends(get_queue_manager),
):
    return manager.list_alerts(hospital_id, status)
