from fastapi import APIRouter, BackgroundTasks, Depends, status

from .. import schemas
from ..deps import get_queue_manager
from ..services.events import appointment_event, event_broker
from ..services.queue import TriageQueueManager

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.post("", response_model=schemas.AppointmentOut, status_code=status.HTTP_201_CREATED)
def request_appointment(
    payload: schemas.AppointmentCreate,
    background_tasks: BackgroundTasks,
    manager: TriageQueueManager = Depends(get_queue_manager),
):
    appointment = manager.request_appointment(**payload.model_dump())
    background_tasks.add_task(event_broker.publish, appointment_event("appointment_requested", appointment))
    return appointment


@router.post("/{appointment_id}/confirm", response_model=schemas.AppointmentOut)
def confirm_appointment(
    appointment_id: int,
    payload: schemas.AppointmentConfirm,
    background_tasks: BackgroundTasks,
    manager: TriageQueueManager = Depends(get_queue_manager),
):
    appointment = manager.confirm_appointment(
        appointment_id,
        scheduled_date=payload.scheduled_date,
        doctor_id=payload.doctor_id,
    )
    background_tasks.add_task(event_broker.publish, appointment_event("appointment_confirmed", appointment))
    return appointment


@router.post("/{appointment_id}/complete", response_model=schemas.AppointmentOut)
def complete_appointment(
    appointment_id: int,
    background_tasks: BackgroundTasks,
    manager: TriageQueueManager = Depends(get_queue_manager),
):
    appointment = manager.complete_appointment(appointment_id)
    background_tasks.add_task(event_broker.publish, appointment_event("appointment_completed", appointment))
    return appointment


@router.post("/{appointment_id}/cancel", response_model=schemas.AppointmentOut)
def cancel_appointment(
    appointment_id: int,
    background_tasks: BackgroundTasks,
    manager: TriageQueueManager = Depends(get_queue_manager),
):
    appointment = manager.cancel_appointment(appointment_id)
    background_tasks.add_task(event_broker.publish, appointment_event("appointment_cancelled", appointment))
    return appointment
