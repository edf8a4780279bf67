from fastapi import APIRouter, BackgroundTasks, Depends

from .. import schemas
from ..deps import get_queue_manager
from ..services.events import doctor_event, event_broker
from ..services.queue import TriageQueueManager

router = APIRouter(prefix="/doctors", tags=["doctors"])


@router.put("/{doctor_id}/availability", response_model=schemas.DoctorOut)
def set_availability(
    doctor_id: int,
    payload: schemas.DoctorAvailability,
    background_tasks: BackgroundTasks,
    manager: TriageQueueManager = Depends(get_queue_manager),
):
    doctor = manager.set_doctor_availability(doctor_id, payload.available)
    background_tasks.add_task(event_broker.publish, doctor_event("doctor_availability", doctor))
    return doctor
