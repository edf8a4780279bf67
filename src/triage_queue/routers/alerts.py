from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, status

from .. import schemas
from ..deps import get_queue_manager
from ..services.events import alert_event, event_broker
from ..services.queue import TriageQueueManager

router = APIRouter(prefix="/alerts", tags=["emergency-alerts"])


@router.post("", response_model=schemas.EmergencyAlertOut, status_code=status.HTTP_201_CREATED)
def raise_alert(
    payload: schemas.EmergencyAlertCreate,
    background_tasks: BackgroundTasks,
    manager: TriageQueueManager = Depends(get_queue_manager),
):
    alert = manager.raise_alert(**payload.model_dump())
    background_tasks.add_task(event_broker.publish, alert_event("emergency_alert", alert))
    return alert


@router.post("/{alert_id}/acknowledge", response_model=schemas.EmergencyAlertOut)
def acknowledge_alert(
    alert_id: int,
    background_tasks: BackgroundTasks,
    manager: TriageQueueManager = Depends(get_queue_manager),
):
    alert = manager.acknowledge_alert(alert_id)
    background_tasks.add_task(event_broker.publish, alert_event("alert_acknowledged", alert))
    return alert


@router.post("/{alert_id}/respond", response_model=schemas.EmergencyAlertOut)
def respond_to_alert(
    alert_id: int,
    background_tasks: BackgroundTasks,
    payload: Optional[schemas.AlertNotes] = None,
    manager: TriageQueueManager = Depends(get_queue_manager),
):
    alert = manager.respond_to_alert(alert_id, notes=payload.notes if payload else None)
    background_tasks.add_task(event_broker.publish, alert_event("alert_responded", alert))
    return alert


@router.post("/{alert_id}/close", response_model=schemas.EmergencyAlertOut)
def close_alert(
    alert_id: int,
    background_tasks: BackgroundTasks,
    payload: Optional[schemas.AlertNotes] = None,
    manager: TriageQueueManager = Depends(get_queue_manager),
):
    alert = manager.close_alert(alert_id, notes=payload.notes if payload else None)
    background_tasks.add_task(event_broker.publish, alert_event("alert_closed", alert))
    return alert
