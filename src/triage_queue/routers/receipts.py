from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, status

from .. import schemas
from ..deps import get_queue_manager
from ..services.events import event_broker, receipt_event
from ..services.queue import TriageQueueManager, retry_on_conflict

router = APIRouter(prefix="/receipts", tags=["receipts"])


@router.post("", response_model=schemas.ReceiptOut, status_code=status.HTTP_201_CREATED)
def submit_receipt(
    payload: schemas.ReceiptCreate,
    background_tasks: BackgroundTasks,
    manager: TriageQueueManager = Depends(get_queue_manager),
):
    receipt = manager.submit_receipt(**payload.model_dump())
    background_tasks.add_task(event_broker.publish, receipt_event("receipt_submitted", receipt))
    return receipt


@router.get("/user/{user_id}", response_model=List[schemas.ReceiptOut])
def user_receipts(user_id: int, manager: TriageQueueManager = Depends(get_queue_manager)):
    return manager.list_user_receipts(user_id)


@router.get("/{receipt_id}", response_model=schemas.ReceiptOut)
def get_receipt(receipt_id: int, manager: TriageQueueManager = Depends(get_queue_manager)):
    return manager.get_receipt(receipt_id)


@router.post("/{receipt_id}/enqueue", response_model=schemas.EnqueueResponse)
def enqueue_receipt(
    receipt_id: int,
    payload: schemas.EnqueueRequest,
    background_tasks: BackgroundTasks,
    manager: TriageQueueManager = Depends(get_queue_manager),
):
    position = retry_on_conflict(lambda: manager.enqueue(receipt_id, payload.hospital_id))
    receipt = manager.get_receipt(receipt_id)
    background_tasks.add_task(event_broker.publish, receipt_event("receipt_queued", receipt))
    return schemas.EnqueueResponse(
        receipt_id=receipt_id,
        hospital_id=payload.hospital_id,
        queue_position=position,
    )


@router.post("/{receipt_id}/advance", response_model=schemas.ReceiptOut)
def advance_receipt(
    receipt_id: int,
    payload: schemas.AdvanceRequest,
    background_tasks: BackgroundTasks,
    manager: TriageQueueManager = Depends(get_queue_manager),
):
    receipt = retry_on_conflict(lambda: manager.advance(receipt_id, payload.status, payload.doctor_id))
    background_tasks.add_task(event_broker.publish, receipt_event("receipt_advanced", receipt))
    return receipt
