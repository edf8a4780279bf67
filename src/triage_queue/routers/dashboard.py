from typing import AsyncGenerator

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from .. import schemas
from ..deps import get_queue_manager
from ..services.events import event_broker
from ..services.queue import TriageQueueManager

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


async def event_stream() -> AsyncGenerator[str, None]:
    queue = await event_broker.subscribe()
    try:
        while True:
            event = await queue.get()
            yield event_broker.format_sse(event)
    finally:
        await event_broker.unsubscribe(queue)


@router.get("/stream")
async def stream_dashboard():
    return StreamingResponse(event_stream(), media_type="text/event-stream")


@router.get("/hospitals/{hospital_id}/summary", response_model=schemas.HospitalSummary)
def hospital_summary(hospital_id: int, manager: TriageQueueManager = Depends(get_queue_manager)):
    """Status counts for a hospital's receipts, appointments and alerts."""
    return manager.hospital_summary(hospital_id)
