import asyncio
import json
from typing import Any, Dict, List

from .. import models


class EventBroker:
    def __init__(self):
        self.subscribers: List[asyncio.Queue] = []
        self.lock = asyncio.Lock()

    async def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        async with self.lock:
            self.subscribers.append(queue)
        return queue

    async def unsubscribe(self, queue: asyncio.Queue):
        async with self.lock:
            if queue in self.subscribers:
                self.subscribers.remove(queue)

    async def publish(self, event: Dict[str, Any]):
        async with self.lock:
            for queue in list(self.subscribers):
                await queue.put(event)

    @staticmethod
    def format_sse(data: Dict[str, Any]) -> str:
        return f"data: {json.dumps(data, default=str)}\n\n"


def receipt_event(event_type: str, receipt: models.Receipt) -> Dict[str, Any]:
    return {
        "event_type": event_type,
        "receipt_id": receipt.id,
        "hospital_id": receipt.hospital_id,
        "status": receipt.status.value,
        "queue_position": receipt.queue_position,
        "severity": receipt.severity,
    }


def alert_event(event_type: str, alert: models.EmergencyAlert) -> Dict[str, Any]:
    return {
        "event_type": event_type,
        "alert_id": alert.id,
        "hospital_id": alert.hospital_id,
        "status": alert.status.value,
    }


def appointment_event(event_type: str, appointment: models.Appointment) -> Dict[str, Any]:
    return {
        "event_type": event_type,
        "appointment_id": appointment.id,
        "hospital_id": appointment.hospital_id,
        "status": appointment.status.value,
    }


def doctor_event(event_type: str, doctor: models.Doctor) -> Dict[str, Any]:
    return {
        "event_type": event_type,
        "doctor_id": doctor.id,
        "hospital_id": doctor.hospital_id,
        "available": doctor.available,
    }


event_broker = EventBroker()
