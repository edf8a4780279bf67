from fastapi import Depends
from sqlalchemy.orm import Session

from .database import get_db
from .services.queue import TriageQueueManager
from .services.reminders import MedicineReminderService


def get_queue_manager(db: Session = Depends(get_db)) -> TriageQueueManager:
    return TriageQueueManager(db)


def get_reminder_service(db: Session = Depends(get_db)) -> MedicineReminderService:
    return MedicineReminderService(db)
