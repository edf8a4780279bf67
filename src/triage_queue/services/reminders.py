"""Medicine reminder records kept per user.

Only the schedule is stored here; sending the reminder is left to whatever
notification channel reads these rows.
"""

import logging
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from .. import models
from ..repository import TriageRepository

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = frozenset({"name", "dosage", "frequency", "time", "notes", "is_active"})


class MedicineReminderService:
    def __init__(self, db: Session):
        self.repo = TriageRepository(db)

    def create_reminders(self, user_id: int, reminders: List[Dict[str, Any]]) -> List[models.MedicineReminder]:
        """Store a batch of reminders for one user, all or nothing."""
        with self.repo.transaction():
            self.repo.require("User", self.repo.find_user(user_id), user_id)
            created = [
                self.repo.add(
                    models.MedicineReminder(
                        user_id=user_id,
                        name=item["name"],
                        dosage=item["dosage"],
                        frequency=item["frequency"],
                        time=item["time"],
                        notes=item.get("notes") or None,
                        ai_generated=item.get("ai_generated", False),
                    )
                )
                for item in reminders
            ]
        logger.info("Created %d medicine reminders for user %s", len(created), user_id)
        return created

    def list_reminders(self, user_id: int, include_inactive: bool = False) -> List[models.MedicineReminder]:
        self.repo.require("User", self.repo.find_user(user_id), user_id)
        return self.repo.find_reminders_by_user(user_id, include_inactive)

    def get_reminder(self, reminder_id: int) -> models.MedicineReminder:
        return self.repo.require("MedicineReminder", self.repo.find_reminder(reminder_id), reminder_id)

    def update_reminder(self, reminder_id: int, **fields) -> models.MedicineReminder:
        unknown = set(fields) - EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown reminder fields: {sorted(unknown)}")
        with self.repo.transaction():
            reminder = self.get_reminder(reminder_id)
            for key, value in fields.items():
                setattr(reminder, key, value)
            self.repo.db.flush()
        logger.info("Medicine reminder %s updated (%s)", reminder_id, ", ".join(sorted(fields)))
        return reminder

    def delete_reminder(self, reminder_id: int) -> None:
        with self.repo.transaction():
            self.repo.delete(self.get_reminder(reminder_id))
        logger.info("Medicine reminder %s deleted", reminder_id)
