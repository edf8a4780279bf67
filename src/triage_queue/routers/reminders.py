from typing import List

from fastapi import APIRouter, Depends, Response, status

from .. import schemas
from ..deps import get_reminder_service
from ..services.reminders import MedicineReminderService

router = APIRouter(tags=["medicine-reminders"])


@router.post(
    "/users/{user_id}/reminders",
    response_model=List[schemas.MedicineReminderOut],
    status_code=status.HTTP_201_CREATED,
)
def create_reminders(
    user_id: int,
    payload: List[schemas.MedicineReminderCreate],
    service: MedicineReminderService = Depends(get_reminder_service),
):
    return service.create_reminders(user_id, [item.model_dump() for item in payload])


@router.get("/users/{user_id}/reminders", response_model=List[schemas.MedicineReminderOut])
def list_reminders(
    user_id: int,
    include_inactive: bool = False,
    service: MedicineReminderService = Depends(get_reminder_service),
):
    """Active reminders, newest first."""
    return service.list_reminders(user_id, include_inactive)


@router.get("/reminders/{reminder_id}", response_model=schemas.MedicineReminderOut)
def get_reminder(reminder_id: int, service: MedicineReminderService = Depends(get_reminder_service)):
    return service.get_reminder(reminder_id)


@router.patch("/reminders/{reminder_id}", response_model=schemas.MedicineReminderOut)
def update_reminder(
    reminder_id: int,
    payload: schemas.MedicineReminderUpdate,
    service: MedicineReminderService = Depends(get_reminder_service),
):
    return service.update_reminder(reminder_id, **payload.model_dump(exclude_none=True))


@router.delete("/reminders/{reminder_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_reminder(reminder_id: int, service: MedicineReminderService = Depends(get_reminder_service)):
    service.delete_reminder(reminder_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
