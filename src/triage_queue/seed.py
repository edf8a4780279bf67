"""
Seed demo data for the hospital queue dashboard.

Run with: python -m triage_queue.seed
"""
import logging
import random
from datetime import timedelta

from sqlalchemy.orm import Session

from . import models
from .database import SessionLocal, init_db
from .services.queue import TriageQueueManager

logger = logging.getLogger(__name__)

DOCTORS = [
    ("Dr. Asha Rao", "Emergency Medicine", True),
    ("Dr. Vikram Shah", "Cardiology", True),
    ("Dr. Meera Iyer", "General Medicine", False),
]


def seed_demo_data(db: Session, patients: int = 5, rng: random.Random = None) -> models.Hospital:
    """Create one hospital with doctors, queued receipts, an appointment and an alert."""
    rng = rng or random.Random()

    hospital = models.Hospital(name="City General Hospital", city="Pune", state="Maharashtra")
    db.add(hospital)
    db.flush()
    for name, specialty, available in DOCTORS:
        db.add(models.Doctor(name=name, specialty=specialty, hospital_id=hospital.id, available=available))

    users = []
    for i in range(patients):
        user = models.User(name=f"Demo Patient {i + 1}", email=f"demo{i + 1}.h{hospital.id}@example.com")
        db.add(user)
        users.append(user)
    db.commit()

    manager = TriageQueueManager(db)
    for user in users:
        receipt = manager.submit_receipt(
            user_id=user.id,
            image_url=f"uploads/receipt-{user.id}.jpg",
            hospital_id=hospital.id,
            severity=rng.randint(1, 10),
        )
        manager.enqueue(receipt.id, hospital.id)

    first = users[0]
    manager.request_appointment(
        user_id=first.id,
        hospital_id=hospital.id,
        symptoms="Recurring chest discomfort after exercise",
        preferred_date=models.utcnow() + timedelta(days=2),
    )
    manager.raise_alert(
        user_id=first.id,
        hospital_id=hospital.id,
        patient_info={"name": first.name, "age": rng.randint(18, 85)},
        medical_history={"conditions": ["hypertension"]},
    )
    logger.info("Seeded hospital %s with %d queued receipts", hospital.id, patients)
    return hospital


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
    session = SessionLocal()
    try:
        seed_demo_data(session)
    finally:
        session.close()
