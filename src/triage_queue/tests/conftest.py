import itertools

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from triage_queue import models
from triage_queue.database import Base, build_engine, get_db
from triage_queue.main import app
from triage_queue.services.queue import TriageQueueManager


class Factory:
    """Builds rows directly through the session, bypassing the manager."""

    def __init__(self, db):
        self.db = db
        self._seq = itertools.count(1)

    def user(self, **kwargs) -> models.User:
        n = next(self._seq)
        user = models.User(name=kwargs.pop("name", f"Patient {n}"), email=f"patient{n}@example.com", **kwargs)
        return self._save(user)

    def hospital(self, name: str = None, **kwargs) -> models.Hospital:
        n = next(self._seq)
        return self._save(models.Hospital(name=name or f"Hospital {n}", **kwargs))

    def doctor(self, hospital: models.Hospital, available: bool = True, **kwargs) -> models.Doctor:
        n = next(self._seq)
        return self._save(
            models.Doctor(
                name=kwargs.pop("name", f"Dr. {n}"),
                specialty=kwargs.pop("specialty", "Emergency Medicine"),
                hospital_id=hospital.id,
                available=available,
                **kwargs,
            )
        )

    def receipt(self, user: models.User = None, hospital: models.Hospital = None, **kwargs) -> models.Receipt:
        user = user or self.user()
        return self._save(
            models.Receipt(
                user_id=user.id,
                image_url=kwargs.pop("image_url", "uploads/receipt.jpg"),
                hospital_id=hospital.id if hospital else None,
                **kwargs,
            )
        )

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        self.db.refresh(obj)
        return obj


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def factory(db):
    return Factory(db)


@pytest.fixture
def manager(db):
    return TriageQueueManager(db, queue_policy="fifo", allow_direct_completion=True)


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def snapshot(manager):
    """(receipt id, position) pairs of a hospital queue, head first."""

    def take(hospital_id: int):
        return [(r.id, r.queue_position) for r in manager.list_queue(hospital_id)]

    return take
