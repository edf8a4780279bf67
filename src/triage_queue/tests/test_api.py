import asyncio
import random

from triage_queue.models import ReceiptStatus
from triage_queue.seed import seed_demo_data
from triage_queue.services.events import EventBroker, receipt_event
from triage_queue.services.queue import TriageQueueManager


def _submit(client, user_id, hospital_id=None, **extra):
    response = client.post(
        "/receipts",
        json={"user_id": user_id, "image_url": "uploads/prescription.jpg", "hospital_id": hospital_id, **extra},
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestReceiptRoutes:
    def test_submit_enqueue_and_advance(self, client, factory):
        user, hospital = factory.user(), factory.hospital()
        first = _submit(client, user.id, hospital.id, severity=6)
        second = _submit(client, user.id, hospital.id)
        assert first["status"] == "PENDING"

        for expected, receipt in enumerate((first, second), start=1):
            response = client.post(f"/receipts/{receipt['id']}/enqueue", json={"hospital_id": hospital.id})
            assert response.status_code == 200
            assert response.json()["queue_position"] == expected

        response = client.post(f"/receipts/{first['id']}/advance", json={"status": "PROCESSED"})
        assert response.status_code == 200
        assert response.json()["status"] == "PROCESSED"
        assert response.json()["queue_position"] is None

        queue = client.get(f"/hospitals/{hospital.id}/queue").json()
        assert [(r["id"], r["queue_position"]) for r in queue] == [(second["id"], 1)]

    def test_next_in_line(self, client, factory):
        user, hospital = factory.user(), factory.hospital()
        assert client.get(f"/hospitals/{hospital.id}/queue/next").json() is None

        receipt = _submit(client, user.id)
        client.post(f"/receipts/{receipt['id']}/enqueue", json={"hospital_id": hospital.id})

        assert client.get(f"/hospitals/{hospital.id}/queue/next").json()["id"] == receipt["id"]

    def test_user_receipts(self, client, factory):
        user = factory.user()
        created = [_submit(client, user.id)["id"] for _ in range(2)]

        listed = client.get(f"/receipts/user/{user.id}").json()

        assert sorted(r["id"] for r in listed) == sorted(created)

    def test_errors_map_to_http_statuses(self, client, factory):
        user, hospital = factory.user(), factory.hospital()
        receipt = _submit(client, user.id)

        missing = client.post("/receipts/999/enqueue", json={"hospital_id": hospital.id})
        assert missing.status_code == 404
        assert missing.json()["error"] == "NotFoundError"

        client.post(f"/receipts/{receipt['id']}/enqueue", json={"hospital_id": hospital.id})
        invalid = client.post(f"/receipts/{receipt['id']}/advance", json={"status": "COMPLETED"})
        assert invalid.status_code == 409
        assert invalid.json()["error"] == "InvalidTransitionError"

        again = client.post(f"/receipts/{receipt['id']}/enqueue", json={"hospital_id": hospital.id})
        assert again.status_code == 409
        assert again.json()["error"] == "InvalidStateError"

    def test_unavailable_doctor(self, client, factory):
        user, hospital = factory.user(), factory.hospital()
        doctor = factory.doctor(hospital, available=False)
        receipt = _submit(client, user.id)
        client.post(f"/receipts/{receipt['id']}/enqueue", json={"hospital_id": hospital.id})

        response = client.post(
            f"/receipts/{receipt['id']}/advance",
            json={"status": "PROCESSED", "doctor_id": doctor.id},
        )

        assert response.status_code == 409
        assert response.json()["error"] == "DoctorUnavailableError"

    def test_invalid_status_value_is_rejected(self, client, factory):
        receipt = _submit(client, factory.user().id)
        response = client.post(f"/receipts/{receipt['id']}/advance", json={"status": "TRIAGED"})
        assert response.status_code == 422


class TestAppointmentAndAlertRoutes:
    def test_appointment_flow(self, client, factory):
        user, hospital = factory.user(), factory.hospital()
        doctor = factory.doctor(hospital)

        created = client.post(
            "/appointments",
            json={
                "user_id": user.id,
                "hospital_id": hospital.id,
                "symptoms": "Shortness of breath on exertion",
                "preferred_date": "2026-11-05T10:00:00+00:00",
            },
        )
        assert created.status_code == 201
        appointment_id = created.json()["id"]

        confirmed = client.post(f"/appointments/{appointment_id}/confirm", json={"doctor_id": doctor.id})
        assert confirmed.json()["status"] == "CONFIRMED"
        assert confirmed.json()["doctor_id"] == doctor.id

        assert client.post(f"/appointments/{appointment_id}/complete").json()["status"] == "COMPLETED"
        assert client.post(f"/appointments/{appointment_id}/cancel").status_code == 409

        listed = client.get(f"/hospitals/{hospital.id}/appointments", params={"status": "COMPLETED"}).json()
        assert [a["id"] for a in listed] == [appointment_id]

    def test_alert_flow(self, client, factory):
        user, hospital = factory.user(), factory.hospital()
        created = client.post(
            "/alerts",
            json={"user_id": user.id, "hospital_id": hospital.id, "patient_info": {"name": "Anita"}},
        )
        assert created.status_code == 201
        alert_id = created.json()["id"]

        assert client.post(f"/alerts/{alert_id}/close").status_code == 409
        assert client.post(f"/alerts/{alert_id}/acknowledge").json()["status"] == "ACKNOWLEDGED"

        responded = client.post(f"/alerts/{alert_id}/respond", json={"notes": "Team on the way"}).json()
        assert responded["status"] == "RESPONDED"
        assert responded["responded_at"] is not None
        assert responded["notes"] == "Team on the way"

        assert client.post(f"/alerts/{alert_id}/close").json()["status"] == "CLOSED"
        assert client.get(f"/hospitals/{hospital.id}/alerts").json()[0]["status"] == "CLOSED"


def test_dashboard_summary(client, factory):
    user, hospital = factory.user(), factory.hospital()
    receipt = _submit(client, user.id)
    client.post(f"/receipts/{receipt['id']}/enqueue", json={"hospital_id": hospital.id})

    summary = client.get(f"/dashboard/hospitals/{hospital.id}/summary").json()

    assert summary["receipts"] == {"QUEUED": 1}
    assert summary["next_receipt_id"] == receipt["id"]
    assert client.get("/dashboard/hospitals/999/summary").status_code == 404


def test_health(client):
    body = client.get("/health").json()
    assert body["database"] == "ok"


def test_event_broker_fans_out_to_subscribers(manager, factory):
    receipt = factory.receipt()

    async def scenario():
        broker = EventBroker()
        first, second = await broker.subscribe(), await broker.subscribe()
        await broker.publish(receipt_event("receipt_submitted", receipt))
        events = [await first.get(), await second.get()]
        await broker.unsubscribe(first)
        return events, len(broker.subscribers)

    events, remaining = asyncio.run(scenario())

    assert events[0] == events[1]
    assert events[0]["receipt_id"] == receipt.id
    assert events[0]["status"] == "PENDING"
    assert remaining == 1
    assert EventBroker.format_sse({"a": 1}) == 'data: {"a": 1}\n\n'


def test_seed_builds_a_dense_queue(db):
    hospital = seed_demo_data(db, patients=4, rng=random.Random(7))
    manager = TriageQueueManager(db, queue_policy="fifo")

    queue = manager.list_queue(hospital.id)

    assert [r.queue_position for r in queue] == [1, 2, 3, 4]
    assert all(r.status == ReceiptStatus.QUEUED for r in queue)
    assert len(manager.list_alerts(hospital.id)) == 1


class TestRosterRoutes:
    def test_register_list_and_toggle_availability(self, client, factory):
        created = client.post(
            "/hospitals",
            json={
                "name": "Sassoon General",
                "city": "Pune",
                "state": "Maharashtra",
                "doctors": [{"name": "Dr. Kulkarni", "specialty": "Emergency Medicine"}],
            },
        )
        assert created.status_code == 201
        hospital_id = created.json()["id"]

        listed = client.get("/hospitals", params={"state": "Maharashtra"}).json()
        assert [h["id"] for h in listed] == [hospital_id]

        added = client.post(f"/hospitals/{hospital_id}/doctors", json={"name": "Dr. Joshi", "specialty": "Cardiology"})
        assert added.status_code == 201
        doctor_id = added.json()["id"]

        toggled = client.put(f"/doctors/{doctor_id}/availability", json={"available": False})
        assert toggled.json()["available"] is False

        user = factory.user()
        receipt = _submit(client, user.id, hospital_id)
        blocked = client.post(
            f"/receipts/{receipt['id']}/advance", json={"status": "QUEUED", "doctor_id": doctor_id}
        )
        assert blocked.json()["error"] == "DoctorUnavailableError"

        client.put(f"/doctors/{doctor_id}/availability", json={"available": True})
        queued = client.post(f"/receipts/{receipt['id']}/advance", json={"status": "QUEUED", "doctor_id": doctor_id})
        assert queued.status_code == 200

        roster = client.get(f"/hospitals/{hospital_id}/doctors").json()
        assert roster[0]["id"] == doctor_id
        assert roster[0]["queued_patients"] == 1
        assert roster[1]["queued_patients"] == 0

    def test_unknown_doctor(self, client):
        response = client.put("/doctors/999/availability", json={"available": True})
        assert response.status_code == 404


class TestReminderRoutes:
    def test_reminder_crud(self, client, factory):
        user = factory.user()
        created = client.post(
            f"/users/{user.id}/reminders",
            json=[{"name": "Amoxicillin", "dosage": "250mg", "frequency": "thrice-daily", "time": "08:00"}],
        )
        assert created.status_code == 201
        reminder_id = created.json()[0]["id"]

        patched = client.patch(f"/reminders/{reminder_id}", json={"dosage": "500mg"})
        assert patched.json()["dosage"] == "500mg"
        assert patched.json()["frequency"] == "thrice-daily"

        assert [r["id"] for r in client.get(f"/users/{user.id}/reminders").json()] == [reminder_id]

        assert client.delete(f"/reminders/{reminder_id}").status_code == 204
        assert client.get(f"/reminders/{reminder_id}").status_code == 404

    def test_time_must_be_a_clock_time(self, client, factory):
        user = factory.user()
        response = client.post(
            f"/users/{user.id}/reminders",
            json=[{"name": "Aspirin", "dosage": "75mg", "frequency": "daily", "time": "25:99"}],
        )
        assert response.status_code == 422
