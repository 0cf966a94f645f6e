import uuid
import httpx
from datetime import timedelta
from decimal import Decimal
from sqlalchemy import select
from clinic.core.clock import local_today
from clinic.core.config import settings
from clinic.modules.notifications.models import Notification, OutboundMessage
from clinic.modules.patients.models import Patient
from clinic.modules.patients.repository import PatientRepository
from clinic.modules.treatments.models import Treatment
from clinic.platform.adapters.email_resend import ResendEmail
from clinic.platform.provider_registry import registry

async def test_create_patient_generates_code_and_approves(admin_client, patient_data):
    r = await admin_client.post("/api/patients", json=patient_data())
    assert r.status_code == 201
    body = r.json()
    assert body["patient_code"] == "P001"
    assert body["registration_status"] == "approved"
    assert body["registration_source"] == "manual"

    r2 = await admin_client.post("/api/patients", json=patient_data(email="maria@example.com", first_name="Maria"))
    assert r2.json()["patient_code"] == "P002"

async def test_patient_codes_continue_past_999(admin_client, patient_data, session_factory):
    async with session_factory() as s:
        s.add(Patient(patient_code="P999", first_name="A", last_name="B"))
        await s.commit()
    r = await admin_client.post("/api/patients", json=patient_data())
    assert r.json()["patient_code"] == "P1000"
    r = await admin_client.post("/api/patients", json=patient_data(email="x@example.com"))
    assert r.json()["patient_code"] == "P1001"

async def test_code_collision_is_retried_once(admin_client, patient, patient_data, monkeypatch):
    next_code = PatientRepository.next_code
    calls = []

    async def stale_then_fresh(self):
        # the first read misses a patient inserted concurrently
        calls.append(1)
        return patient["patient_code"] if len(calls) == 1 else await next_code(self)

    monkeypatch.setattr(PatientRepository, "next_code", stale_then_fresh)
    r = await admin_client.post("/api/patients", json=patient_data(email="maria@example.com"))
    assert r.status_code == 201
    assert r.json()["patient_code"] == "P002"
    assert len(calls) == 2

async def test_repeated_code_collision_is_409(admin_client, client, patient, patient_data, monkeypatch):
    async def always_taken(self):
        return patient["patient_code"]

    monkeypatch.setattr(PatientRepository, "next_code", always_taken)
    r = await admin_client.post("/api/patients", json=patient_data(email="maria@example.com"))
    assert r.status_code == 409
    assert r.json() == {"error": "Could not assign a patient code, please try again"}

    reg = await client.post("/api/patients/register", json=patient_data(email="pat@example.com"))
    assert reg.status_code == 409

    listed = await admin_client.get("/api/patients")
    assert [p["patient_code"] for p in listed.json()["items"]] == [patient["patient_code"]]

async def test_missing_required_field_is_400(admin_client):
    r = await admin_client.post("/api/patients", json={"last_name": "Only"})
    assert r.status_code == 400
    body = r.json()
    assert "first_name" in body["error"]
    assert body["details"]

async def test_names_are_sanitized_and_blanks_become_null(admin_client, patient_data):
    r = await admin_client.post(
        "/api/patients",
        json=patient_data(first_name="  <Ana>  ", last_name="O'Neil&", address="", notes="   ", phone=""),
    )
    assert r.status_code == 201
    body = r.json()
    assert body["first_name"] == "Ana"
    assert body["last_name"] == "ONeil"
    assert body["address"] is None
    assert body["notes"] is None
    assert body["phone"] is None

async def test_name_made_only_of_stripped_characters_is_rejected(admin_client, patient_data):
    r = await admin_client.post("/api/patients", json=patient_data(first_name="<>&"))
    assert r.status_code == 400

async def test_phone_and_birth_date_validation(admin_client, patient_data):
    bad_phone = await admin_client.post("/api/patients", json=patient_data(phone="12345"))
    assert bad_phone.status_code == 400

    tomorrow = (local_today() + timedelta(days=1)).isoformat()
    future = await admin_client.post("/api/patients", json=patient_data(date_of_birth=tomorrow))
    assert future.status_code == 400
    assert "future" in future.json()["error"]

    ancient = await admin_client.post("/api/patients", json=patient_data(date_of_birth="1850-01-01"))
    assert ancient.status_code == 400

    bad_email = await admin_client.post("/api/patients", json=patient_data(email="nope"))
    assert bad_email.status_code == 400

async def test_duplicate_email_is_409(admin_client, patient, patient_data):
    r = await admin_client.post("/api/patients", json=patient_data(email="JUAN@example.com"))
    assert r.status_code == 409
    assert "error" in r.json()

async def test_list_search_sort_and_paginate(admin_client, patient_data):
    for first, last, phone, mail in [
        ("Carla", "Reyes", "09170000001", "carla@example.com"),
        ("Ben", "Santos", "09170000002", "ben@example.com"),
        ("Alma", "Reyes", "09170000003", "alma@example.com"),
    ]:
        r = await admin_client.post(
            "/api/patients", json=patient_data(first_name=first, last_name=last, phone=phone, email=mail),
        )
        assert r.status_code == 201

    r = await admin_client.get("/api/patients", params={"search": "reyes", "sort_by": "first_name", "sort_order": "asc"})
    body = r.json()
    assert [p["first_name"] for p in body["items"]] == ["Alma", "Carla"]
    assert body["pagination"] == {"limit": 20, "offset": 0, "total": 2, "has_more": False}

    by_code = await admin_client.get("/api/patients", params={"search": "p002"})
    assert [p["first_name"] for p in by_code.json()["items"]] == ["Ben"]

    by_phone = await admin_client.get("/api/patients", params={"search": "0000003"})
    assert [p["first_name"] for p in by_phone.json()["items"]] == ["Alma"]

    page = await admin_client.get("/api/patients", params={"limit": 2, "offset": 0})
    assert len(page.json()["items"]) == 2
    assert page.json()["pagination"]["has_more"] is True

    too_big = await admin_client.get("/api/patients", params={"limit": 500})
    assert too_big.status_code == 400

async def test_get_update_and_soft_delete(admin_client, patient, patient_data):
    pid = patient["id"]
    r = await admin_client.get(f"/api/patients/{pid}")
    assert r.status_code == 200

    upd = await admin_client.put(f"/api/patients/{pid}", json=patient_data(first_name="Juanito", notes="allergic to latex"))
    assert upd.status_code == 200
    assert upd.json()["first_name"] == "Juanito"
    assert upd.json()["notes"] == "allergic to latex"

    other = await admin_client.post("/api/patients", json=patient_data(email="other@example.com"))
    clash = await admin_client.put(f"/api/patients/{other.json()['id']}", json=patient_data(email="juan@example.com"))
    assert clash.status_code == 409

    replaced = await admin_client.put(f"/api/patients/{pid}", json={"first_name": "Juanito", "last_name": "Dela Cruz"})
    assert replaced.status_code == 200
    assert replaced.json()["notes"] is None
    assert replaced.json()["phone"] is None
    assert replaced.json()["email"] is None
    assert replaced.json()["patient_code"] == patient["patient_code"]

    d = await admin_client.delete(f"/api/patients/{pid}")
    assert d.status_code == 200
    assert d.json()["deleted_patient"]["patient_code"] == patient["patient_code"]

    gone = await admin_client.get(f"/api/patients/{pid}")
    assert gone.status_code == 404
    assert gone.json() == {"error": "Patient not found"}

    listed = await admin_client.get("/api/patients")
    assert pid not in [p["id"] for p in listed.json()["items"]]

async def test_unknown_patient_is_404(admin_client, patient_data):
    missing = "00000000-0000-0000-0000-000000000000"
    assert (await admin_client.get(f"/api/patients/{missing}")).status_code == 404
    assert (await admin_client.put(f"/api/patients/{missing}", json=patient_data())).status_code == 404
    assert (await admin_client.delete(f"/api/patients/{missing}")).status_code == 404

async def test_patient_stats(admin_client, patient, session_factory, future_day):
    pid = uuid.UUID(patient["id"])
    async with session_factory() as s:
        s.add_all([
            Treatment(patient_id=pid, treatment_date=local_today(), total_cost=Decimal("1500.50"), payment_status="paid"),
            Treatment(patient_id=pid, treatment_date=local_today(), total_cost=Decimal("200.25"), payment_status="paid"),
            Treatment(patient_id=pid, treatment_date=local_today(), total_cost=Decimal("999.00"), payment_status="pending"),
        ])
        await s.commit()
    await admin_client.post("/api/appointments", json={"patient_id": patient["id"], "appointment_date": future_day, "appointment_time": "10:00:00"})
    cancelled = await admin_client.post("/api/appointments", json={"patient_id": patient["id"], "appointment_date": future_day, "appointment_time": "14:00:00"})
    await admin_client.delete(f"/api/appointments/{cancelled.json()['id']}")

    r = await admin_client.get(f"/api/patients/{patient['id']}/stats")
    assert r.status_code == 200
    stats = r.json()
    assert stats["total_treatments"] == 3
    assert stats["total_amount_paid"] == 1700.75
    assert stats["upcoming_appointments"] == 1

async def test_public_registration_creates_pending_patient(client, email, session_factory, patient_data):
    r = await client.post("/api/patients/register", json=patient_data())
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["patient_id"]

    assert len(email.sent) == 1
    assert email.sent[0]["to"] == "juan@example.com"

    async with session_factory() as s:
        notes = (await s.execute(select(Notification))).scalars().all()
    assert [n.type for n in notes] == ["registration_pending"]

async def test_public_registration_requires_email_and_rejects_duplicates(client, patient_data):
    payload = patient_data()
    payload.pop("email")
    r = await client.post("/api/patients/register", json=payload)
    assert r.status_code == 400

    ok = await client.post("/api/patients/register", json=patient_data())
    assert ok.status_code == 200
    dup = await client.post("/api/patients/register", json=patient_data())
    assert dup.status_code == 409
    assert dup.json() == {"error": "Email already registered"}

async def test_registration_survives_email_failure(client, email, patient_data):
    email.fail = True
    r = await client.post("/api/patients/register", json=patient_data())
    assert r.status_code == 200

async def test_registration_survives_unreadable_provider_reply(client, session_factory, patient_data):
    registry.use_email(ResendEmail(
        api_key="re_test", base_url="https://resend.example", sender="Clinic <no-reply@example.com>",
        transport=httpx.MockTransport(lambda request: httpx.Response(200, text="OK")),
    ))
    r = await client.post("/api/patients/register", json=patient_data())
    assert r.status_code == 200

    async with session_factory() as s:
        msg = (await s.execute(select(OutboundMessage))).scalar_one()
    assert msg.status == "failed"
    assert msg.to == "juan@example.com"

async def test_registration_survives_unconfigured_provider(client, session_factory, patient_data, monkeypatch):
    registry.use_email(None)
    monkeypatch.setattr(settings, "EMAIL_PROVIDER", "resend")
    monkeypatch.setattr(settings, "RESEND_API_KEY", None)
    r = await client.post("/api/patients/register", json=patient_data())
    assert r.status_code == 200

    async with session_factory() as s:
        msg = (await s.execute(select(OutboundMessage))).scalar_one()
    assert msg.status == "failed"
    assert "not configured" in msg.error

async def test_approve_and_deny(admin_client, client, email, patient_data):
    a = await client.post("/api/patients/register", json=patient_data())
    b = await client.post("/api/patients/register", json=patient_data(email="b@example.com", first_name="Bea"))
    email.sent.clear()

    approved = await admin_client.post(f"/api/patients/{a.json()['patient_id']}/approve")
    assert approved.status_code == 200
    assert approved.json()["registration_status"] == "approved"
    assert approved.json()["approved_at"] is not None
    assert approved.json()["approved_by"] is not None

    again = await admin_client.post(f"/api/patients/{a.json()['patient_id']}/approve")
    assert again.status_code == 400

    no_reason = await admin_client.post(f"/api/patients/{b.json()['patient_id']}/deny", json={})
    assert no_reason.status_code == 400

    denied = await admin_client.post(f"/api/patients/{b.json()['patient_id']}/deny", json={"reason": "Duplicate record"})
    assert denied.status_code == 200
    assert denied.json()["registration_status"] == "denied"
    assert denied.json()["denial_reason"] == "Duplicate record"

    assert [m["to"] for m in email.sent] == ["juan@example.com", "b@example.com"]
    assert "Duplicate record" in email.sent[1]["html"]

    notes = await admin_client.get("/api/notifications")
    types = {n["type"] for n in notes.json()["notifications"]}
    assert {"registration_pending", "registration_approved", "registration_denied"} <= types

async def test_pending_filter(admin_client, client, patient_data):
    await client.post("/api/patients/register", json=patient_data(email="p1@example.com"))
    await admin_client.post("/api/patients", json=patient_data(email="p2@example.com"))
    r = await admin_client.get("/api/patients", params={"registration_status": "pending"})
    assert [p["email"] for p in r.json()["items"]] == ["p1@example.com"]
