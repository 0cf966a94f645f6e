import uuid
from decimal import Decimal
from clinic.core.clock import local_today
from clinic.core.config import settings
from clinic.modules.dashboard.router import progress
from clinic.modules.treatments.models import Treatment

def test_progress_is_capped():
    assert progress(50, 100) == 50
    assert progress(250, 100) == 100
    assert progress(5, 0) == 0

async def test_dashboard_stats(admin_client, client, patient, procedure, session_factory, patient_data):
    await client.post("/api/patients/register", json=patient_data(email="pending@example.com"))
    await admin_client.post("/api/procedures", json={"name": "Retired", "default_cost": 10, "is_active": False})
    async with session_factory() as s:
        s.add(Treatment(
            patient_id=uuid.UUID(patient["id"]), treatment_date=local_today(),
            total_cost=Decimal("25000.00"), payment_status="paid",
        ))
        await s.commit()

    r = await admin_client.get("/api/dashboard/stats")
    assert r.status_code == 200
    body = r.json()
    assert body["total_patients"] == 2
    assert body["pending_registrations"] == 1
    assert body["today_appointments"] == 0
    assert body["monthly_revenue"] == 25000
    assert body["active_procedures"] == 1
    assert body["progress"] == {"patients": 2, "daily_schedule": 0, "monthly_revenue": 50, "procedures": 100}
    assert body["targets"]["patients"] == settings.TARGET_PATIENTS
    assert body["metadata"]["current_date"] == local_today().isoformat()

async def test_dashboard_requires_auth(client):
    r = await client.get("/api/dashboard/stats")
    assert r.status_code == 401

async def test_health_reports_degraded_without_email(client):
    r = await client.get("/api/health")
    assert r.status_code == 503
    body = r.json()
    assert body["status"] == "degraded"
    assert body["services"] == {"api": True, "database": True, "email": False}
    assert all(body["tables"].values())

async def test_health_is_healthy_with_email_provider(client, monkeypatch):
    monkeypatch.setattr(settings, "EMAIL_PROVIDER", "resend")
    monkeypatch.setattr(settings, "RESEND_API_KEY", "re_test")
    monkeypatch.setattr(settings, "FROM_EMAIL", "clinic@example.com")
    r = await client.get("/api/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"

async def test_medical_history_fields(admin_client):
    for name, active in [("Diabetes", True), ("Allergies", True), ("Smoker", False)]:
        r = await admin_client.post("/api/medical-history-fields", json={"field_name": name, "is_active": active})
        assert r.status_code == 201

    listed = await admin_client.get("/api/medical-history-fields")
    assert [f["field_name"] for f in listed.json()] == ["Allergies", "Diabetes", "Smoker"]

    active = await admin_client.get("/api/medical-history-fields", params={"active_only": "true"})
    fields = active.json()
    assert [f["field_name"] for f in fields] == ["Allergies", "Diabetes"]

    upd = await admin_client.put(f"/api/medical-history-fields/{fields[0]['id']}", json={"field_type": "text"})
    assert upd.json()["field_type"] == "text"

    bad = await admin_client.post("/api/medical-history-fields", json={"field_name": "Age", "field_type": "date"})
    assert bad.status_code == 400

    d = await admin_client.delete(f"/api/medical-history-fields/{fields[0]['id']}")
    assert d.status_code == 200
    assert (await admin_client.delete(f"/api/medical-history-fields/{fields[0]['id']}")).status_code == 404
