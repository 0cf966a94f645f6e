from datetime import date, timedelta
import pytest
from clinic.core.clock import local_today, time_label, date_label
from clinic.modules.appointments import booking_logic

def test_back_to_back_intervals_do_not_overlap():
    day = date(2030, 1, 7)
    first = booking_logic.interval(day, booking_logic.parse_hhmm("10:00"), 60)
    second = booking_logic.interval(day, booking_logic.parse_hhmm("11:00"), 30)
    inside = booking_logic.interval(day, booking_logic.parse_hhmm("10:30"), 30)
    assert not booking_logic.overlaps(first, second)
    assert booking_logic.overlaps(first, inside)

def test_available_slots_pad_busy_blocks():
    day = date(2030, 1, 7)
    slots = booking_logic.available_slots(
        day, 60, [(booking_logic.parse_hhmm("10:00"), 60)],
        opens=booking_logic.parse_hhmm("09:00"),
        closes=booking_logic.parse_hhmm("12:00"),
        step_minutes=30,
        break_minutes=15,
    )
    # 09:45-11:15 is blocked; the last hour-long slot starts at 11:00 which still touches it
    assert slots == []

    slots = booking_logic.available_slots(
        day, 30, [],
        opens=booking_logic.parse_hhmm("09:00"),
        closes=booking_logic.parse_hhmm("10:30"),
        step_minutes=30,
        break_minutes=15,
    )
    assert slots == ["09:00:00", "09:30:00", "10:00:00"]

@pytest.mark.parametrize("t, label", [("09:05", "9:05 AM"), ("00:00", "12:00 AM"), ("12:30", "12:30 PM"), ("17:45", "5:45 PM")])
def test_time_label(t, label):
    assert time_label(booking_logic.parse_hhmm(t)) == label

def test_date_label():
    assert date_label(date(2026, 1, 5)) == "Monday, January 05, 2026"

def _appt(patient, day, at="10:00:00", **extra):
    return {"patient_id": patient["id"], "appointment_date": day, "appointment_time": at, **extra}

async def test_create_appointment_includes_patient(admin_client, patient, future_day):
    r = await admin_client.post("/api/appointments", json=_appt(patient, future_day, reason="  ", notes="Bring x-rays"))
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["status"] == "scheduled"
    assert body["duration_minutes"] == 60
    assert body["reason"] is None
    assert body["notes"] == "Bring x-rays"
    assert body["email_sent"] is False
    assert body["patient"]["patient_code"] == patient["patient_code"]

async def test_create_rejects_unknown_patient_and_past_times(admin_client, patient, future_day):
    ghost = {**_appt(patient, future_day), "patient_id": "00000000-0000-0000-0000-000000000000"}
    assert (await admin_client.post("/api/appointments", json=ghost)).status_code == 404

    yesterday = (local_today() - timedelta(days=1)).isoformat()
    past = await admin_client.post("/api/appointments", json=_appt(patient, yesterday))
    assert past.status_code == 400
    assert "in advance" in past.json()["error"]

    bad_duration = await admin_client.post("/api/appointments", json=_appt(patient, future_day, duration_minutes=5))
    assert bad_duration.status_code == 400

@pytest.mark.parametrize("at", ["10:00:00+08:00", "10:00:00Z"])
async def test_times_with_utc_offset_are_rejected(admin_client, patient, future_day, at):
    created = await admin_client.post("/api/appointments", json=_appt(patient, future_day, at))
    assert created.status_code == 400
    assert "UTC offset" in created.json()["error"]

    a = (await admin_client.post("/api/appointments", json=_appt(patient, future_day))).json()
    moved = await admin_client.put(f"/api/appointments/{a['id']}", json={"appointment_time": at})
    assert moved.status_code == 400

async def test_conflicts(admin_client, patient, future_day):
    first = await admin_client.post("/api/appointments", json=_appt(patient, future_day, "10:00:00"))
    assert first.status_code == 201

    overlapping = await admin_client.post("/api/appointments", json=_appt(patient, future_day, "10:30:00"))
    assert overlapping.status_code == 409
    assert overlapping.json() == {"error": "Appointment time conflicts with existing appointment"}

    back_to_back = await admin_client.post("/api/appointments", json=_appt(patient, future_day, "11:00:00"))
    assert back_to_back.status_code == 201

    await admin_client.delete(f"/api/appointments/{first.json()['id']}")
    reuse = await admin_client.post("/api/appointments", json=_appt(patient, future_day, "10:00:00"))
    assert reuse.status_code == 201

async def test_update_moves_and_rechecks_conflicts(admin_client, patient, future_day):
    a = (await admin_client.post("/api/appointments", json=_appt(patient, future_day, "09:00:00"))).json()
    b = (await admin_client.post("/api/appointments", json=_appt(patient, future_day, "13:00:00"))).json()

    clash = await admin_client.put(f"/api/appointments/{b['id']}", json={"appointment_time": "09:30:00"})
    assert clash.status_code == 409

    moved = await admin_client.put(f"/api/appointments/{b['id']}", json={"appointment_time": "15:00:00", "duration_minutes": 90})
    assert moved.status_code == 200
    assert moved.json()["appointment_time"] == "15:00:00"
    assert moved.json()["duration_minutes"] == 90

    # extending in place must not conflict with itself
    longer = await admin_client.put(f"/api/appointments/{a['id']}", json={"duration_minutes": 120})
    assert longer.status_code == 200

    done = await admin_client.put(f"/api/appointments/{a['id']}", json={"status": "completed", "notes": "ok"})
    assert done.json()["status"] == "completed"

async def test_update_cannot_move_into_the_past(admin_client, patient, future_day):
    a = (await admin_client.post("/api/appointments", json=_appt(patient, future_day))).json()
    yesterday = (local_today() - timedelta(days=1)).isoformat()
    r = await admin_client.put(f"/api/appointments/{a['id']}", json={"appointment_date": yesterday})
    assert r.status_code == 400
    assert r.json() == {"error": "Cannot schedule appointments in the past"}

    missing = await admin_client.put("/api/appointments/00000000-0000-0000-0000-000000000000", json={"status": "completed"})
    assert missing.status_code == 404

async def test_cancel_and_list(admin_client, patient, future_day):
    later = (local_today() + timedelta(days=8)).isoformat()
    a = (await admin_client.post("/api/appointments", json=_appt(patient, later, "09:00:00"))).json()
    b = (await admin_client.post("/api/appointments", json=_appt(patient, future_day, "14:00:00"))).json()
    c = (await admin_client.post("/api/appointments", json=_appt(patient, future_day, "09:00:00"))).json()

    r = await admin_client.delete(f"/api/appointments/{b['id']}")
    assert r.status_code == 200
    assert r.json()["status"] == "cancelled"

    listed = await admin_client.get("/api/appointments")
    assert [x["id"] for x in listed.json()["appointments"]] == [c["id"], b["id"], a["id"]]
    assert listed.json()["pagination"]["total"] == 3

    scheduled = await admin_client.get("/api/appointments", params={"status": "scheduled", "start_date": future_day, "end_date": future_day})
    assert [x["id"] for x in scheduled.json()["appointments"]] == [c["id"]]

    by_patient = await admin_client.get("/api/appointments", params={"patient_id": patient["id"], "limit": 1})
    assert by_patient.json()["pagination"]["has_more"] is True

    detail = await admin_client.get(f"/api/appointments/{b['id']}")
    assert detail.json()["status"] == "cancelled"

async def test_availability(admin_client, patient, future_day):
    missing = await admin_client.get("/api/appointments/availability")
    assert missing.status_code == 400
    assert missing.json() == {"error": "Date parameter is required"}

    malformed = await admin_client.get("/api/appointments/availability", params={"date": "17/10/2030"})
    assert malformed.status_code == 400
    assert malformed.json() == {"error": "Date must be in YYYY-MM-DD format"}

    yesterday = (local_today() - timedelta(days=1)).isoformat()
    past = await admin_client.get("/api/appointments/availability", params={"date": yesterday})
    assert past.status_code == 200
    assert past.json()["available_slots"] == []
    assert past.json()["message"] == "Cannot book appointments in the past"

    free = await admin_client.get("/api/appointments/availability", params={"date": future_day})
    body = free.json()
    assert body["total_slots"] == 17
    assert body["available_slots"][0] == "09:00:00"
    assert body["available_slots"][-1] == "17:00:00"
    assert body["business_hours"]["slot_duration"] == 30

    await admin_client.post("/api/appointments", json=_appt(patient, future_day, "10:00:00"))
    busy = await admin_client.get("/api/appointments/availability", params={"date": future_day, "duration": 60})
    slots = busy.json()["available_slots"]
    assert slots[0] == "11:30:00"
    assert "11:00:00" not in slots
    assert busy.json()["total_slots"] == 12

async def test_notify_sends_email_and_marks_appointment(admin_client, patient, future_day, email):
    a = (await admin_client.post("/api/appointments", json=_appt(patient, future_day, "14:30:00", notes="Fasting"))).json()
    r = await admin_client.post("/api/appointments/notify", json={"appointment_id": a["id"]})
    assert r.status_code == 200
    assert r.json() == {"success": True, "email_id": "fake-1"}

    msg = email.sent[0]
    assert msg["to"] == patient["email"]
    assert "2:30 PM" in msg["html"]
    assert "Fasting" in msg["html"]

    detail = await admin_client.get(f"/api/appointments/{a['id']}")
    assert detail.json()["email_sent"] is True

async def test_notify_failures(admin_client, patient, patient_data, future_day, email):
    no_mail = (await admin_client.post("/api/patients", json=patient_data(email=None, phone="09170000009"))).json()
    a = (await admin_client.post("/api/appointments", json=_appt(no_mail, future_day, "09:00:00"))).json()
    r = await admin_client.post("/api/appointments/notify", json={"appointment_id": a["id"]})
    assert r.status_code == 400
    assert r.json() == {"error": "Patient does not have an email address"}

    b = (await admin_client.post("/api/appointments", json=_appt(patient, future_day, "13:00:00"))).json()
    email.fail = True
    r = await admin_client.post("/api/appointments/notify", json={"appointment_id": b["id"]})
    assert r.status_code == 500
    assert r.json() == {"error": "Failed to send email"}
    detail = await admin_client.get(f"/api/appointments/{b['id']}")
    assert detail.json()["email_sent"] is False

    missing = await admin_client.post("/api/appointments/notify", json={"appointment_id": "00000000-0000-0000-0000-000000000000"})
    assert missing.status_code == 404
