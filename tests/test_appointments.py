"""Appointment booking, listing, patching and cancellation."""

from medibook.models.user import Role


def _book(client, user, doctor_id, when="2030-05-01T10:00:00", **extra):
    payload = {"doctorId": doctor_id, "appointmentDate": when, **extra}
    return client.post("/api/appointments", json=payload, headers=user.headers)


def test_booking_flow_and_cancellation(client, patient, doctor_profile):
    created = _book(client, patient, doctor_profile["id"], "2030-05-01T10:00:00Z", reason="Checkup")
    assert created.status_code == 201
    appointment = created.json()
    assert appointment["status"] == "scheduled"
    assert appointment["patientId"] == patient.id
    assert appointment["appointmentDate"] == "2030-05-01T10:00:00"

    listed = client.get("/api/appointments", headers=patient.headers).json()
    assert [a["id"] for a in listed] == [appointment["id"]]
    assert listed[0]["doctor"]["user"]["firstName"] == "Dana"

    cancelled = client.delete(f"/api/appointments/{appointment['id']}", headers=patient.headers)
    assert cancelled.status_code == 204
    assert cancelled.content == b""

    listed = client.get("/api/appointments", headers=patient.headers).json()
    assert len(listed) == 1
    assert listed[0]["status"] == "cancelled"


def test_booking_ignores_client_supplied_patient_and_status(client, patient, other_patient, doctor_profile):
    response = _book(
        client, patient, doctor_profile["id"], patientId=other_patient.id, status="completed"
    )
    assert response.status_code == 201
    assert response.json()["patientId"] == patient.id
    assert response.json()["status"] == "scheduled"


def test_booking_requires_fields(client, patient):
    response = client.post("/api/appointments", json={"reason": "?"}, headers=patient.headers)
    assert response.status_code == 400
    paths = {tuple(issue["path"]) for issue in response.json()["errors"]}
    assert ("body", "doctorId") in paths
    assert ("body", "appointmentDate") in paths


def test_booking_unknown_doctor(client, patient):
    response = _book(client, patient, 404)
    assert response.status_code == 404
    assert response.json() == {"message": "Doctor not found"}


def test_booking_requires_authentication(client, doctor_profile):
    response = client.post(
        "/api/appointments",
        json={"doctorId": doctor_profile["id"], "appointmentDate": "2030-05-01T10:00:00"},
    )
    assert response.status_code == 401


def test_double_booking_is_rejected(client, patient, other_patient, doctor_profile):
    assert _book(client, patient, doctor_profile["id"]).status_code == 201

    clash = _book(client, other_patient, doctor_profile["id"])
    assert clash.status_code == 409

    # the same wall-clock instant expressed with an offset also clashes
    clash = _book(client, other_patient, doctor_profile["id"], "2030-05-01T12:00:00+02:00")
    assert clash.status_code == 409


def test_cancelled_slot_can_be_rebooked(client, patient, other_patient, doctor_profile):
    first = _book(client, patient, doctor_profile["id"]).json()
    client.delete(f"/api/appointments/{first['id']}", headers=patient.headers)

    assert _book(client, other_patient, doctor_profile["id"]).status_code == 201


def test_patient_list_is_own_and_newest_first(client, patient, other_patient, doctor_profile):
    early = _book(client, patient, doctor_profile["id"], "2030-01-01T09:00:00").json()
    late = _book(client, patient, doctor_profile["id"], "2030-03-01T09:00:00").json()
    middle = _book(client, patient, doctor_profile["id"], "2030-02-01T09:00:00").json()
    _book(client, other_patient, doctor_profile["id"], "2030-04-01T09:00:00")

    listed = client.get("/api/appointments", headers=patient.headers).json()
    assert [a["id"] for a in listed] == [late["id"], middle["id"], early["id"]]
    assert all(a["patientId"] == patient.id for a in listed)


def test_doctor_sees_appointments_against_profile(client, patient, other_patient, doctor_user, doctor_profile):
    _book(client, patient, doctor_profile["id"], "2030-01-01T09:00:00")
    _book(client, other_patient, doctor_profile["id"], "2030-01-02T09:00:00")

    listed = client.get("/api/appointments", headers=doctor_user.headers).json()
    assert [a["patientId"] for a in listed] == [other_patient.id, patient.id]
    assert listed[0]["patient"]["firstName"] == "Otto"


def test_doctor_without_profile_sees_nothing(client, make_user):
    doc = make_user("doctor-9", Role.DOCTOR)
    response = client.get("/api/appointments", headers=doc.headers)
    assert response.status_code == 200
    assert response.json() == []


def test_get_appointment_restricted_to_participants(client, patient, other_patient, doctor_user, doctor_profile):
    appointment = _book(client, patient, doctor_profile["id"]).json()
    url = f"/api/appointments/{appointment['id']}"

    assert client.get(url, headers=patient.headers).status_code == 200
    assert client.get(url, headers=doctor_user.headers).status_code == 200
    assert client.get(url, headers=other_patient.headers).status_code == 403
    assert client.get("/api/appointments/999", headers=patient.headers).status_code == 404


def test_update_by_participants(client, patient, doctor_user, doctor_profile):
    appointment = _book(client, patient, doctor_profile["id"], reason="Chest pain").json()
    url = f"/api/appointments/{appointment['id']}"

    moved = client.patch(url, json={"appointmentDate": "2030-06-01T11:30:00"}, headers=patient.headers)
    assert moved.status_code == 200
    assert moved.json()["appointmentDate"] == "2030-06-01T11:30:00"
    assert moved.json()["reason"] == "Chest pain"

    noted = client.patch(url, json={"notes": "Bring ECG"}, headers=doctor_user.headers)
    assert noted.status_code == 200
    assert noted.json()["notes"] == "Bring ECG"
    assert noted.json()["appointmentDate"] == "2030-06-01T11:30:00"


def test_update_by_stranger_is_forbidden(client, patient, other_patient, make_user, doctor_profile):
    appointment = _book(client, patient, doctor_profile["id"]).json()
    url = f"/api/appointments/{appointment['id']}"
    other_doctor = make_user("doctor-2", Role.DOCTOR)
    client.post("/api/doctors", json={"specialty": "Oncology"}, headers=other_doctor.headers)

    assert client.patch(url, json={"notes": "x"}, headers=other_patient.headers).status_code == 403
    assert client.patch(url, json={"notes": "x"}, headers=other_doctor.headers).status_code == 403
    assert client.delete(url, headers=other_patient.headers).status_code == 403


def test_reschedule_into_taken_slot_conflicts(client, patient, other_patient, doctor_profile):
    _book(client, patient, doctor_profile["id"], "2030-05-01T10:00:00")
    mine = _book(client, other_patient, doctor_profile["id"], "2030-05-01T11:00:00").json()

    response = client.patch(
        f"/api/appointments/{mine['id']}",
        json={"appointmentDate": "2030-05-01T10:00:00"},
        headers=other_patient.headers,
    )
    assert response.status_code == 409


def test_only_attending_doctor_completes(client, patient, doctor_user, doctor_profile):
    appointment = _book(client, patient, doctor_profile["id"]).json()
    url = f"/api/appointments/{appointment['id']}"

    assert client.patch(url, json={"status": "completed"}, headers=patient.headers).status_code == 403

    done = client.patch(url, json={"status": "completed"}, headers=doctor_user.headers)
    assert done.status_code == 200
    assert done.json()["status"] == "completed"

    # terminal: no cancellation, no rescheduling, notes still allowed
    assert client.delete(url, headers=patient.headers).status_code == 409
    assert client.patch(url, json={"status": "scheduled"}, headers=doctor_user.headers).status_code == 409
    assert (
        client.patch(url, json={"appointmentDate": "2031-01-01T10:00:00"}, headers=patient.headers).status_code
        == 409
    )
    assert client.patch(url, json={"notes": "Follow up in 6 months"}, headers=doctor_user.headers).status_code == 200


def test_cancel_is_idempotent(client, patient, doctor_profile):
    appointment = _book(client, patient, doctor_profile["id"]).json()
    url = f"/api/appointments/{appointment['id']}"

    assert client.delete(url, headers=patient.headers).status_code == 204
    assert client.delete(url, headers=patient.headers).status_code == 204
    assert client.get(url, headers=patient.headers).json()["status"] == "cancelled"


def test_cancel_via_patch(client, patient, doctor_profile):
    appointment = _book(client, patient, doctor_profile["id"]).json()
    response = client.patch(
        f"/api/appointments/{appointment['id']}", json={"status": "cancelled"}, headers=patient.headers
    )
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"


def test_cancel_missing_appointment(client, patient):
    response = client.delete("/api/appointments/12345", headers=patient.headers)
    assert response.status_code == 404
    assert response.json() == {"message": "Appointment not found"}


def test_update_rejects_invalid_status(client, patient, doctor_profile):
    appointment = _book(client, patient, doctor_profile["id"]).json()
    response = client.patch(
        f"/api/appointments/{appointment['id']}", json={"status": "postponed"}, headers=patient.headers
    )
    assert response.status_code == 400
