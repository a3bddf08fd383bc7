"""Doctor profile management and search."""

from medibook.models.user import Role


def test_doctor_creates_own_profile(client, doctor_user):
    response = client.post(
        "/api/doctors",
        json={"specialty": "Neurology", "userId": "someone-else", "experienceYears": 12},
        headers=doctor_user.headers,
    )
    assert response.status_code == 201
    body = response.json()
    assert body["userId"] == doctor_user.id
    assert body["specialty"] == "Neurology"
    assert body["isAvailable"] is True


def test_patient_cannot_create_profile(client, patient):
    response = client.post("/api/doctors", json={"specialty": "Neurology"}, headers=patient.headers)
    assert response.status_code == 403
    assert response.json() == {"message": "Only doctors can create a doctor profile"}

    assert client.get(f"/api/doctors/profile/{patient.id}", headers=patient.headers).status_code == 404
    assert client.get("/api/doctors", params={"availability": "all"}).json() == []


def test_anonymous_cannot_create_profile(client):
    assert client.post("/api/doctors", json={"specialty": "Neurology"}).status_code == 401


def test_second_profile_conflicts(client, doctor_user, doctor_profile):
    response = client.post("/api/doctors", json={"specialty": "Oncology"}, headers=doctor_user.headers)
    assert response.status_code == 409


def test_create_profile_validates_payload(client, doctor_user):
    response = client.post(
        "/api/doctors", json={"specialty": "", "consultationFee": -5}, headers=doctor_user.headers
    )
    assert response.status_code == 400
    paths = {tuple(issue["path"]) for issue in response.json()["errors"]}
    assert ("body", "specialty") in paths
    assert ("body", "consultationFee") in paths


def test_get_doctor_is_public(client, doctor_profile, doctor_user):
    response = client.get(f"/api/doctors/{doctor_profile['id']}")
    assert response.status_code == 200
    body = response.json()
    assert body["specialty"] == "Cardiology"
    assert body["user"]["id"] == doctor_user.id
    assert body["user"]["firstName"] == "Dana"


def test_get_missing_doctor(client):
    response = client.get("/api/doctors/999")
    assert response.status_code == 404
    assert response.json() == {"message": "Doctor not found"}


def test_get_profile_by_owner(client, patient, doctor_user, doctor_profile):
    response = client.get(f"/api/doctors/profile/{doctor_user.id}", headers=patient.headers)
    assert response.status_code == 200
    assert response.json()["id"] == doctor_profile["id"]

    assert client.get(f"/api/doctors/profile/{doctor_user.id}").status_code == 401


def test_search_by_specialty_returns_only_available_matches(client, make_user):
    profiles = [
        ("doc-a", {"specialty": "Cardiology"}),
        ("doc-b", {"specialty": "Cardiology", "isAvailable": False}),
        ("doc-c", {"specialty": "Dermatology"}),
    ]
    for user_id, payload in profiles:
        doc = make_user(user_id, Role.DOCTOR)
        assert client.post("/api/doctors", json=payload, headers=doc.headers).status_code == 201

    response = client.get("/api/doctors", params={"specialty": "Cardiology"})
    assert response.status_code == 200
    assert [d["userId"] for d in response.json()] == ["doc-a"]

    everyone_available = client.get("/api/doctors").json()
    assert {d["userId"] for d in everyone_available} == {"doc-a", "doc-c"}

    all_specialties = client.get("/api/doctors", params={"specialty": "All Specialties"}).json()
    assert {d["userId"] for d in all_specialties} == {"doc-a", "doc-c"}

    unavailable = client.get("/api/doctors", params={"availability": "false"}).json()
    assert [d["userId"] for d in unavailable] == ["doc-b"]

    assert len(client.get("/api/doctors", params={"availability": "all"}).json()) == 3


def test_search_rejects_unknown_availability(client):
    response = client.get("/api/doctors", params={"availability": "maybe"})
    assert response.status_code == 400


def test_partial_update_changes_only_supplied_fields(client, doctor_user, doctor_profile):
    response = client.patch(
        f"/api/doctors/{doctor_profile['id']}",
        json={"specialty": "Pediatrics"},
        headers=doctor_user.headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["specialty"] == "Pediatrics"
    for field in ("bio", "consultationFee", "isAvailable", "userId", "licenseNumber", "experienceYears"):
        assert body[field] == doctor_profile[field]


def test_update_rejects_null_for_required_field(client, doctor_user, doctor_profile):
    response = client.patch(
        f"/api/doctors/{doctor_profile['id']}", json={"specialty": None}, headers=doctor_user.headers
    )
    assert response.status_code == 400


def test_only_owner_can_update(client, make_user, doctor_profile):
    intruder = make_user("doctor-2", Role.DOCTOR)
    response = client.patch(
        f"/api/doctors/{doctor_profile['id']}", json={"bio": "hacked"}, headers=intruder.headers
    )
    assert response.status_code == 403

    assert client.get(f"/api/doctors/{doctor_profile['id']}").json()["bio"] == "Heart specialist"


def test_update_missing_doctor(client, doctor_user):
    response = client.patch("/api/doctors/42", json={"bio": "x"}, headers=doctor_user.headers)
    assert response.status_code == 404
