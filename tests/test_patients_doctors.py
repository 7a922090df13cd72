def test_create_and_lookup_patient(client):
    response = client.post("/api/patients", json={"name": "Ravi", "age": 41, "sex": "male", "mobile": "9000000001"})
    assert response.status_code == 201
    patient = response.json()["data"]

    assert client.get(f"/api/patients/{patient['id']}").json()["data"] == patient
    assert client.get("/api/patients/mobile/9000000001").json()["data"] == patient


def test_patient_validation(client):
    response = client.post("/api/patients", json={"name": "", "age": 0, "sex": "male"})
    assert response.status_code == 422


def test_unknown_patient_is_404(client):
    response = client.get("/api/patients/mobile/123")
    assert response.status_code == 404
    assert response.json()["message"] == "Patient not found"


def test_create_and_lookup_doctor(client):
    response = client.post("/api/doctors", json={"name": "Dr. Mehta"})
    assert response.status_code == 201
    doctor = response.json()["data"]

    assert client.get(f"/api/doctors/{doctor['id']}").json()["data"] == doctor
    assert client.get("/api/doctors/name/Dr. Mehta").json()["data"] == doctor
    assert client.get("/api/doctors/name/Nobody").status_code == 404


def test_patient_sex_is_normalised_and_restricted(client):
    created = client.post("/api/patients", json={"name": "Mira", "age": 29, "sex": " Female ", "mobile": "9000000002"})
    assert created.status_code == 201
    assert created.json()["data"]["sex"] == "female"

    rejected = client.post("/api/patients", json={"name": "Ravi", "age": 41, "sex": "unknown", "mobile": "111"})
    assert rejected.status_code == 422
    assert rejected.json()["error"] == "ValidationError"
