from datetime import date

from hospital.core.security import UserRole
from hospital.models.appointment import Appointment, AppointmentStatus, AppointmentType
from hospital.services.patient_service import format_patient_number

from .factories import auth_headers, create_patient, create_staff_user

# Test data
test_patient_data = {
    "firstName": "Wanjiru",
    "middleName": "Njeri",
    "lastName": "Kariuki",
    "dateOfBirth": "1985-03-21",
    "gender": "FEMALE",
    "phone": "+254722000111",
    "email": "wanjiru.kariuki@example.com",
    "nationalId": "28765432",
    "nhifNumber": "NHIF-0098123",
    "county": "Kiambu",
    "address": "Thika Road",
    "emergencyContactName": "Peter Kariuki",
    "emergencyContactPhone": "+254733000222",
    "emergencyContactRelation": "Husband",
    "bloodGroup": "O_POSITIVE",
    "allergies": "Penicillin"
}

def second_patient_data(**fields):
    data = {
        **test_patient_data,
        "firstName": "Kipchoge",
        "lastName": "Rotich",
        "gender": "MALE",
        "nationalId": "31234567",
        "nhifNumber": None,
        "email": None,
    }
    data.update(fields)
    return data

class TestRegisterPatient:

    def test_register(self, client, receptionist_headers):
        response = client.post("/api/patients", headers=receptionist_headers, json=test_patient_data)
        assert response.status_code == 201

        data = response.json()
        assert data["message"] == "Patient registered successfully"
        patient = data["patient"]
        assert patient["patientNumber"] == "P000001"
        assert patient["nationalId"] == "28765432"
        assert patient["bloodGroup"] == "O_POSITIVE"
        assert patient["isActive"] is True

    def test_patient_numbers_increase(self, client, receptionist_headers):
        first = client.post("/api/patients", headers=receptionist_headers, json=test_patient_data)
        second = client.post("/api/patients", headers=receptionist_headers, json=second_patient_data())

        assert first.json()["patient"]["patientNumber"] == "P000001"
        assert second.json()["patient"]["patientNumber"] == "P000002"

    def test_duplicate_national_id(self, client, receptionist_headers):
        """A repeated national ID is refused and no second record is written."""
        client.post("/api/patients", headers=receptionist_headers, json=test_patient_data)

        response = client.post(
            "/api/patients",
            headers=receptionist_headers,
            json=second_patient_data(nationalId=test_patient_data["nationalId"])
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Patient with this National ID already exists"}

        listing = client.get("/api/patients", headers=receptionist_headers).json()
        assert listing["pagination"]["total"] == 1

    def test_invalid_phone(self, client, receptionist_headers):
        response = client.post(
            "/api/patients",
            headers=receptionist_headers,
            json={**test_patient_data, "phone": "0722000111"}
        )
        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "phone"

    def test_missing_required_fields(self, client, receptionist_headers):
        response = client.post("/api/patients", headers=receptionist_headers, json={"firstName": "Jane"})
        assert response.status_code == 400

        fields = {detail["field"] for detail in response.json()["details"]}
        assert {"lastName", "nationalId", "county"} <= fields

    def test_lab_tech_cannot_register(self, client, db_session):
        lab_tech = create_staff_user(db_session, "lab@hospital.co.ke", UserRole.LAB_TECH, department="Laboratory")

        response = client.post("/api/patients", headers=auth_headers(lab_tech), json=test_patient_data)
        assert response.status_code == 403

    def test_lab_tech_can_read(self, client, db_session, patient):
        lab_tech = create_staff_user(db_session, "lab@hospital.co.ke", UserRole.LAB_TECH, department="Laboratory")

        response = client.get("/api/patients", headers=auth_headers(lab_tech))
        assert response.status_code == 200
        assert response.json()["pagination"]["total"] == 1

class TestPatientQueries:

    def test_list_hides_inactive(self, client, db_session, receptionist_headers):
        create_patient(db_session, first_name="Active")
        create_patient(db_session, first_name="Archived", is_active=False)

        response = client.get("/api/patients", headers=receptionist_headers)
        assert [patient["firstName"] for patient in response.json()["patients"]] == ["Active"]

    def test_list_search(self, client, db_session, receptionist_headers):
        create_patient(db_session, first_name="Mercy", last_name="Chebet")
        create_patient(db_session, first_name="Brian", last_name="Omondi")

        response = client.get("/api/patients", headers=receptionist_headers, params={"search": "cheb"})
        assert [patient["lastName"] for patient in response.json()["patients"]] == ["Chebet"]

    def test_search_matches_nhif(self, client, db_session, receptionist_headers):
        create_patient(db_session, nhif_number="NHIF-777")
        create_patient(db_session)

        response = client.get("/api/patients/search/NHIF-777", headers=receptionist_headers)
        assert response.status_code == 200
        assert [patient["nhifNumber"] for patient in response.json()["patients"]] == ["NHIF-777"]

    def test_get_with_recent_appointments(self, client, db_session, receptionist_headers, patient, doctor_user):
        for day in (date(2030, 1, 10), date(2030, 1, 20)):
            db_session.add(Appointment(
                patient_id=patient.id,
                doctor_id=doctor_user.id,
                created_by=doctor_user.id,
                appointment_date=day,
                appointment_time="10:00",
                type=AppointmentType.FOLLOW_UP,
                status=AppointmentStatus.SCHEDULED,
            ))
        db_session.commit()

        response = client.get(f"/api/patients/{patient.id}", headers=receptionist_headers)
        assert response.status_code == 200

        detail = response.json()["patient"]
        assert detail["patientNumber"] == patient.patient_number
        assert [item["appointmentDate"] for item in detail["appointments"]] == ["2030-01-20", "2030-01-10"]

    def test_get_missing(self, client, receptionist_headers):
        response = client.get("/api/patients/999", headers=receptionist_headers)
        assert response.status_code == 404
        assert response.json() == {"error": "Patient not found"}

    def test_stats(self, client, receptionist_headers):
        client.post("/api/patients", headers=receptionist_headers, json=test_patient_data)
        client.post("/api/patients", headers=receptionist_headers, json=second_patient_data())

        response = client.get("/api/patients/stats/overview", headers=receptionist_headers)
        assert response.status_code == 200

        data = response.json()
        assert data["totalPatients"] == 2
        assert data["activePatients"] == 2
        assert data["patientsWithNHIF"] == 1
        assert data["nhifCoverage"] == "50.0"

    def test_stats_empty(self, client, receptionist_headers):
        data = client.get("/api/patients/stats/overview", headers=receptionist_headers).json()
        assert data["totalPatients"] == 0
        assert data["nhifCoverage"] == 0

class TestUpdatePatient:

    def test_update(self, client, receptionist_headers, patient):
        response = client.put(
            f"/api/patients/{patient.id}",
            headers=receptionist_headers,
            json={"county": "Mombasa", "patientNumber": "P999999", "id": 42}
        )
        assert response.status_code == 200

        updated = response.json()["patient"]
        assert updated["county"] == "Mombasa"
        assert updated["patientNumber"] == patient.patient_number
        assert updated["id"] == patient.id

    def test_update_to_taken_national_id(self, client, db_session, receptionist_headers, patient):
        other = create_patient(db_session)

        response = client.put(
            f"/api/patients/{other.id}",
            headers=receptionist_headers,
            json={"nationalId": patient.national_id}
        )
        assert response.status_code == 400

    def test_update_rejects_null_required_field(self, client, receptionist_headers, patient):
        response = client.put(f"/api/patients/{patient.id}", headers=receptionist_headers, json={"phone": None})
        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "phone"

    def test_update_clears_optional_field(self, client, receptionist_headers, patient):
        response = client.put(f"/api/patients/{patient.id}", headers=receptionist_headers, json={"allergies": None})
        assert response.status_code == 200
        assert response.json()["patient"]["allergies"] is None

    def test_update_missing(self, client, receptionist_headers):
        response = client.put("/api/patients/999", headers=receptionist_headers, json={"county": "Nakuru"})
        assert response.status_code == 404

def test_format_patient_number():
    assert format_patient_number(1) == "P000001"
    assert format_patient_number(123456) == "P123456"
