from datetime import date, datetime, timedelta

from hospital.core.security import UserRole
from hospital.models.appointment import Appointment, AppointmentStatus, AppointmentType
from hospital.models.catalog import Drug, InventoryItem, LabResult, LabResultStatus, LabTest
from hospital.services.dashboard_service import percent_change, format_change, time_ago

from .factories import auth_headers, create_staff_user

class TestDashboard:

    def test_stats_cards(self, client, admin_headers, patient):
        response = client.get("/api/dashboard/stats", headers=admin_headers)
        assert response.status_code == 200

        cards = response.json()["stats"]
        assert [card["title"] for card in cards] == [
            "Total Patients", "Today's Appointments", "Bed Occupancy", "Revenue (Month)"
        ]
        assert cards[0]["value"] == "1"
        assert cards[2]["value"] == "87%"
        assert cards[3]["value"] == "KSh 0.0M"

    def test_departments(self, client, admin_headers):
        departments = client.get("/api/dashboard/departments", headers=admin_headers).json()["departments"]
        assert [department["name"] for department in departments][:2] == ["Emergency", "Cardiology"]

    def test_activities(self, client, db_session, admin_headers, patient, doctor_user):
        db_session.add(Appointment(
            patient_id=patient.id,
            doctor_id=doctor_user.id,
            created_by=doctor_user.id,
            appointment_date=date(2030, 1, 15),
            appointment_time="09:00",
            type=AppointmentType.CONSULTATION,
            status=AppointmentStatus.SCHEDULED,
        ))
        db_session.commit()

        activities = client.get("/api/dashboard/activities", headers=admin_headers).json()["activities"]

        assert len(activities) == 1
        assert activities[0]["type"] == "appointment"
        assert activities[0]["patient"] == f"{patient.first_name} {patient.last_name}"
        assert activities[0]["department"] == "Cardiology"
        assert activities[0]["status"] == "scheduled"

    def test_alerts(self, client, db_session, admin_headers, patient):
        test = LabTest(name="Full Blood Count", price=850.0)
        db_session.add(test)
        db_session.flush()
        db_session.add_all([
            LabResult(patient_id=patient.id, test_id=test.id, status=LabResultStatus.CRITICAL),
            LabResult(
                patient_id=patient.id,
                test_id=test.id,
                status=LabResultStatus.PENDING,
                created_at=datetime.utcnow() - timedelta(hours=3),
            ),
            Drug(name="Amoxicillin", stock_quantity=5, reorder_level=20),
            Drug(name="Paracetamol", stock_quantity=500, reorder_level=50),
            InventoryItem(name="Surgical Gloves", quantity=10, reorder_level=10),
            InventoryItem(name="Syringes 5ml", quantity=3, reorder_level=100),
        ])
        db_session.commit()

        alerts = client.get("/api/dashboard/alerts", headers=admin_headers).json()["alerts"]
        by_id = {alert["id"]: alert for alert in alerts}

        assert by_id["critical-labs"]["message"] == "1 critical lab result requiring immediate attention"
        assert by_id["low-stock"]["message"] == "1 drug below reorder level"
        assert by_id["low-supplies"]["message"] == "2 inventory items below reorder level"
        assert by_id["pending-labs"]["type"] == "info"

    def test_no_alerts(self, client, admin_headers):
        assert client.get("/api/dashboard/alerts", headers=admin_headers).json() == {"alerts": []}

    def test_any_staff_role_can_read(self, client, db_session):
        researcher = create_staff_user(db_session, "research@hospital.co.ke", UserRole.RESEARCHER)

        response = client.get("/api/dashboard/stats", headers=auth_headers(researcher))
        assert response.status_code == 200

    def test_requires_token(self, client):
        assert client.get("/api/dashboard/stats").status_code == 401

class TestStaffDirectory:

    def test_doctors(self, client, db_session, receptionist_headers, doctor_user):
        create_staff_user(db_session, "locum@hospital.co.ke", UserRole.DOCTOR, is_active=False)

        doctors = client.get("/api/staff/doctors", headers=receptionist_headers).json()["doctors"]

        assert [doctor["id"] for doctor in doctors] == [doctor_user.id]
        assert doctors[0]["staff"]["department"] == "Cardiology"

    def test_filter_by_department(self, client, receptionist_headers, doctor_user):
        response = client.get("/api/staff", headers=receptionist_headers, params={"department": "cardiology"})
        assert response.status_code == 200

        data = response.json()
        assert [member["email"] for member in data["staff"]] == [doctor_user.email]
        assert data["pagination"]["total"] == 1

    def test_get_member(self, client, receptionist_headers, doctor_user):
        response = client.get(f"/api/staff/{doctor_user.id}", headers=receptionist_headers)
        assert response.status_code == 200
        assert response.json()["staffId"] == doctor_user.staff_id

        assert client.get("/api/staff/999", headers=receptionist_headers).status_code == 404

class TestHelpers:

    def test_percent_change(self):
        assert percent_change(150, 100) == "50.0"
        assert percent_change(5, 0) == "0"
        assert format_change("50.0") == "+50.0%"
        assert format_change("-12.5") == "-12.5%"

    def test_time_ago(self):
        now = datetime(2030, 1, 15, 12, 0)

        assert time_ago(None, now) == "Just now"
        assert time_ago(now - timedelta(seconds=30), now) == "Just now"
        assert time_ago(now - timedelta(minutes=1), now) == "1 minute ago"
        assert time_ago(now - timedelta(hours=2), now) == "2 hours ago"
        assert time_ago(now - timedelta(days=3), now) == "3 days ago"
