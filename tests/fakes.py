"""In-memory repositories for service tests."""
from datetime import datetime
from types import SimpleNamespace

from hospital.core.exceptions import DuplicateStaffId, SlotConflict
from hospital.core.security import UserRole
from hospital.models.appointment import ACTIVE_STATUSES
from hospital.repositories.base import (
    AppointmentRepository, Page, PatientRepository, UserRepository
)


class InMemoryRepository:
    def __init__(self):
        self.rows = {}
        self._next_id = 1

    def get(self, record_id):
        return self.rows.get(record_id)

    def add(self, record):
        record.id = self._next_id
        self._next_id += 1
        if getattr(record, "created_at", None) is None:
            record.created_at = datetime.utcnow()
        self.rows[record.id] = record
        return record

    def update(self, record, data):
        for field, value in data.items():
            setattr(record, field, value)
        return record


class InMemoryUserRepository(InMemoryRepository, UserRepository):
    """Rejects a taken staff code the way the unique column does."""

    def add(self, record):
        staff_id = getattr(record, "staff_id", None)
        if staff_id and any(getattr(user, "staff_id", None) == staff_id for user in self.rows.values()):
            raise DuplicateStaffId()
        return super().add(record)

    def add_user(self, email, role=UserRole.DOCTOR, is_active=True):
        return self.add(SimpleNamespace(email=email, role=role, is_active=is_active, staff=None))

    def get_by_email(self, email):
        return next((user for user in self.rows.values() if user.email == email), None)

    def get_doctor(self, user_id):
        user = self.get(user_id)
        if user and user.role == UserRole.DOCTOR and user.is_active:
            return user
        return None

    def list(self, skip=0, limit=10, role=None, department=None, active_only=False):
        users = [
            user for user in self.rows.values()
            if (role is None or user.role == role) and (not active_only or user.is_active)
        ]
        end = None if limit is None else skip + limit
        return Page(users[skip:end], len(users))


class InMemoryPatientRepository(InMemoryRepository, PatientRepository):
    def add_patient(self, national_id, first_name="Wanjiku"):
        return self.add(SimpleNamespace(national_id=national_id, first_name=first_name, is_active=True))

    def get_by_national_id(self, national_id):
        return next((patient for patient in self.rows.values() if patient.national_id == national_id), None)

    def count(self):
        return len(self.rows)

    def list(self, skip=0, limit=10, search=None):
        patients = [patient for patient in self.rows.values() if patient.is_active]
        return Page(patients[skip:skip + limit], len(patients))

    def search(self, term, limit=20):
        return [
            patient for patient in self.rows.values()
            if patient.is_active and term.lower() in patient.first_name.lower()
        ][:limit]

    def counts(self, since):
        patients = list(self.rows.values())
        active = [patient for patient in patients if patient.is_active]
        return {
            "total": len(patients),
            "active": len(active),
            "with_nhif": sum(1 for patient in active if getattr(patient, "nhif_number", None)),
            "new": sum(1 for patient in patients if patient.created_at.date() >= since),
        }


class InMemoryAppointmentRepository(InMemoryRepository, AppointmentRepository):
    """Enforces the unique ``slot_lock`` column like the database does."""

    def _check_lock(self, lock, record_id=None):
        if lock and any(
            other.slot_lock == lock and other.id != record_id for other in self.rows.values()
        ):
            raise SlotConflict()

    def add(self, record):
        self._check_lock(record.slot_lock)
        return super().add(record)

    def update(self, record, data):
        self._check_lock(data.get("slot_lock", record.slot_lock), record.id)
        return super().update(record, data)

    def list(self, skip=0, limit=10, status=None, doctor_id=None, patient_id=None, day=None):
        appointments = sorted(
            (
                appointment for appointment in self.rows.values()
                if (status is None or appointment.status == status)
                and (doctor_id is None or appointment.doctor_id == doctor_id)
                and (patient_id is None or appointment.patient_id == patient_id)
                and (day is None or appointment.appointment_date == day)
            ),
            key=lambda appointment: (appointment.appointment_date, appointment.appointment_time),
        )
        return Page(appointments[skip:skip + limit], len(appointments))

    def find_active(self, doctor_id, day, exclude_id=None):
        return sorted(
            (
                appointment for appointment in self.rows.values()
                if appointment.doctor_id == doctor_id
                and appointment.appointment_date == day
                and appointment.status in ACTIVE_STATUSES
                and appointment.id != exclude_id
            ),
            key=lambda appointment: appointment.appointment_time,
        )

    def count(self, date_from=None, date_to=None, statuses=None):
        statuses = list(statuses) if statuses is not None else None
        return sum(
            1 for appointment in self.rows.values()
            if (date_from is None or appointment.appointment_date >= date_from)
            and (date_to is None or appointment.appointment_date < date_to)
            and (statuses is None or appointment.status in statuses)
        )


class StaleReadAppointmentRepository(InMemoryAppointmentRepository):
    """Reports no existing bookings, as a concurrent request would see them."""

    def find_active(self, doctor_id, day, exclude_id=None):
        return []
