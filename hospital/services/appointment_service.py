from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional
import logging

from ..core.exceptions import DoctorNotFound, NotFound, PatientNotFound, SlotConflict
from ..models.appointment import ACTIVE_STATUSES, Appointment, AppointmentStatus
from ..repositories.base import AppointmentRepository, Page, PatientRepository, UserRepository
from ..schemas.appointment import AppointmentCreate
from .scheduling import ConflictPolicy, ExactSlotPolicy, available_slots, slot_lock_key

logger = logging.getLogger(__name__)

# Never writable through update()
PROTECTED_FIELDS = frozenset({"id", "created_at", "updated_at", "created_by", "slot_lock"})
# The only column update() may clear
NULLABLE_FIELDS = frozenset({"notes"})
# Changing any of these moves the booking to another slot
SLOT_FIELDS = ("doctor_id", "appointment_date", "appointment_time", "duration")


class AppointmentService:
    """Booking, rescheduling and cancellation of doctor appointments.

    ``slot_locking`` decides what happens when two requests book the same slot
    at the same time. Off, the conflict check and the insert are separate
    steps and both requests may succeed. On, each active appointment stores a
    unique ``slot_lock`` key and the store rejects the second insert, which is
    reported as ``SlotConflict``.
    """

    def __init__(
        self,
        appointments: AppointmentRepository,
        patients: PatientRepository,
        users: UserRepository,
        conflict_policy: Optional[ConflictPolicy] = None,
        slot_locking: bool = False,
    ):
        self.appointments = appointments
        self.patients = patients
        self.users = users
        self.conflict_policy = conflict_policy or ExactSlotPolicy()
        self.slot_locking = slot_locking

    def _lock_for(self, doctor_id, day, time_label, status) -> Optional[str]:
        if not self.slot_locking or status not in ACTIVE_STATUSES:
            return None
        return slot_lock_key(doctor_id, day, time_label)

    def create(self, data: AppointmentCreate, created_by: int) -> Appointment:
        if not self.patients.get(data.patient_id):
            raise PatientNotFound()

        if not self.users.get_doctor(data.doctor_id):
            raise DoctorNotFound()

        existing = self.appointments.find_active(data.doctor_id, data.appointment_date)
        conflict = self.conflict_policy.find_conflict(data.appointment_time, data.duration, existing)
        if conflict is not None:
            logger.warning(
                f"Slot conflict for doctor_id={data.doctor_id} on {data.appointment_date} "
                f"at {data.appointment_time} (appointment_id={conflict.id})"
            )
            raise SlotConflict()

        appointment = Appointment(
            patient_id=data.patient_id,
            doctor_id=data.doctor_id,
            created_by=created_by,
            appointment_date=data.appointment_date,
            appointment_time=data.appointment_time,
            duration=data.duration,
            type=data.type,
            status=AppointmentStatus.SCHEDULED,
            notes=data.notes,
        )
        appointment.slot_lock = self._lock_for(
            data.doctor_id, data.appointment_date, data.appointment_time, AppointmentStatus.SCHEDULED
        )

        appointment = self.appointments.add(appointment)
        logger.info(
            f"Created appointment_id={appointment.id} for doctor_id={appointment.doctor_id} "
            f"on {appointment.appointment_date} at {appointment.appointment_time}"
        )
        return appointment

    def get(self, appointment_id: int) -> Appointment:
        appointment = self.appointments.get(appointment_id)
        if not appointment:
            raise NotFound("Appointment")
        return appointment

    def list(
        self,
        page: int = 1,
        limit: int = 10,
        status: Optional[AppointmentStatus] = None,
        doctor_id: Optional[int] = None,
        patient_id: Optional[int] = None,
        day: Optional[date] = None,
    ) -> Page:
        return self.appointments.list(
            skip=(page - 1) * limit,
            limit=limit,
            status=status,
            doctor_id=doctor_id,
            patient_id=patient_id,
            day=day,
        )

    def update(self, appointment_id: int, changes: Dict[str, Any]) -> Appointment:
        """Apply a partial update, re-checking references and the slot when they change."""
        appointment = self.get(appointment_id)

        data = {
            field: value for field, value in changes.items()
            if field not in PROTECTED_FIELDS and (value is not None or field in NULLABLE_FIELDS)
        }
        if isinstance(data.get("appointment_date"), datetime):
            data["appointment_date"] = data["appointment_date"].date()

        if "patient_id" in data and not self.patients.get(data["patient_id"]):
            raise PatientNotFound()

        if "doctor_id" in data and not self.users.get_doctor(data["doctor_id"]):
            raise DoctorNotFound()

        doctor_id = data.get("doctor_id", appointment.doctor_id)
        day = data.get("appointment_date", appointment.appointment_date)
        time_label = data.get("appointment_time", appointment.appointment_time)
        duration = data.get("duration", appointment.duration)
        status = data.get("status", appointment.status)

        moved = any(
            field in data and data[field] != getattr(appointment, field) for field in SLOT_FIELDS
        )
        if moved and status in ACTIVE_STATUSES:
            existing = self.appointments.find_active(doctor_id, day, exclude_id=appointment.id)
            conflict = self.conflict_policy.find_conflict(time_label, duration, existing)
            if conflict is not None:
                logger.warning(
                    f"Slot conflict rescheduling appointment_id={appointment_id} to doctor_id={doctor_id} "
                    f"on {day} at {time_label} (appointment_id={conflict.id})"
                )
                raise SlotConflict()

        if self.slot_locking:
            data["slot_lock"] = self._lock_for(doctor_id, day, time_label, status)

        appointment = self.appointments.update(appointment, data)
        logger.info(f"Updated appointment_id={appointment_id}: {sorted(data)}")
        return appointment

    def cancel(self, appointment_id: int, reason: Optional[str] = None) -> Appointment:
        """Mark an appointment cancelled. Cancelling twice is harmless."""
        appointment = self.get(appointment_id)

        note = f"Cancelled: {reason}" if reason else "Cancelled"
        notes = f"{appointment.notes}\n{note}" if appointment.notes else note

        appointment = self.appointments.update(appointment, {
            "status": AppointmentStatus.CANCELLED,
            "notes": notes,
            "slot_lock": None,
        })
        logger.info(f"Cancelled appointment_id={appointment_id}")
        return appointment

    def list_availability(self, doctor_id: int, day: date) -> List[str]:
        existing = self.appointments.find_active(doctor_id, day)
        return available_slots(existing, self.conflict_policy)

    def stats(self, today: Optional[date] = None) -> Dict[str, Any]:
        today = today or date.today()
        # Weeks start on Sunday
        start_of_week = today - timedelta(days=(today.weekday() + 1) % 7)

        total = self.appointments.count()
        completed = self.appointments.count(statuses=[AppointmentStatus.COMPLETED])

        return {
            "today_appointments": self.appointments.count(date_from=today, date_to=today + timedelta(days=1)),
            "week_appointments": self.appointments.count(
                date_from=start_of_week, date_to=start_of_week + timedelta(days=7)
            ),
            "total_appointments": total,
            "completed_appointments": completed,
            "cancelled_appointments": self.appointments.count(statuses=[AppointmentStatus.CANCELLED]),
            "pending_appointments": self.appointments.count(
                statuses=[AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED]
            ),
            "completion_rate": f"{completed / total * 100:.1f}" if total > 0 else "0",
        }
