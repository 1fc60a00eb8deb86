import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ..core.exceptions import SlotConflict
from ..models.appointment import ACTIVE_STATUSES, Appointment
from ..models.user import User
from .base import AppointmentRepository, Page

logger = logging.getLogger(__name__)


class SQLAlchemyAppointmentRepository(AppointmentRepository):
    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(Appointment).options(
            joinedload(Appointment.patient),
            joinedload(Appointment.doctor).joinedload(User.staff),
        )

    def get(self, record_id):
        return self._query().filter(Appointment.id == record_id).first()

    def list(self, skip=0, limit=10, status=None, doctor_id=None, patient_id=None, day=None):
        query = self.db.query(Appointment)

        if status is not None:
            query = query.filter(Appointment.status == status)
        if doctor_id is not None:
            query = query.filter(Appointment.doctor_id == doctor_id)
        if patient_id is not None:
            query = query.filter(Appointment.patient_id == patient_id)
        if day is not None:
            query = query.filter(Appointment.appointment_date == day)

        total = query.count()
        appointments = query.options(
            joinedload(Appointment.patient),
            joinedload(Appointment.doctor).joinedload(User.staff),
        ).order_by(
            Appointment.appointment_date, Appointment.appointment_time
        ).offset(skip).limit(limit).all()
        return Page(appointments, total)

    def find_active(self, doctor_id, day, exclude_id=None):
        query = self.db.query(Appointment).filter(
            Appointment.doctor_id == doctor_id,
            Appointment.appointment_date == day,
            Appointment.status.in_(ACTIVE_STATUSES)
        )
        if exclude_id is not None:
            query = query.filter(Appointment.id != exclude_id)
        return query.order_by(Appointment.appointment_time).all()

    def count(self, date_from=None, date_to=None, statuses=None):
        query = self.db.query(Appointment)
        if date_from is not None:
            query = query.filter(Appointment.appointment_date >= date_from)
        if date_to is not None:
            query = query.filter(Appointment.appointment_date < date_to)
        if statuses is not None:
            query = query.filter(Appointment.status.in_(list(statuses)))
        return query.count()

    def _commit(self, record):
        doctor_id = record.doctor_id
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if "slot_lock" not in str(e.orig):
                raise
            logger.warning(f"Slot lock rejected appointment for doctor_id={doctor_id}: {e.orig}")
            raise SlotConflict()
        return self.get(record.id)

    def add(self, record):
        self.db.add(record)
        return self._commit(record)

    def update(self, record, data):
        for field, value in data.items():
            setattr(record, field, value)
        return self._commit(record)
