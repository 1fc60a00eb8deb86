import logging

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.exceptions import DuplicateNationalId
from ..models.patient import Patient
from .base import Page, PatientRepository

logger = logging.getLogger(__name__)


def search_filter(term: str, include_nhif: bool = False):
    pattern = f"%{term}%"
    clauses = [
        Patient.first_name.ilike(pattern),
        Patient.last_name.ilike(pattern),
        Patient.patient_number.ilike(pattern),
        Patient.phone.contains(term),
        Patient.national_id.contains(term),
    ]
    if include_nhif:
        clauses.append(Patient.nhif_number.contains(term))
    return or_(*clauses)


class SQLAlchemyPatientRepository(PatientRepository):
    def __init__(self, db: Session):
        self.db = db

    def get(self, record_id):
        return self.db.query(Patient).filter(Patient.id == record_id).first()

    def get_by_national_id(self, national_id):
        return self.db.query(Patient).filter(Patient.national_id == national_id).first()

    def count(self):
        return self.db.query(Patient).count()

    def list(self, skip=0, limit=10, search=None):
        query = self.db.query(Patient).filter(Patient.is_active == True)  # noqa: E712
        if search:
            query = query.filter(search_filter(search))

        total = query.count()
        patients = query.order_by(Patient.created_at.desc(), Patient.id.desc()).offset(skip).limit(limit).all()
        return Page(patients, total)

    def counts(self, since):
        active = Patient.is_active == True  # noqa: E712
        return {
            "total": self.db.query(Patient).count(),
            "active": self.db.query(Patient).filter(active).count(),
            "with_nhif": self.db.query(Patient).filter(Patient.nhif_number.isnot(None), active).count(),
            "new": self.db.query(Patient).filter(Patient.created_at >= since).count(),
        }

    def search(self, term, limit=20):
        return self.db.query(Patient).filter(
            Patient.is_active == True,  # noqa: E712
            search_filter(term, include_nhif=True)
        ).limit(limit).all()

    def _commit(self, record):
        patient_number = record.patient_number
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if "national_id" not in str(e.orig):
                raise
            logger.warning(f"National ID collision for patient {patient_number}")
            raise DuplicateNationalId()
        self.db.refresh(record)
        return record

    def add(self, record):
        self.db.add(record)
        return self._commit(record)

    def update(self, record, data):
        for field, value in data.items():
            setattr(record, field, value)
        return self._commit(record)
