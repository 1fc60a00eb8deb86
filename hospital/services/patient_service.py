from datetime import date
from typing import Any, Dict, List, Optional
import logging

from ..core.exceptions import DuplicateNationalId, NotFound
from ..models.patient import Patient
from ..repositories.base import Page, PatientRepository
from ..schemas.patient import PatientCreate

logger = logging.getLogger(__name__)

PROTECTED_FIELDS = frozenset({"id", "patient_number", "created_at", "updated_at"})


def format_patient_number(sequence: int) -> str:
    return f"P{sequence:06d}"


class PatientService:
    def __init__(self, patients: PatientRepository):
        self.patients = patients

    def list(self, page: int = 1, limit: int = 10, search: Optional[str] = None) -> Page:
        return self.patients.list(skip=(page - 1) * limit, limit=limit, search=search)

    def get(self, patient_id: int) -> Patient:
        patient = self.patients.get(patient_id)
        if not patient:
            raise NotFound("Patient")
        return patient

    def recent_appointments(self, patient: Patient, limit: int = 10) -> List:
        return sorted(
            patient.appointments,
            key=lambda appointment: (appointment.appointment_date, appointment.appointment_time),
            reverse=True,
        )[:limit]

    def create(self, data: PatientCreate) -> Patient:
        """Register a patient and assign the next sequential patient number."""
        if self.patients.get_by_national_id(data.national_id):
            raise DuplicateNationalId()

        patient = Patient(
            **data.model_dump(),
            patient_number=format_patient_number(self.patients.count() + 1),
            is_active=True,
        )
        patient = self.patients.add(patient)

        logger.info(f"Registered patient {patient.patient_number} (id={patient.id})")
        return patient

    def update(self, patient_id: int, changes: Dict[str, Any]) -> Patient:
        patient = self.get(patient_id)
        data = {field: value for field, value in changes.items() if field not in PROTECTED_FIELDS}

        national_id = data.get("national_id")
        if national_id and national_id != patient.national_id and self.patients.get_by_national_id(national_id):
            raise DuplicateNationalId()

        patient = self.patients.update(patient, data)
        logger.info(f"Updated patient {patient.patient_number}: {sorted(data)}")
        return patient

    def search(self, term: str) -> List[Patient]:
        return self.patients.search(term)

    def stats(self, today: Optional[date] = None) -> Dict[str, Any]:
        today = today or date.today()
        counts = self.patients.counts(since=today.replace(day=1))

        total = counts["total"]
        with_nhif = counts["with_nhif"]

        return {
            "total_patients": total,
            "new_patients_this_month": counts["new"],
            "active_patients": counts["active"],
            "patients_with_nhif": with_nhif,
            "nhif_coverage": f"{with_nhif / total * 100:.1f}" if total > 0 else 0,
        }
