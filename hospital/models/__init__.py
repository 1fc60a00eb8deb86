from .user import User, Staff
from .patient import Patient, Gender, BloodGroup
from .appointment import Appointment, AppointmentStatus, AppointmentType, ACTIVE_STATUSES
from .catalog import Drug, LabTest, LabResult, LabResultStatus, InventoryItem, BillingRecord, BillingStatus

__all__ = [
    "User", "Staff",
    "Patient", "Gender", "BloodGroup",
    "Appointment", "AppointmentStatus", "AppointmentType", "ACTIVE_STATUSES",
    "Drug", "LabTest", "LabResult", "LabResultStatus",
    "InventoryItem", "BillingRecord", "BillingStatus",
]
