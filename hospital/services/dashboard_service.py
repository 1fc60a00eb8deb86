from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ..core.config import settings
from ..models.appointment import Appointment
from ..models.catalog import BillingRecord, Drug, InventoryItem, LabResult, LabResultStatus
from ..models.patient import Patient
from ..models.user import User

logger = logging.getLogger(__name__)


def percent_change(current: float, previous: float) -> str:
    """Month over month change with one decimal, "0" without a baseline."""
    if previous > 0:
        return f"{(current - previous) / previous * 100:.1f}"
    return "0"


def format_change(change: str) -> str:
    return f"{'+' if float(change) > 0 else ''}{change}%"


def change_type(change: str) -> str:
    return "increase" if float(change) >= 0 else "decrease"


def time_ago(moment: Optional[datetime], now: Optional[datetime] = None) -> str:
    if moment is None:
        return "Just now"

    now = now or datetime.utcnow()
    seconds = (now - moment).total_seconds()
    minutes = int(seconds // 60)
    hours = int(seconds // 3600)
    days = int(seconds // 86400)

    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes} minute{'s' if minutes > 1 else ''} ago"
    if hours < 24:
        return f"{hours} hour{'s' if hours > 1 else ''} ago"
    return f"{days} day{'s' if days > 1 else ''} ago"


def plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count > 1 else ''}"


class DashboardService:
    """Read-only aggregates for the dashboard page.

    Bed occupancy and department utilization come from configuration; the
    schema does not track beds or department capacity.
    """

    def __init__(self, db: Session):
        self.db = db

    def _paid_between(self, start: date, end: Optional[date] = None) -> float:
        query = self.db.query(func.coalesce(func.sum(BillingRecord.paid_amount), 0.0)).filter(
            BillingRecord.created_at >= start
        )
        if end is not None:
            query = query.filter(BillingRecord.created_at < end)
        return float(query.scalar() or 0)

    def _created_between(self, model, start: date, end: Optional[date] = None) -> int:
        query = self.db.query(model).filter(model.created_at >= start)
        if end is not None:
            query = query.filter(model.created_at < end)
        return query.count()

    def stats(self, today: Optional[date] = None) -> List[Dict[str, Any]]:
        today = today or date.today()
        start_of_month = today.replace(day=1)
        start_of_last_month = (start_of_month - timedelta(days=1)).replace(day=1)

        total_patients = self.db.query(Patient).filter(Patient.is_active == True).count()  # noqa: E712
        today_appointments = self.db.query(Appointment).filter(Appointment.appointment_date == today).count()

        patient_change = percent_change(
            self._created_between(Patient, start_of_month),
            self._created_between(Patient, start_of_last_month, start_of_month),
        )
        appointment_change = percent_change(
            self._created_between(Appointment, start_of_month),
            self._created_between(Appointment, start_of_last_month, start_of_month),
        )
        month_revenue = self._paid_between(start_of_month)
        revenue_change = percent_change(month_revenue, self._paid_between(start_of_last_month, start_of_month))

        occupancy = f"{settings.OCCUPIED_BEDS / settings.TOTAL_BEDS * 100:.0f}" if settings.TOTAL_BEDS else "0"

        return [
            {
                "title": "Total Patients",
                "value": f"{total_patients:,}",
                "change": format_change(patient_change),
                "changeType": change_type(patient_change),
                "description": "Active patient records",
            },
            {
                "title": "Today's Appointments",
                "value": str(today_appointments),
                "change": format_change(appointment_change),
                "changeType": change_type(appointment_change),
                "description": "Scheduled for today",
            },
            {
                "title": "Bed Occupancy",
                "value": f"{occupancy}%",
                "change": "-2%",
                "changeType": "decrease",
                "description": f"{settings.OCCUPIED_BEDS} of {settings.TOTAL_BEDS} beds occupied",
            },
            {
                "title": "Revenue (Month)",
                "value": f"KSh {month_revenue / 1000000:.1f}M",
                "change": format_change(revenue_change),
                "changeType": change_type(revenue_change),
                "description": "Total collections this month",
            },
        ]

    def activities(self, limit: int = 10) -> List[Dict[str, Any]]:
        appointments = self.db.query(Appointment).options(
            joinedload(Appointment.patient),
            joinedload(Appointment.doctor).joinedload(User.staff),
        ).order_by(Appointment.created_at.desc(), Appointment.id.desc()).limit(5).all()

        lab_results = self.db.query(LabResult).options(
            joinedload(LabResult.patient)
        ).order_by(LabResult.created_at.desc(), LabResult.id.desc()).limit(3).all()

        entries = [
            (appointment.created_at, {
                "id": appointment.id,
                "type": "appointment",
                "patient": f"{appointment.patient.first_name} {appointment.patient.last_name}",
                "department": (appointment.doctor.staff.department
                               if appointment.doctor and appointment.doctor.staff else "General"),
                "status": appointment.status.value.lower(),
            })
            for appointment in appointments
        ] + [
            (result.created_at, {
                "id": result.id,
                "type": "lab_result",
                "patient": f"{result.patient.first_name} {result.patient.last_name}",
                "department": "Laboratory",
                "status": result.status.value.lower(),
            })
            for result in lab_results
        ]

        entries.sort(key=lambda entry: entry[0] or datetime.min, reverse=True)

        now = datetime.utcnow()
        return [dict(activity, time=time_ago(created_at, now)) for created_at, activity in entries[:limit]]

    def departments(self) -> List[Dict[str, Any]]:
        return [dict(department) for department in settings.DEPARTMENT_UTILIZATION]

    def alerts(self, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        now = now or datetime.utcnow()
        alerts = []

        critical_results = self.db.query(LabResult).filter(
            LabResult.status == LabResultStatus.CRITICAL,
            LabResult.reviewed_at.is_(None)
        ).count()
        if critical_results > 0:
            alerts.append({
                "id": "critical-labs",
                "type": "critical",
                "message": f"{plural(critical_results, 'critical lab result')} requiring immediate attention",
                "time": "Just now",
            })

        low_stock = self.db.query(Drug).filter(Drug.stock_quantity <= Drug.reorder_level).count()
        if low_stock > 0:
            alerts.append({
                "id": "low-stock",
                "type": "warning",
                "message": f"{plural(low_stock, 'drug')} below reorder level",
                "time": "15 minutes ago",
            })

        low_supplies = self.db.query(InventoryItem).filter(
            InventoryItem.quantity <= InventoryItem.reorder_level
        ).count()
        if low_supplies > 0:
            alerts.append({
                "id": "low-supplies",
                "type": "warning",
                "message": f"{plural(low_supplies, 'inventory item')} below reorder level",
                "time": "15 minutes ago",
            })

        pending_results = self.db.query(LabResult).filter(
            LabResult.status == LabResultStatus.PENDING,
            LabResult.created_at <= now - timedelta(hours=2)
        ).count()
        if pending_results > 0:
            alerts.append({
                "id": "pending-labs",
                "type": "info",
                "message": f"{plural(pending_results, 'lab result')} ready for review",
                "time": "30 minutes ago",
            })

        return alerts
