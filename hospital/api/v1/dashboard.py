from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...api.deps import authorize
from ...core.database import get_db
from ...models.user import User
from ...services.dashboard_service import DashboardService

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])

def get_dashboard_service(db: Session = Depends(get_db)) -> DashboardService:
    return DashboardService(db)

@router.get("/stats")
async def dashboard_stats(
    current_user: User = Depends(authorize(permissions=["dashboard.read"])),
    service: DashboardService = Depends(get_dashboard_service)
):
    """Overview cards with month over month change."""
    return {"stats": service.stats()}

@router.get("/activities")
async def recent_activities(
    current_user: User = Depends(authorize(permissions=["dashboard.read"])),
    service: DashboardService = Depends(get_dashboard_service)
):
    """Most recent appointments and lab results."""
    return {"activities": service.activities()}

@router.get("/departments")
async def department_utilization(
    current_user: User = Depends(authorize(permissions=["dashboard.read"])),
    service: DashboardService = Depends(get_dashboard_service)
):
    return {"departments": service.departments()}

@router.get("/alerts")
async def critical_alerts(
    current_user: User = Depends(authorize(permissions=["dashboard.read"])),
    service: DashboardService = Depends(get_dashboard_service)
):
    """Unreviewed critical results, low drug stock and stale pending results."""
    return {"alerts": service.alerts()}
