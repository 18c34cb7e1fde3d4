from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..config import settings
from ..dashboard import get_dashboard_stats
from ..database import get_db
from ..schemas import CurrentUser, DashboardStats, Envelope

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=Envelope[DashboardStats])
def dashboard_stats(db: Session = Depends(get_db), user: CurrentUser = Depends(get_current_user)):
    stats = get_dashboard_stats(db, user.id, months=settings.DASHBOARD_MONTHS)
    return {"message": "Dashboard stats retrieved", "data": DashboardStats.model_validate(stats, from_attributes=True)}
