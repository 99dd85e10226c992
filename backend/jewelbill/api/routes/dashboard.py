"""Dashboard: invoice counts, revenue, outstanding balance, monthly trend."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from jewelbill.api.deps import get_db
from jewelbill.services.dashboard_service import dashboard_stats

router = APIRouter()


@router.get("/stats")
def get_dashboard_stats(db: Session = Depends(get_db)):
    return dashboard_stats(db)
