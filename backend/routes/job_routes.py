from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from auth import require_service_role
from database import get_db
from errors import to_http_exception
from services.checkin_service import current_check_in_date
from services.missed_check_in_service import MissedCheckInService

# Called by the scheduler (cron / pg_cron) with the service role key
router = APIRouter(prefix="/api/v1/jobs", tags=["Jobs"], dependencies=[Depends(require_service_role)])


@router.get("/reminders")
async def pending_reminders(on: Optional[date] = Query(default=None, alias="date"), db: Session = Depends(get_db)):
    """Participants due on a day who have not checked in yet."""
    day = on or current_check_in_date()
    try:
        pending = MissedCheckInService.reminders(db, day)
    except Exception as e:
        raise to_http_exception(e)
    return {"date": day.isoformat(), "count": len(pending), "pending": pending}


@router.post("/auto-fold")
async def auto_fold(on: Optional[date] = Query(default=None, alias="date"), db: Session = Depends(get_db)):
    """Fold everyone who ghosted the day before `date` (default: today)."""
    try:
        return MissedCheckInService.auto_fold(db, on or current_check_in_date())
    except Exception as e:
        raise to_http_exception(e)
