import logging
from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from auth import get_current_user
from database import get_db
from errors import to_http_exception
from services.checkin_service import current_check_in_date
from services.pact_limit_service import PactLimitService
from services.pact_service import PactService
from services.schedule import is_due, parse_weekdays
from services.stats_service import StatsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Pacts"])


class ParticipantIn(BaseModel):
    user_id: str
    relay_days: Optional[list[int]] = None


class PactCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    frequency: Literal["daily", "weekly", "custom"] = "daily"
    frequency_days: Optional[list[int]] = None
    pact_type: Literal["standard", "relay"] = "standard"
    roast_level: int = Field(default=2, ge=1, le=3)
    proof_required: Literal["none", "optional", "required"] = "none"
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    participants: list[ParticipantIn] = []


def _weekdays_or_none(raw):
    try:
        return parse_weekdays(raw) or None
    except ValueError:
        return None


def pact_to_dict(pact) -> dict:
    return {
        "id": pact.id,
        "group_id": pact.group_id,
        "name": pact.name,
        "description": pact.description,
        "frequency": pact.frequency,
        "frequency_days": _weekdays_or_none(pact.frequency_days),
        "pact_type": pact.pact_type,
        "status": pact.status,
        "roast_level": pact.roast_level,
        "proof_required": pact.proof_required,
        "start_date": pact.start_date.isoformat() if pact.start_date else None,
        "end_date": pact.end_date.isoformat() if pact.end_date else None,
    }


@router.post("/groups/{group_id}/pacts", status_code=201)
async def create_pact(group_id: str, pact_data: PactCreate, db: Session = Depends(get_db), user_id: str = Depends(get_current_user)):
    try:
        pact = PactService.create(db, group_id, user_id, pact_data.model_dump())
        return {"status": "success", "data": pact_to_dict(pact)}
    except Exception as e:
        raise to_http_exception(e)


@router.get("/groups/{group_id}/pacts")
async def list_pacts_with_status(group_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user)):
    """The caller's active pacts in a group, with what's due today."""
    try:
        rows = PactService.list_with_status(db, group_id, user_id, current_check_in_date())
    except Exception as e:
        raise to_http_exception(e)
    return [
        {
            **pact_to_dict(row["pact"]),
            "relay_days": row["relay_days"],
            "is_due_today": row["is_due_today"],
            "has_checked_in_today": row["has_checked_in_today"],
            "today_check_in_id": row["today_check_in"].id if row["today_check_in"] else None,
            "today_check_in_status": row["today_check_in"].status if row["today_check_in"] else None,
        }
        for row in rows
    ]


@router.get("/groups/{group_id}/pact-limit")
async def pact_limit(group_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user)):
    try:
        return PactLimitService.can_create_pact(db, group_id)
    except Exception as e:
        raise to_http_exception(e)


@router.get("/pacts/{pact_id}/due")
async def pact_due(
    pact_id: str,
    on: Optional[date] = Query(default=None, alias="date"),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user),
):
    try:
        pact = PactService.get_for_participant(db, pact_id, user_id)
    except Exception as e:
        raise to_http_exception(e)
    day = on or current_check_in_date()
    return {"pact_id": pact_id, "date": day.isoformat(), "due": is_due(pact, user_id, day)}


@router.post("/pacts/{pact_id}/archive")
async def archive_pact(pact_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user)):
    try:
        pact = PactService.archive(db, pact_id, user_id)
        return {"status": "success", "data": pact_to_dict(pact)}
    except Exception as e:
        raise to_http_exception(e)


@router.get("/pacts/{pact_id}/stats")
async def pact_stats(pact_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user)):
    try:
        PactService.get_for_participant(db, pact_id, user_id)
        return StatsService.get_pact_stats(db, pact_id, as_of=current_check_in_date())
    except Exception as e:
        raise to_http_exception(e)
