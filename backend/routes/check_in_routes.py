from datetime import datetime, timezone
from typing import Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from auth import get_current_user
from database import get_db
from errors import to_http_exception
from services.checkin_service import CheckInService, current_check_in_date
from services.pact_service import PactService
from services.roast_service import open_roast_thread
from supabase_client import is_supabase_configured, upload_proof

router = APIRouter(prefix="/api/v1/pacts", tags=["Check-ins"])


class CheckInCreate(BaseModel):
    status: Literal["success", "fold"]
    excuse: Optional[str] = Field(default=None, max_length=500)
    proof_reference: Optional[str] = None


def check_in_to_dict(c) -> dict:
    return {
        "id": c.id,
        "pact_id": c.pact_id,
        "user_id": c.user_id,
        "status": c.status,
        "check_in_date": c.check_in_date.isoformat(),
        "excuse": c.excuse,
        "proof_url": c.proof_url,
        "is_late": c.is_late,
        "created_at": c.created_at.isoformat() if c.created_at else None,
    }


@router.post("/{pact_id}/check-ins", status_code=201)
async def create_check_in(
    pact_id: str,
    body: CheckInCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user),
):
    """Record today's check-in. Folds open a roast thread after the response."""
    try:
        recorded = CheckInService.record(
            db,
            pact_id,
            user_id,
            body.status,
            excuse=body.excuse,
            proof_reference=body.proof_reference,
            submitted_at=datetime.now(timezone.utc),
            on_fold=lambda check_in_id: background_tasks.add_task(open_roast_thread, check_in_id),
        )
    except Exception as e:
        raise to_http_exception(e)
    return {"status": "success", "due": recorded.due, "data": check_in_to_dict(recorded.check_in)}


@router.get("/{pact_id}/check-ins/today")
async def today_check_in(pact_id: str, db: Session = Depends(get_db), user_id: str = Depends(get_current_user)):
    try:
        PactService.get_for_participant(db, pact_id, user_id)
        c = CheckInService.get_for_date(db, pact_id, user_id, current_check_in_date())
    except Exception as e:
        raise to_http_exception(e)
    return check_in_to_dict(c) if c else None


@router.post("/{pact_id}/proof", status_code=201)
async def upload_pact_proof(
    pact_id: str,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user),
):
    """Store proof media; the returned reference goes into the check-in body."""
    try:
        PactService.get_for_participant(db, pact_id, user_id)
    except Exception as e:
        raise to_http_exception(e)
    if not is_supabase_configured():
        raise HTTPException(status_code=503, detail="Proof storage is not configured")

    contents = await file.read()
    try:
        reference = upload_proof(user_id, pact_id, file.filename, contents, file.content_type)
    except Exception as e:
        raise to_http_exception(e)
    return {"proof_reference": reference}
