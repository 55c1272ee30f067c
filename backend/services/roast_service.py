"""
roast_service.py — Roast threads opened on folds
`open_roast_thread` runs as a fire-and-forget background task after a fold is
committed. It uses its own session and never raises: a failed thread or push
hand-off is logged and the check-in stands.
"""

import logging

import httpx
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

import database
from config import NOTIFY_FOLD_FUNCTION
from errors import SideEffectFailure
from models.check_in import CheckIn
from models.pact import Pact
from models.roast_thread import RoastThread
from edge_functions import functions_configured, invoke_function

logger = logging.getLogger(__name__)


class RoastThreadService:
    @staticmethod
    def create(db: Session, check_in_id: str) -> RoastThread:
        """Open the thread for a fold. A second call returns the existing thread."""
        thread = RoastThread(check_in_id=check_in_id, status="open")
        try:
            db.add(thread)
            db.commit()
            db.refresh(thread)
            return thread
        except IntegrityError as e:
            db.rollback()
            try:
                existing = RoastThreadService.get_for_check_in(db, check_in_id)
            except SQLAlchemyError as lookup_error:
                raise SideEffectFailure(f"roast thread lookup failed: {lookup_error}") from lookup_error
            if existing is None:
                raise SideEffectFailure(f"roast thread insert rejected: {e.orig}") from e
            return existing
        except SQLAlchemyError as e:
            db.rollback()
            raise SideEffectFailure(f"roast thread insert failed: {e}") from e

    @staticmethod
    def get_for_check_in(db: Session, check_in_id: str) -> RoastThread | None:
        return db.query(RoastThread).filter_by(check_in_id=check_in_id).first()


def notify_fold(db: Session, check_in_id: str) -> bool:
    """Hand the fold to the push edge function. Returns False when not configured."""
    if not functions_configured():
        logger.debug("Supabase functions not configured; skipping fold push for %s", check_in_id)
        return False

    check_in = db.get(CheckIn, check_in_id)
    if check_in is None:
        raise SideEffectFailure(f"check-in {check_in_id} vanished before notification")
    pact = db.get(Pact, check_in.pact_id)
    invoke_function(NOTIFY_FOLD_FUNCTION, {
        "checkInId": check_in.id,
        "folderId": check_in.user_id,
        "pactId": check_in.pact_id,
        "groupId": pact.group_id if pact else None,
    })
    return True


def open_roast_thread(check_in_id: str) -> None:
    """Background task: roast thread first, then the push hand-off."""
    with database.session_scope() as db:
        try:
            thread = RoastThreadService.create(db, check_in_id)
        except SideEffectFailure:
            logger.error("Create roast thread failed for check-in %s", check_in_id, exc_info=True)
            return
        logger.info("Opened roast thread %s for check-in %s", thread.id, check_in_id)

        try:
            notify_fold(db, check_in_id)
        except (httpx.HTTPError, SideEffectFailure, SQLAlchemyError, ValueError):
            logger.error("Fold notification failed for check-in %s", check_in_id, exc_info=True)
