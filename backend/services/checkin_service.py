"""
checkin_service.py — Check-in recording
One check-in per (pact, participant, calendar day). Uniqueness is left to the
database constraint so two racing submissions end in exactly one row; the loser
gets AlreadyCheckedIn. Folds hand their id to an `on_fold` callback after the
commit, which the API wires to a background roast-thread task.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone, date
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from config import CHECK_IN_TIMEZONE
from errors import AlreadyCheckedIn, PersistenceFailure
from models.check_in import CheckIn
from services.pact_service import PactService
from services.schedule import is_due

logger = logging.getLogger(__name__)

CHECK_IN_STATUSES = ("success", "fold")


@dataclass(frozen=True)
class RecordedCheckIn:
    check_in: CheckIn
    due: bool  # False means an early / off-schedule check-in


def normalize_excuse(excuse: Optional[str]) -> Optional[str]:
    if excuse is None:
        return None
    excuse = excuse.strip()
    return excuse or None


def check_in_date_for(submitted_at: datetime, tz_name: str = CHECK_IN_TIMEZONE) -> date:
    """Calendar day a submission counts for. Naive datetimes are taken as UTC."""
    if submitted_at.tzinfo is None:
        submitted_at = submitted_at.replace(tzinfo=timezone.utc)
    return submitted_at.astimezone(ZoneInfo(tz_name)).date()


def current_check_in_date() -> date:
    return check_in_date_for(datetime.now(timezone.utc))


class CheckInService:
    @staticmethod
    def record(
        db: Session,
        pact_id: str,
        user_id: str,
        status: str,
        excuse: Optional[str] = None,
        proof_reference: Optional[str] = None,
        submitted_at: Optional[datetime] = None,
        on_fold: Optional[Callable[[str], None]] = None,
    ) -> RecordedCheckIn:
        """Persist today's check-in for `user_id` on `pact_id`."""
        if status not in CHECK_IN_STATUSES:
            raise ValueError(f"status must be one of {CHECK_IN_STATUSES}, got {status!r}")

        pact = PactService.get_for_participant(db, pact_id, user_id)
        today = check_in_date_for(submitted_at or datetime.now(timezone.utc))
        due = is_due(pact, user_id, today)

        check_in = CheckIn(
            pact_id=pact_id,
            user_id=user_id,
            status=status,
            check_in_date=today,
            excuse=normalize_excuse(excuse) if status == "fold" else None,
            proof_url=proof_reference,
            is_late=False,
        )
        try:
            db.add(check_in)
            db.commit()
            db.refresh(check_in)
        except IntegrityError as e:
            db.rollback()
            if CheckInService.get_for_date(db, pact_id, user_id, today) is None:
                logger.error("Unexpected constraint violation for pact %s", pact_id, exc_info=True)
                raise PersistenceFailure(str(e.orig)) from e
            logger.warning("Duplicate check-in for pact %s user %s on %s", pact_id, user_id, today)
            raise AlreadyCheckedIn(str(e.orig)) from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Failed to save check-in for pact %s", pact_id, exc_info=True)
            raise PersistenceFailure(str(e)) from e

        logger.info("Recorded %s check-in %s for pact %s (due=%s)", status, check_in.id, pact_id, due)
        if status == "fold" and on_fold is not None:
            on_fold(check_in.id)
        return RecordedCheckIn(check_in=check_in, due=due)

    @staticmethod
    def get_for_date(db: Session, pact_id: str, user_id: str, on_date: date) -> CheckIn | None:
        try:
            return db.query(CheckIn).filter_by(
                pact_id=pact_id, user_id=user_id, check_in_date=on_date
            ).first()
        except SQLAlchemyError as e:
            logger.error("Failed to fetch check-in for pact %s", pact_id, exc_info=True)
            raise PersistenceFailure(str(e)) from e
