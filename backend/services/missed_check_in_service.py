"""
missed_check_in_service.py — Reminders and auto-folds for missed check-ins
Both jobs walk the same set: active pacts whose window covers the day, the
participants due that day, minus everyone who already checked in.
Reminders look at today; the auto-fold job closes out yesterday with a late
fold and a roast thread per ghost.
"""

import logging
from datetime import date, timedelta

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from config import AUTO_FOLD_EXCUSE
from errors import PersistenceFailure, SideEffectFailure
from models.check_in import CheckIn
from models.pact import Pact
from services.roast_service import RoastThreadService
from services.schedule import is_due

logger = logging.getLogger(__name__)

# Cap on per-row errors echoed back in a job summary
MAX_REPORTED_ERRORS = 50


class MissedCheckInService:
    @staticmethod
    def find_missing(db: Session, on_date: date) -> list[tuple[Pact, str]]:
        """(pact, user_id) pairs that were due on `on_date` with no check-in."""
        try:
            pacts = (
                db.query(Pact)
                .options(selectinload(Pact.participants))
                .filter(
                    Pact.status == "active",
                    Pact.start_date <= on_date,
                    or_(Pact.end_date.is_(None), Pact.end_date >= on_date),
                )
                .order_by(Pact.created_at.asc())
                .all()
            )
            if not pacts:
                return []
            checked_in = {
                (pact_id, user_id)
                for pact_id, user_id in db.query(CheckIn.pact_id, CheckIn.user_id).filter(
                    CheckIn.check_in_date == on_date,
                    CheckIn.pact_id.in_([p.id for p in pacts]),
                )
            }
        except SQLAlchemyError as e:
            logger.error("Failed to scan pacts for %s", on_date, exc_info=True)
            raise PersistenceFailure(str(e)) from e

        missing = []
        for pact in pacts:
            for participant in pact.participants:
                if (pact.id, participant.user_id) in checked_in:
                    continue
                if is_due(pact, participant.user_id, on_date):
                    missing.append((pact, participant.user_id))
        return missing

    @staticmethod
    def reminders(db: Session, on_date: date) -> list[dict]:
        return [
            {"pact_id": pact.id, "pact_name": pact.name, "group_id": pact.group_id, "user_id": user_id}
            for pact, user_id in MissedCheckInService.find_missing(db, on_date)
        ]

    @staticmethod
    def auto_fold(db: Session, today: date) -> dict:
        """Record a late fold (and roast thread) for everyone who ghosted yesterday."""
        folded_for = today - timedelta(days=1)
        missing = MissedCheckInService.find_missing(db, folded_for)

        folds_created = 0
        threads_created = 0
        errors = []
        for pact, user_id in missing:
            fold = CheckIn(
                pact_id=pact.id,
                user_id=user_id,
                status="fold",
                excuse=AUTO_FOLD_EXCUSE,
                proof_url=None,
                check_in_date=folded_for,
                is_late=True,
            )
            try:
                db.add(fold)
                db.commit()
                db.refresh(fold)
            except IntegrityError:
                # a real check-in landed between the scan and this insert
                db.rollback()
                logger.info("Skipping auto-fold for pact %s user %s: already checked in", pact.id, user_id)
                continue
            except SQLAlchemyError as e:
                db.rollback()
                logger.error("Insert auto-fold failed for pact %s user %s", pact.id, user_id, exc_info=True)
                errors.append({"pact_id": pact.id, "user_id": user_id, "error": str(e)})
                continue
            folds_created += 1

            try:
                RoastThreadService.create(db, fold.id)
                threads_created += 1
            except SideEffectFailure as e:
                logger.error("Create roast thread failed for auto-fold %s", fold.id, exc_info=True)
                errors.append({"pact_id": pact.id, "user_id": user_id, "error": str(e)})

        summary = {
            "success": not errors,
            "date": today.isoformat(),
            "folded_for_date": folded_for.isoformat(),
            "pacts_processed": len({pact.id for pact, _ in missing}),
            "folds_created": folds_created,
            "roast_threads_created": threads_created,
            "errors_count": len(errors),
            "errors": errors[:MAX_REPORTED_ERRORS],
        }
        logger.info(
            "Auto-fold for %s: %d folds, %d roast threads, %d errors",
            folded_for, folds_created, threads_created, len(errors),
        )
        return summary
