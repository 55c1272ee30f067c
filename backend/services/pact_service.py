"""
pact_service.py — Pact lifecycle
Creation (schedule validation + free tier gate), archiving, participant lookups
and the "what's due for me today" listing.
"""

import json
import logging
from datetime import date, datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from errors import (
    InvalidPactConfiguration,
    NotParticipant,
    PactLimitReached,
    PactNotFound,
    PersistenceFailure,
    Unauthenticated,
)
from models.check_in import CheckIn
from models.pact import Pact
from models.pact_participant import PactParticipant
from services.pact_limit_service import PactLimitService
from services.schedule import build_schedule, frequency_schedule, in_window, is_due, parse_weekdays

logger = logging.getLogger(__name__)


def _dump_days(days) -> str | None:
    return json.dumps(sorted(set(days))) if days else None


class PactService:
    @staticmethod
    def get_for_participant(db: Session, pact_id: str, user_id: str) -> Pact:
        """Fetch a pact and make sure `user_id` takes part in it."""
        if not user_id:
            raise Unauthenticated("no caller identity")
        try:
            pact = db.get(Pact, pact_id)
            if pact is None:
                raise PactNotFound(f"pact {pact_id} does not exist")
            member = db.query(PactParticipant.id).filter_by(pact_id=pact_id, user_id=user_id).first()
        except SQLAlchemyError as e:
            logger.error("Failed to load pact %s", pact_id, exc_info=True)
            raise PersistenceFailure(str(e)) from e
        if member is None:
            raise NotParticipant(f"{user_id} is not a participant of pact {pact_id}")
        return pact

    @staticmethod
    def create(db: Session, group_id: str, creator_id: str, data: dict) -> Pact:
        """
        Create a pact with its participants. The creator always takes part.
        `data["participants"]` is a list of {"user_id", "relay_days"} dicts.
        """
        if not creator_id:
            raise Unauthenticated("no caller identity")

        members = {}
        for p in data.get("participants") or []:
            members[p["user_id"]] = p.get("relay_days")
        members.setdefault(creator_id, None)

        start = data.get("start_date") or datetime.now(timezone.utc).date()
        end = data.get("end_date")
        if end and end < start:
            raise InvalidPactConfiguration(f"end_date {end} is before start_date {start}")

        pact = Pact(
            group_id=group_id,
            created_by=creator_id,
            name=data["name"],
            description=data.get("description"),
            frequency=data.get("frequency", "daily"),
            frequency_days=_dump_days(data.get("frequency_days")),
            pact_type=data.get("pact_type", "standard"),
            status="active",
            roast_level=data.get("roast_level", 2),
            proof_required=data.get("proof_required", "none"),
            start_date=start,
            end_date=end,
            participants=[
                PactParticipant(user_id=user_id, relay_days=_dump_days(days))
                for user_id, days in members.items()
            ],
        )
        # Refuse rows the resolver would have to fail closed on
        if pact.pact_type != "relay" and any(members.values()):
            raise InvalidPactConfiguration("relay_days are only allowed on relay pacts")
        frequency_schedule(pact)
        for participant in pact.participants:
            build_schedule(pact, participant.user_id)

        limit = PactLimitService.can_create_pact(db, group_id)
        if not limit.can_create:
            raise PactLimitReached(
                f"group {group_id} has {limit.current_count}/{limit.max_count} active pacts"
            )

        try:
            db.add(pact)
            db.commit()
            db.refresh(pact)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Failed to create pact in group %s", group_id, exc_info=True)
            raise PersistenceFailure(str(e)) from e

        logger.info("Created %s pact %s in group %s", pact.pact_type, pact.id, group_id)
        return pact

    @staticmethod
    def archive(db: Session, pact_id: str, user_id: str) -> Pact:
        pact = PactService.get_for_participant(db, pact_id, user_id)
        if pact.status == "archived":
            return pact
        try:
            pact.status = "archived"
            db.commit()
            db.refresh(pact)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Failed to archive pact %s", pact_id, exc_info=True)
            raise PersistenceFailure(str(e)) from e
        logger.info("Archived pact %s", pact_id)
        return pact

    @staticmethod
    def list_with_status(db: Session, group_id: str, user_id: str, today: date) -> list[dict]:
        """Active pacts in a group the user takes part in, with today's status."""
        try:
            rows = (
                db.query(Pact, PactParticipant.relay_days)
                .join(PactParticipant, PactParticipant.pact_id == Pact.id)
                .filter(
                    PactParticipant.user_id == user_id,
                    Pact.group_id == group_id,
                    Pact.status == "active",
                )
                .order_by(Pact.created_at.asc())
                .all()
            )
            if not rows:
                return []

            pact_ids = [pact.id for pact, _ in rows]
            todays = db.query(CheckIn).filter(
                CheckIn.user_id == user_id,
                CheckIn.check_in_date == today,
                CheckIn.pact_id.in_(pact_ids),
            ).all()
        except SQLAlchemyError as e:
            logger.error("Failed to list pacts for group %s", group_id, exc_info=True)
            raise PersistenceFailure(str(e)) from e

        by_pact = {c.pact_id: c for c in todays}
        result = []
        for pact, relay_days in rows:
            today_check_in = by_pact.get(pact.id)
            try:
                relay = parse_weekdays(relay_days) or None
            except ValueError:
                relay = None
            result.append({
                "pact": pact,
                "relay_days": relay,
                "is_due_today": in_window(pact, today) and is_due(pact, user_id, today),
                "has_checked_in_today": today_check_in is not None,
                "today_check_in": today_check_in,
            })
        return result
