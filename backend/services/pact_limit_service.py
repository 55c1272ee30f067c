"""
pact_limit_service.py — Free tier pact ceiling
Counts a group's active pacts against its subscription tier. Reports only;
pact creation is where the answer gets enforced.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import FREE_TIER_MAX_PACTS_PER_GROUP, UNLIMITED_SUBSCRIPTION_STATUSES
from errors import GroupNotFound, PersistenceFailure
from models.group import Group
from models.pact import Pact

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PactLimit:
    current_count: int
    max_count: Optional[int]  # None = unlimited
    can_create: bool


def has_unlimited_pacts(group: Group, now: datetime | None = None) -> bool:
    if group.subscription_status not in UNLIMITED_SUBSCRIPTION_STATUSES:
        return False
    expires = group.subscription_expires_at
    if expires is None:
        return True
    now = now or datetime.now(timezone.utc)
    # SQLite hands back naive datetimes; they are stored as UTC
    if expires.tzinfo is None:
        expires = expires.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return expires > now


class PactLimitService:
    @staticmethod
    def count_active(db: Session, group_id: str) -> int:
        return db.query(func.count(Pact.id)).filter(
            Pact.group_id == group_id, Pact.status == "active"
        ).scalar() or 0

    @staticmethod
    def can_create_pact(db: Session, group_id: str, now: datetime | None = None) -> PactLimit:
        try:
            group = db.get(Group, group_id)
            if group is None:
                raise GroupNotFound(f"group {group_id} does not exist")
            current = PactLimitService.count_active(db, group_id)
        except SQLAlchemyError as e:
            logger.error("Failed to count pacts for group %s", group_id, exc_info=True)
            raise PersistenceFailure(str(e)) from e

        if has_unlimited_pacts(group, now):
            return PactLimit(current_count=current, max_count=None, can_create=True)
        maximum = FREE_TIER_MAX_PACTS_PER_GROUP
        return PactLimit(current_count=current, max_count=maximum, can_create=current < maximum)
