"""
stats_service.py — Streaks & completion statistics per pact
Folds the check-in history into per-participant and pact-level numbers.
`compute_stats` is pure; `StatsService.get_pact_stats` loads the rows for it.

By default only recorded check-ins count: a due day nobody checked in on is a
gap, not a fold. `StatsOptions` switches on the stricter policies.
"""

import logging
import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, NamedTuple, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import STATS_COUNT_OFF_SCHEDULE, STATS_MISSED_DAY_IS_FOLD
from errors import PactNotFound, PersistenceFailure
from models.check_in import CheckIn
from models.pact import Pact
from models.pact_participant import PactParticipant
from models.user import User
from services.schedule import due_dates, is_due

logger = logging.getLogger(__name__)

UNKNOWN_DISPLAY_NAME = "Unknown"


class ParticipantRef(NamedTuple):
    user_id: str
    display_name: str


@dataclass(frozen=True)
class StatsOptions:
    count_off_schedule: bool = STATS_COUNT_OFF_SCHEDULE
    missed_day_is_fold: bool = STATS_MISSED_DAY_IS_FOLD
    as_of: Optional[date] = None  # needed for expected counts and missed days


@dataclass(frozen=True)
class ParticipantStats:
    user_id: str
    display_name: str
    completion_rate: int
    total_check_ins: int
    success_count: int
    fold_count: int
    current_streak: int
    longest_streak: int
    expected_check_ins: int = 0
    missed_count: int = 0


@dataclass(frozen=True)
class PactStats:
    pact_id: str
    overall_completion_rate: int
    total_check_ins: int
    total_expected: int = 0
    participant_stats: tuple[ParticipantStats, ...] = field(default_factory=tuple)


def percent(part: int, whole: int) -> int:
    """Whole-number percentage, halves rounded up."""
    if whole <= 0:
        return 0
    return int(math.floor(part * 100 / whole + 0.5))


def current_streak(outcomes: Sequence[str]) -> int:
    """Successes counted back from the most recent outcome to the first fold."""
    streak = 0
    for outcome in reversed(outcomes):
        if outcome != "success":
            break
        streak += 1
    return streak


def longest_streak(outcomes: Sequence[str]) -> int:
    longest = run = 0
    for outcome in outcomes:
        run = run + 1 if outcome == "success" else 0
        longest = max(longest, run)
    return longest


def _window_end(pact, as_of: date) -> date:
    return min(as_of, pact.end_date) if pact.end_date else as_of


def _expected(pact, user_id, as_of: Optional[date]) -> list[date]:
    if as_of is None or pact.start_date is None:
        return []
    return due_dates(pact, user_id, pact.start_date, _window_end(pact, as_of))


def _participant_stats(pact, ref: ParticipantRef, history: list, options: StatsOptions) -> tuple[ParticipantStats, int]:
    history = sorted(history, key=lambda c: c.check_in_date)
    if not options.count_off_schedule:
        history = [c for c in history if is_due(pact, ref.user_id, c.check_in_date)]

    expected = _expected(pact, ref.user_id, options.as_of)
    outcomes = [(c.check_in_date, c.status) for c in history]
    missed = 0
    if options.missed_day_is_fold and options.as_of is not None:
        recorded = {c.check_in_date for c in history}
        # today is still open, so it cannot be missed yet
        gaps = [d for d in expected if d < options.as_of and d not in recorded]
        missed = len(gaps)
        outcomes.extend((d, "fold") for d in gaps)
        outcomes.sort(key=lambda o: o[0])

    sequence = [status for _, status in outcomes]
    successes = sum(1 for c in history if c.status == "success")
    folds = sum(1 for c in history if c.status == "fold")
    total = successes + folds

    stats = ParticipantStats(
        user_id=ref.user_id,
        display_name=ref.display_name,
        completion_rate=percent(successes, total + missed),
        total_check_ins=total,
        success_count=successes,
        fold_count=folds,
        current_streak=current_streak(sequence),
        longest_streak=longest_streak(sequence),
        expected_check_ins=len(expected),
        missed_count=missed,
    )
    return stats, missed


def compute_stats(
    pact,
    participants: Iterable[tuple[str, str]],
    check_ins: Iterable,
    options: StatsOptions = StatsOptions(),
) -> PactStats:
    """
    Aggregate a pact's check-in history.

    `participants` is an ordered sequence of (user_id, display_name); the output
    keeps that order. `check_ins` may arrive in any order and may include rows
    for users outside `participants`, which are ignored.
    """
    by_user = defaultdict(list)
    for c in check_ins:
        by_user[c.user_id].append(c)

    rows = []
    missed_total = 0
    for user_id, display_name in participants:
        stats, missed = _participant_stats(pact, ParticipantRef(user_id, display_name), by_user.get(user_id, []), options)
        rows.append(stats)
        missed_total += missed

    total_successes = sum(s.success_count for s in rows)
    total_check_ins = sum(s.total_check_ins for s in rows)

    return PactStats(
        pact_id=pact.id,
        overall_completion_rate=percent(total_successes, total_check_ins + missed_total),
        total_check_ins=total_check_ins,
        total_expected=sum(s.expected_check_ins for s in rows),
        participant_stats=tuple(rows),
    )


class StatsService:
    @staticmethod
    def get_pact_stats(db: Session, pact_id: str, as_of: Optional[date] = None, options: StatsOptions | None = None) -> PactStats:
        """Load participants (join order) and every check-in, then aggregate."""
        try:
            pact = db.get(Pact, pact_id)
            if pact is None:
                raise PactNotFound(f"pact {pact_id} does not exist")

            rows = (
                db.query(PactParticipant.user_id, User.display_name)
                .outerjoin(User, User.id == PactParticipant.user_id)
                .filter(PactParticipant.pact_id == pact_id)
                .order_by(PactParticipant.id.asc())
                .all()
            )
            check_ins = (
                db.query(CheckIn)
                .filter(CheckIn.pact_id == pact_id)
                .order_by(CheckIn.check_in_date.asc())
                .all()
            )
        except SQLAlchemyError as e:
            logger.error("Failed to load stats for pact %s", pact_id, exc_info=True)
            raise PersistenceFailure(str(e)) from e

        participants = [ParticipantRef(user_id, name or UNKNOWN_DISPLAY_NAME) for user_id, name in rows]
        if options is None:
            options = StatsOptions(as_of=as_of)
        elif as_of is not None:
            options = StatsOptions(options.count_off_schedule, options.missed_day_is_fold, as_of)
        return compute_stats(pact, participants, check_ins, options)
