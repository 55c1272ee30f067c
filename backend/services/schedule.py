"""
schedule.py — Calendar / due-date resolution
Turns a stored pact row into one schedule variant per participant and answers
"is this pact due on this day for this person". Pure: the only date it looks at
is the one it is given.

Weekday indices are 0=Sunday .. 6=Saturday.
"""

import json
import logging
from datetime import date, timedelta
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from errors import InvalidPactConfiguration

logger = logging.getLogger(__name__)

SUNDAY, MONDAY, SATURDAY = 0, 1, 6
WEEKLY_DUE_WEEKDAY = MONDAY

# Older clients wrote the pact audience into pact_type
STANDARD_PACT_TYPES = ("standard", "individual", "group")


def weekday_index(d: date) -> int:
    """0=Sunday .. 6=Saturday (Python's date.weekday() is 0=Monday)."""
    return (d.weekday() + 1) % 7


class _Schedule(BaseModel):
    model_config = ConfigDict(frozen=True)

    def includes(self, weekday: int) -> bool:
        raise NotImplementedError


class DailySchedule(_Schedule):
    kind: Literal["daily"] = "daily"

    def includes(self, weekday: int) -> bool:
        return True


class WeeklySchedule(_Schedule):
    kind: Literal["weekly"] = "weekly"

    def includes(self, weekday: int) -> bool:
        return weekday == WEEKLY_DUE_WEEKDAY


class _WeekdaySet(_Schedule):
    days: frozenset[int]

    @field_validator("days")
    @classmethod
    def _valid_days(cls, days: frozenset[int]) -> frozenset[int]:
        if not days:
            raise ValueError("at least one weekday is required")
        bad = sorted(d for d in days if d < SUNDAY or d > SATURDAY)
        if bad:
            raise ValueError(f"weekday indices out of range: {bad}")
        return days

    def includes(self, weekday: int) -> bool:
        return weekday in self.days


class CustomSchedule(_WeekdaySet):
    kind: Literal["custom"] = "custom"


class RelaySchedule(_WeekdaySet):
    """A relay participant is only due on their own assigned weekdays."""
    kind: Literal["relay"] = "relay"


Schedule = Annotated[
    Union[DailySchedule, WeeklySchedule, CustomSchedule, RelaySchedule],
    Field(discriminator="kind"),
]
schedule_adapter = TypeAdapter(Schedule)


def parse_weekdays(raw) -> list[int]:
    """Decode a stored weekday list (JSON text or an already-decoded list)."""
    if raw is None or raw == "":
        return []
    value = json.loads(raw) if isinstance(raw, str) else raw
    if not isinstance(value, (list, tuple, set, frozenset)):
        raise ValueError(f"expected a list of weekdays, got {type(value).__name__}")
    if any(isinstance(v, bool) or not isinstance(v, int) for v in value):
        raise ValueError(f"weekdays must be integers: {value!r}")
    return list(value)


def _relay_days_for(pact, user_id) -> list[int] | None:
    for participant in pact.participants:
        if participant.user_id == user_id:
            return parse_weekdays(participant.relay_days)
    return None


def frequency_schedule(pact) -> Schedule:
    """The schedule `frequency` / `frequency_days` describe, whatever the pact type."""
    try:
        if pact.frequency == "custom":
            return schedule_adapter.validate_python(
                {"kind": "custom", "days": parse_weekdays(pact.frequency_days)}
            )
        if pact.frequency in ("daily", "weekly"):
            return schedule_adapter.validate_python({"kind": pact.frequency})
    except ValueError as e:
        # pydantic.ValidationError and json.JSONDecodeError are both ValueErrors
        raise InvalidPactConfiguration(f"pact {pact.id}: {e}") from e
    raise InvalidPactConfiguration(f"unknown frequency {pact.frequency!r}")


def build_schedule(pact, user_id) -> Schedule:
    """
    Resolve the schedule that applies to `user_id` on `pact`.
    Raises InvalidPactConfiguration for rows that break the pact invariants.
    """
    pact_type = pact.pact_type or "standard"
    if pact_type == "relay":
        try:
            days = _relay_days_for(pact, user_id)
            if days is None:
                raise InvalidPactConfiguration(f"{user_id} has no relay assignment on pact {pact.id}")
            return schedule_adapter.validate_python({"kind": "relay", "days": days})
        except ValueError as e:
            raise InvalidPactConfiguration(f"pact {pact.id}: {e}") from e

    if pact_type not in STANDARD_PACT_TYPES:
        raise InvalidPactConfiguration(f"unknown pact_type {pact_type!r}")
    return frequency_schedule(pact)


def is_due(pact, user_id, on_date: date) -> bool:
    """True when `pact` expects a check-in from `user_id` on `on_date`.

    Misconfigured pacts fail closed (not due) instead of raising.
    """
    try:
        schedule = build_schedule(pact, user_id)
    except InvalidPactConfiguration as e:
        logger.warning("Treating pact as not due: %s", e)
        return False
    return schedule.includes(weekday_index(on_date))


def in_window(pact, on_date: date) -> bool:
    """Whether `on_date` lies between the pact's start_date and end_date."""
    if pact.start_date and on_date < pact.start_date:
        return False
    if pact.end_date and on_date > pact.end_date:
        return False
    return True


def due_dates(pact, user_id, start: date, end: date) -> list[date]:
    """Every due date for `user_id` in [start, end], oldest first."""
    try:
        schedule = build_schedule(pact, user_id)
    except InvalidPactConfiguration as e:
        logger.warning("No due dates for misconfigured pact: %s", e)
        return []

    dates = []
    d = start
    while d <= end:
        if schedule.includes(weekday_index(d)):
            dates.append(d)
        d += timedelta(days=1)
    return dates
