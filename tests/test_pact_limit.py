"""Tests for the free tier pact ceiling."""

from datetime import datetime, timedelta, timezone

import pytest

from errors import GroupNotFound
from factories import make_group, make_pact
from services.pact_limit_service import PactLimitService, has_unlimited_pacts

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def fill(db, count, status="active"):
    for i in range(count):
        make_pact(db, ["alice"], name=f"Pact {i}", status=status)


class TestFreeTier:
    def test_empty_group(self, db):
        make_group(db)
        limit = PactLimitService.can_create_pact(db, "group-1", now=NOW)
        assert (limit.current_count, limit.max_count, limit.can_create) == (0, 3, True)

    def test_at_ceiling(self, db):
        make_group(db)
        fill(db, 3)
        limit = PactLimitService.can_create_pact(db, "group-1", now=NOW)
        assert (limit.current_count, limit.max_count, limit.can_create) == (3, 3, False)

    def test_archived_pacts_do_not_count(self, db):
        make_group(db)
        fill(db, 2)
        fill(db, 4, status="archived")
        limit = PactLimitService.can_create_pact(db, "group-1", now=NOW)
        assert limit.current_count == 2
        assert limit.can_create is True

    def test_other_groups_do_not_count(self, db):
        make_group(db)
        make_group(db, "group-2")
        for i in range(3):
            make_pact(db, ["alice"], group_id="group-2", name=f"Other {i}")
        assert PactLimitService.can_create_pact(db, "group-1", now=NOW).current_count == 0


class TestPaidTiers:
    @pytest.mark.parametrize("tier", ["premium", "trial"])
    def test_unlimited(self, db, tier):
        make_group(db, subscription_status=tier)
        fill(db, 5)
        limit = PactLimitService.can_create_pact(db, "group-1", now=NOW)
        assert (limit.current_count, limit.max_count, limit.can_create) == (5, None, True)

    def test_expired_subscription_is_free(self, db):
        make_group(db, subscription_status="premium", expires_at=NOW - timedelta(days=1))
        fill(db, 3)
        limit = PactLimitService.can_create_pact(db, "group-1", now=NOW)
        assert (limit.max_count, limit.can_create) == (3, False)

    def test_future_expiry_is_unlimited(self, db):
        make_group(db, subscription_status="trial", expires_at=NOW + timedelta(days=7))
        fill(db, 3)
        assert PactLimitService.can_create_pact(db, "group-1", now=NOW).can_create is True

    def test_naive_expiry_is_treated_as_utc(self, db):
        group = make_group(db, subscription_status="premium",
                           expires_at=datetime(2024, 6, 1, 13, 0))
        assert has_unlimited_pacts(group, NOW) is True
        assert has_unlimited_pacts(group, NOW + timedelta(hours=2)) is False


def test_unknown_group(db):
    with pytest.raises(GroupNotFound):
        PactLimitService.can_create_pact(db, "missing", now=NOW)
