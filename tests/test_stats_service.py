"""Tests for streak and completion aggregation."""

from datetime import date, timedelta

import pytest

from errors import PactNotFound
from factories import MONDAY, Row, build_pact, make_check_in, make_pact, make_user
from services.stats_service import (
    StatsOptions,
    StatsService,
    compute_stats,
    current_streak,
    longest_streak,
    percent,
)

HISTORY_ONLY = StatsOptions(count_off_schedule=True, missed_day_is_fold=False)


def history(user_id, statuses, start=MONDAY):
    return [Row(user_id, start + timedelta(days=i), s) for i, s in enumerate(statuses)]


def stats_for(statuses, pact=None, options=HISTORY_ONLY):
    pact = pact or build_pact("daily")
    result = compute_stats(pact, [("u1", "Uno")], history("u1", statuses), options)
    return result.participant_stats[0]


class TestStreaks:
    def test_fold_in_the_middle(self):
        s = stats_for(["success", "success", "fold", "success"])
        assert s.current_streak == 1
        assert s.longest_streak == 2

    def test_no_history(self):
        s = stats_for([])
        assert (s.completion_rate, s.current_streak, s.longest_streak, s.total_check_ins) == (0, 0, 0, 0)

    def test_all_success(self):
        s = stats_for(["success"] * 3)
        assert (s.completion_rate, s.current_streak, s.longest_streak) == (100, 3, 3)

    def test_ending_in_fold(self):
        s = stats_for(["success", "success", "success", "fold"])
        assert s.current_streak == 0
        assert s.longest_streak == 3

    def test_helpers(self):
        assert current_streak([]) == 0
        assert longest_streak(["fold", "success", "fold", "success", "success"]) == 2


class TestCounts:
    def test_counts_and_rate(self):
        s = stats_for(["success", "fold", "success"])
        assert s.success_count == 2
        assert s.fold_count == 1
        assert s.total_check_ins == 3
        assert s.completion_rate == 67

    @pytest.mark.parametrize("part,whole,expected", [
        (1, 8, 13),   # 12.5 rounds up
        (1, 3, 33),
        (2, 3, 67),
        (0, 5, 0),
        (3, 0, 0),
    ])
    def test_percent_rounds_half_up(self, part, whole, expected):
        assert percent(part, whole) == expected

    def test_history_is_sorted_before_walking(self):
        rows = history("u1", ["success", "success", "fold", "success"])
        result = compute_stats(build_pact("daily"), [("u1", "Uno")], list(reversed(rows)), HISTORY_ONLY)
        assert result.participant_stats[0].current_streak == 1

    def test_gaps_do_not_break_streaks(self):
        rows = [
            Row("u1", MONDAY, "success"),
            Row("u1", MONDAY + timedelta(days=10), "success"),
        ]
        s = compute_stats(build_pact("daily"), [("u1", "Uno")], rows, HISTORY_ONLY).participant_stats[0]
        assert s.current_streak == 2


class TestPactLevel:
    def test_overall_rate_and_order(self):
        rows = history("bob", ["success", "fold"]) + history("alice", ["success", "success", "success"])
        result = compute_stats(build_pact("daily"), [("bob", "Bob"), ("alice", "Alice"), ("carol", "Carol")], rows, HISTORY_ONLY)
        assert [s.user_id for s in result.participant_stats] == ["bob", "alice", "carol"]
        assert result.total_check_ins == 5
        assert result.overall_completion_rate == 80
        assert result.participant_stats[2].total_check_ins == 0

    def test_no_check_ins(self):
        result = compute_stats(build_pact("daily"), [("u1", "Uno")], [], HISTORY_ONLY)
        assert result.overall_completion_rate == 0
        assert result.total_check_ins == 0

    def test_rows_for_outsiders_are_ignored(self):
        rows = history("ghost", ["success"])
        result = compute_stats(build_pact("daily"), [("u1", "Uno")], rows, HISTORY_ONLY)
        assert result.total_check_ins == 0

    def test_idempotent(self):
        rows = history("u1", ["success", "fold", "success", "success"])
        pact = build_pact("daily")
        first = compute_stats(pact, [("u1", "Uno")], rows, HISTORY_ONLY)
        second = compute_stats(pact, [("u1", "Uno")], rows, HISTORY_ONLY)
        assert first == second


class TestPolicies:
    def test_off_schedule_check_ins_excluded_when_configured(self):
        pact = build_pact("weekly")
        rows = [
            Row("u1", MONDAY, "success"),
            Row("u1", MONDAY + timedelta(days=1), "fold"),  # Tuesday, not due
            Row("u1", MONDAY + timedelta(days=7), "success"),
        ]
        strict = StatsOptions(count_off_schedule=False, missed_day_is_fold=False)
        s = compute_stats(pact, [("u1", "Uno")], rows, strict).participant_stats[0]
        assert (s.total_check_ins, s.fold_count, s.current_streak, s.longest_streak) == (2, 0, 2, 2)

        lenient = compute_stats(pact, [("u1", "Uno")], rows, HISTORY_ONLY).participant_stats[0]
        assert lenient.total_check_ins == 3
        assert lenient.longest_streak == 1

    def test_missed_due_days_count_as_folds(self):
        pact = build_pact("daily", start_date=MONDAY)
        rows = [
            Row("u1", MONDAY, "success"),
            # Tuesday missed
            Row("u1", MONDAY + timedelta(days=2), "success"),
            Row("u1", MONDAY + timedelta(days=3), "success"),
        ]
        options = StatsOptions(count_off_schedule=True, missed_day_is_fold=True, as_of=MONDAY + timedelta(days=4))
        s = compute_stats(pact, [("u1", "Uno")], rows, options).participant_stats[0]
        # Friday (as_of) is still open and not counted as missed
        assert s.missed_count == 1
        assert s.expected_check_ins == 5
        assert s.current_streak == 2
        assert s.longest_streak == 2
        assert s.completion_rate == 75
        assert s.total_check_ins == 3

    def test_expected_check_ins_respect_relay_days(self):
        pact = build_pact("daily", pact_type="relay", relay={"u1": [1, 3]}, start_date=MONDAY)
        options = StatsOptions(count_off_schedule=True, missed_day_is_fold=False, as_of=MONDAY + timedelta(days=13))
        result = compute_stats(pact, [("u1", "Uno")], [], options)
        assert result.participant_stats[0].expected_check_ins == 4
        assert result.total_expected == 4


class TestStatsService:
    def test_loads_participants_in_join_order(self, db):
        make_user(db, "zed", "Zed")
        make_user(db, "amy", "Amy")
        pact = make_pact(db, ["zed", "amy", "nobody"])
        make_check_in(db, pact, "amy", MONDAY, "success")
        make_check_in(db, pact, "amy", MONDAY + timedelta(days=1), "fold")
        make_check_in(db, pact, "zed", MONDAY, "success")

        stats = StatsService.get_pact_stats(db, pact.id, as_of=MONDAY + timedelta(days=1))
        assert [s.display_name for s in stats.participant_stats] == ["Zed", "Amy", "Unknown"]
        assert stats.participant_stats[1].fold_count == 1
        assert stats.total_check_ins == 3
        assert stats.overall_completion_rate == 67
        assert stats.participant_stats[0].expected_check_ins == 2

    def test_missing_pact(self, db):
        with pytest.raises(PactNotFound):
            StatsService.get_pact_stats(db, "nope", as_of=date(2024, 1, 1))
