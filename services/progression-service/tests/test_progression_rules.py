"""
Tests for pure progression rules (no store, no clock)
"""
import pytest
from datetime import date, datetime, timedelta, timezone

from app.logic.progression import (
    accuracy_rate,
    calculate_level,
    calculate_streak,
    clamp,
    energy_cost,
    hunger_increase,
    is_hungry,
    next_rest_at,
    xp_for_level,
    xp_progress_in_level,
)


class TestLevelCurve:

    @pytest.mark.parametrize("xp,level", [
        (0, 1),
        (999, 1),
        (1000, 2),
        (1999, 2),
        (24_000, 25),
        (123_456, 124),
    ])
    def test_calculate_level(self, xp, level):
        assert calculate_level(xp) == level

    def test_negative_xp_is_level_one(self):
        assert calculate_level(-50) == 1

    def test_xp_for_level(self):
        assert xp_for_level(1) == 0
        assert xp_for_level(2) == 1000
        assert xp_for_level(10) == 9000

    def test_xp_progress_in_level(self):
        progress = xp_progress_in_level(1250)
        assert progress == {
            'current_level': 2,
            'xp_in_level': 250,
            'xp_needed_for_next': 750,
            'xp_per_level': 1000,
        }


class TestEnergyAndHunger:

    def test_clamp(self):
        assert clamp(120, 0, 100) == 100
        assert clamp(-3, 0, 100) == 0
        assert clamp(42, 0, 100) == 42

    def test_hunger_threshold_is_exclusive(self):
        assert is_hungry(70) is False
        assert is_hungry(71) is True

    @pytest.mark.parametrize("base,hunger,expected", [
        (10, 0, 10),
        (10, 70, 10),
        (10, 75, 20),
        (15, 100, 30),
    ])
    def test_energy_cost(self, base, hunger, expected):
        assert energy_cost(base, hunger) == expected

    @pytest.mark.parametrize("minutes,expected", [
        (0, 0),
        (29, 0),
        (30, 5),
        (65, 10),
        (90, 15),
        (-30, 0),
    ])
    def test_hunger_increase(self, minutes, expected):
        assert hunger_increase(minutes) == expected


class TestStreakTransition:

    def test_first_activity(self):
        assert calculate_streak(0, None, date(2025, 1, 5)) == (1, True)

    def test_yesterday_increments(self):
        assert calculate_streak(3, date(2025, 1, 4), date(2025, 1, 5)) == (4, True)

    def test_same_day(self):
        assert calculate_streak(3, date(2025, 1, 5), date(2025, 1, 5)) == (3, False)

    def test_played_today_flag(self):
        assert calculate_streak(3, date(2025, 1, 1), date(2025, 1, 5), played_today=True) == (3, False)

    def test_played_today_flag_on_first_activity(self):
        assert calculate_streak(0, None, date(2025, 1, 5), played_today=True) == (1, True)

    def test_gap_resets(self):
        assert calculate_streak(9, date(2025, 1, 3), date(2025, 1, 5)) == (1, True)

    def test_month_boundary(self):
        assert calculate_streak(2, date(2025, 1, 31), date(2025, 2, 1)) == (3, True)


class TestAccuracyRate:

    def test_no_quizzes(self):
        assert accuracy_rate(0, 0) == 0

    def test_perfect(self):
        assert accuracy_rate(10, 2) == 100

    def test_rounds_half_up(self):
        # 1 / 40 = 2.5%
        assert accuracy_rate(1, 8) == 3


class TestRestCooldown:

    def test_never_rested(self):
        assert next_rest_at(None, datetime(2025, 1, 5, 12, 0, tzinfo=timezone.utc)) is None

    def test_on_cooldown(self):
        rested = datetime(2025, 1, 5, 12, 0, tzinfo=timezone.utc)
        now = rested + timedelta(minutes=30)
        assert next_rest_at(rested, now) == rested + timedelta(hours=2)

    def test_cooldown_boundary_is_available(self):
        rested = datetime(2025, 1, 5, 12, 0, tzinfo=timezone.utc)
        assert next_rest_at(rested, rested + timedelta(hours=2)) is None
