"""
Tests for the 52-week training plan catalog.
"""
import pytest

from services.training_plan import (
    ALL_WEEKS,
    DAYS_OF_WEEK,
    PHASES,
    get_phase,
    get_phase_for_week,
    get_week,
    get_weeks_in_phase,
    required_pairs,
)


class TestPlanShape:
    """Phases partition the 52 weeks"""

    def test_fifty_two_weeks(self):
        assert len(ALL_WEEKS) == 52
        assert [w.week_number for w in ALL_WEEKS] == list(range(1, 53))

    def test_phase_ranges(self):
        assert [len(p.weeks) for p in PHASES] == [8, 12, 16, 12, 4]
        for phase in PHASES:
            assert [w.week_number for w in get_weeks_in_phase(phase.number)] == list(phase.weeks)

    def test_every_week_has_three_to_five_valid_days(self):
        for week in ALL_WEEKS:
            assert 3 <= len(week.days) <= 5
            assert set(week.required_days) <= set(DAYS_OF_WEEK)
            assert len(set(week.required_days)) == len(week.days)

    def test_lookup_helpers(self):
        assert get_phase(1).name == "Adaptación"
        assert get_phase(6) is None
        assert get_week(0) is None
        assert get_week(53) is None
        assert get_phase_for_week(20).number == 2
        assert get_phase_for_week(21).number == 3
        assert get_phase_for_week(52).number == 5


class TestDistances:
    """Spot checks of the generated distances"""

    def test_first_week(self):
        week = get_week(1)
        assert week.required_days == ("Monday", "Wednesday", "Friday")
        assert week.weekly_total_km == 9.0

    def test_progressive_phase_increases_half_km_per_week(self):
        assert get_week(9).distance_for("Monday") == 4.5
        assert get_week(10).distance_for("Monday") == 5.0
        assert get_week(20).distance_for("Sunday") == pytest.approx(11.5)

    def test_consolidation_every_third_week_has_five_walks(self):
        assert len(get_week(23).days) == 5
        assert len(get_week(24).days) == 4
        # base rises by 0.5 after every fourth week of the phase
        assert get_week(24).distance_for("Monday") == 6.0
        assert get_week(25).distance_for("Monday") == 6.5

    def test_peak_week(self):
        assert get_week(50).distance_for("Sunday") == 22.0
        assert get_week(51).required_days == ("Monday", "Wednesday", "Saturday")

    def test_distance_for_rest_day_is_none(self):
        assert get_week(1).distance_for("Tuesday") is None


class TestRequiredPairs:
    def test_phase_one_pairs(self):
        pairs = required_pairs(1)
        assert (1, "Monday") in pairs
        assert (7, "Tuesday") in pairs
        assert (1, "Tuesday") not in pairs
        assert len(pairs) == 3 * 2 + 4 * 6

    def test_unknown_phase_has_no_pairs(self):
        assert required_pairs(9) == set()
