"""
Unit tests for schedule generation.

Tests time anchor resolution, loop bounds and the running total.
"""

import math
from datetime import datetime, timedelta

import pytest

from asset_depreciation.core.schedule import (
    APPROX_DAYS_PER_MONTH,
    MAX_SCHEDULE_MONTHS,
    AssetInput,
    SchedulePolicy,
    TimeAnchor,
    ZeroElapsedPolicy,
    compute_end_month,
    generate_schedule,
    monthly_depreciation,
    resolve_time_anchor,
    utc_now,
)
from asset_depreciation.exceptions import ValidationError

NOW = datetime(2024, 6, 15, 12, 0, 0)


def _asset(**overrides) -> AssetInput:
    params = dict(
        asset_id="A-1",
        company_id="C-1",
        financial_year="2024-25",
        initial_cost=12000,
        depreciation_percentage=12,
    )
    params.update(overrides)
    return AssetInput(**params)


class TestTimeAnchor:
    """Test resolution of elapsed months and manufacturing fields."""

    def test_explicit_month(self):
        """Test month anchor counts from month one and uses the current month."""
        anchor = resolve_time_anchor(month=3, mfd=None, now=NOW)
        assert anchor == TimeAnchor(
            months_passed=2,
            starting_month=1,
            manufacturing_month=6,
            manufacturing_year=None,
        )

    def test_manufacturing_date(self):
        """Test mfd anchor uses 30-day months and the mfd calendar fields."""
        mfd = NOW - timedelta(days=65)
        anchor = resolve_time_anchor(month=None, mfd=mfd, now=NOW)
        assert anchor.months_passed == 2
        assert anchor.starting_month == 1
        assert anchor.manufacturing_month == 4
        assert anchor.manufacturing_year == 2024

    def test_partial_month_rounds_down(self):
        """Test elapsed days short of a full month do not count."""
        mfd = NOW - timedelta(days=APPROX_DAYS_PER_MONTH - 1)
        anchor = resolve_time_anchor(month=None, mfd=mfd, now=NOW)
        assert anchor.months_passed == 0

    def test_custom_days_per_month(self):
        """Test month length is configurable."""
        mfd = NOW - timedelta(days=62)
        assert resolve_time_anchor(None, mfd, NOW, days_per_month=30).months_passed == 2
        assert resolve_time_anchor(None, mfd, NOW, days_per_month=31).months_passed == 2
        assert resolve_time_anchor(None, mfd, NOW, days_per_month=32).months_passed == 1

    def test_mfd_takes_precedence_over_month(self):
        """Test mfd anchors the schedule when both are supplied."""
        mfd = datetime(2023, 11, 1)
        anchor = resolve_time_anchor(month=2, mfd=mfd, now=NOW)
        assert anchor.manufacturing_month == 11
        assert anchor.manufacturing_year == 2023

    def test_neither_anchor_raises_error(self):
        """Test missing month and mfd is a validation error."""
        with pytest.raises(ValidationError, match="month or manufacturing date required"):
            resolve_time_anchor(month=None, mfd=None, now=NOW)

    @pytest.mark.parametrize("month", [0, -1, -12])
    def test_non_positive_month_raises_error(self, month):
        """Test zero or negative month without mfd is rejected."""
        with pytest.raises(ValidationError):
            resolve_time_anchor(month=month, mfd=None, now=NOW)

    def test_non_positive_month_with_mfd_raises_error(self):
        """Test month zero alongside mfd is rejected instead of cutting every row."""
        with pytest.raises(ValidationError, match="positive"):
            resolve_time_anchor(month=0, mfd=datetime(2024, 1, 1), now=NOW)

    def test_future_mfd_raises_error(self):
        """Test manufacturing date after now is rejected."""
        with pytest.raises(ValidationError, match="future"):
            resolve_time_anchor(month=None, mfd=NOW + timedelta(days=1), now=NOW)


class TestEndMonth:
    """Test loop bound computation."""

    def test_bound_follows_elapsed_months(self):
        """Test bound is starting month plus elapsed months."""
        anchor = TimeAnchor(months_passed=4, starting_month=1,
                            manufacturing_month=None, manufacturing_year=None)
        assert compute_end_month(anchor) == 5

    def test_bound_capped_at_twelve(self):
        """Test bound never exceeds the financial year."""
        anchor = TimeAnchor(months_passed=40, starting_month=1,
                            manufacturing_month=None, manufacturing_year=None)
        assert compute_end_month(anchor) == MAX_SCHEDULE_MONTHS

    def test_zero_elapsed_full_year(self):
        """Test zero elapsed months falls back to twelve by default."""
        anchor = TimeAnchor(months_passed=0, starting_month=1,
                            manufacturing_month=None, manufacturing_year=None)
        assert compute_end_month(anchor) == 12

    def test_zero_elapsed_single_month(self):
        """Test zero elapsed months stops at the starting month when configured."""
        anchor = TimeAnchor(months_passed=0, starting_month=1,
                            manufacturing_month=None, manufacturing_year=None)
        policy = SchedulePolicy(zero_elapsed=ZeroElapsedPolicy.SINGLE_MONTH)
        assert compute_end_month(anchor, policy) == 1


class TestGenerateSchedule:
    """Test complete schedule generation."""

    def test_explicit_month_scenario(self):
        """Test 12000 at 12% up to month 3."""
        records = generate_schedule(_asset(month=3), now=NOW)

        assert [r.month for r in records] == [1, 2, 3]
        assert [r.total_depreciated_cost for r in records] == [11880.0, 11760.0, 11640.0]
        for record in records:
            assert record.monthly_depreciation_cost == 120.0
            assert record.initial_cost == 12000.0
            assert record.depreciation_percentage == 12.0
            assert record.asset_id == "A-1"
            assert record.company_id == "C-1"
            assert record.financial_year == "2024-25"
            assert record.mfd is None
            assert record.manufacturing_year is None
            assert record.manufacturing_month == 6

    def test_manufacturing_date_scenario(self):
        """Test 1000 at 10% manufactured 65 days ago."""
        mfd = NOW - timedelta(days=65)
        records = generate_schedule(
            _asset(initial_cost=1000, depreciation_percentage=10, mfd=mfd),
            now=NOW
        )

        assert [r.month for r in records] == [1, 2, 3]
        monthly = 1000 * 10 / 1200
        for i, record in enumerate(records, start=1):
            assert record.monthly_depreciation_cost == pytest.approx(8.3333, abs=1e-4)
            assert record.total_depreciated_cost == pytest.approx(1000 - i * monthly)
            assert record.mfd == mfd
            assert record.manufacturing_year == 2024
            assert record.manufacturing_month == 4

    @pytest.mark.parametrize("month", range(1, 16))
    def test_row_count_for_explicit_month(self, month):
        """Test explicit month k yields min(k, 12) rows numbered from 1."""
        records = generate_schedule(_asset(month=month), now=NOW)
        expected = min(month, 12)
        assert len(records) == expected
        assert [r.month for r in records] == list(range(1, expected + 1))

    def test_running_total_matches_closed_form(self):
        """Test i-th record equals initial cost minus i monthly costs."""
        records = generate_schedule(
            _asset(initial_cost=98765.43, depreciation_percentage=7.5, month=12),
            now=NOW
        )
        monthly = 98765.43 * 7.5 / 1200
        assert len(records) == 12
        for i, record in enumerate(records, start=1):
            assert record.monthly_depreciation_cost == pytest.approx(monthly)
            assert record.total_depreciated_cost == pytest.approx(98765.43 - i * monthly)

    def test_total_strictly_decreasing(self):
        """Test book value falls every month."""
        records = generate_schedule(_asset(month=12), now=NOW)
        totals = [r.total_depreciated_cost for r in records]
        assert all(later < earlier for earlier, later in zip(totals, totals[1:]))

    def test_recent_mfd_full_year_quirk(self):
        """Test mfd less than a month old produces a full year by default."""
        records = generate_schedule(_asset(mfd=NOW - timedelta(days=10)), now=NOW)
        assert len(records) == 12

    def test_mfd_equal_to_now(self):
        """Test mfd exactly now counts as zero elapsed months."""
        records = generate_schedule(_asset(mfd=NOW), now=NOW)
        assert len(records) == 12

    def test_recent_mfd_single_month_policy(self):
        """Test single-month policy limits a fresh asset to one row."""
        policy = SchedulePolicy(zero_elapsed=ZeroElapsedPolicy.SINGLE_MONTH)
        records = generate_schedule(_asset(mfd=NOW - timedelta(days=10)), now=NOW, policy=policy)
        assert [r.month for r in records] == [1]
        assert records[0].total_depreciated_cost == 11880.0

    def test_month_one_single_row(self):
        """Test month one emits one row even under the full-year policy."""
        records = generate_schedule(_asset(month=1), now=NOW)
        assert len(records) == 1
        assert records[0].total_depreciated_cost == 11880.0

    def test_old_mfd_capped_at_twelve(self):
        """Test an old asset never gets more than twelve rows."""
        records = generate_schedule(_asset(mfd=NOW - timedelta(days=400)), now=NOW)
        assert len(records) == 12
        assert records[-1].month == 12

    def test_month_caps_mfd_schedule(self):
        """Test explicit month still stops an mfd-anchored schedule."""
        mfd = NOW - timedelta(days=200)
        records = generate_schedule(_asset(month=3, mfd=mfd), now=NOW)
        assert [r.month for r in records] == [1, 2, 3]
        assert records[0].manufacturing_month == mfd.month

    def test_unclamped_total_goes_negative(self):
        """Test book value may drop below zero by default."""
        records = generate_schedule(
            _asset(initial_cost=1200, depreciation_percentage=240, month=12),
            now=NOW
        )
        assert records[4].total_depreciated_cost == 0.0
        assert records[5].total_depreciated_cost == -240.0

    def test_clamped_total_floors_at_zero(self):
        """Test clamp policy floors book value at zero."""
        policy = SchedulePolicy(clamp_at_zero=True)
        records = generate_schedule(
            _asset(initial_cost=1200, depreciation_percentage=240, month=12),
            now=NOW,
            policy=policy
        )
        assert len(records) == 12
        assert [r.total_depreciated_cost for r in records[4:]] == [0.0] * 8
        assert records[0].total_depreciated_cost == 960.0

    def test_zero_rate(self):
        """Test zero rate keeps book value constant."""
        records = generate_schedule(_asset(depreciation_percentage=0, month=4), now=NOW)
        assert [r.total_depreciated_cost for r in records] == [12000.0] * 4

    def test_idempotent_for_fixed_now(self):
        """Test identical input and now produce identical schedules."""
        asset = _asset(mfd=NOW - timedelta(days=95))
        assert generate_schedule(asset, now=NOW) == generate_schedule(asset, now=NOW)

    def test_missing_anchor_raises_error(self):
        """Test no month and no mfd is rejected."""
        with pytest.raises(ValidationError):
            generate_schedule(_asset(), now=NOW)

    @pytest.mark.parametrize("value", [math.nan, math.inf, -1, "100", None, True])
    def test_invalid_initial_cost_raises_error(self, value):
        """Test bad initial cost never produces NaN rows."""
        with pytest.raises(ValidationError, match="initialCost"):
            generate_schedule(_asset(initial_cost=value, month=3), now=NOW)

    @pytest.mark.parametrize("value", [math.nan, -5, "12"])
    def test_invalid_percentage_raises_error(self, value):
        """Test bad percentage is rejected."""
        with pytest.raises(ValidationError, match="depreciationPercentage"):
            generate_schedule(_asset(depreciation_percentage=value, month=3), now=NOW)

    def test_defaults_to_current_utc_time(self):
        """Test now defaults to the current UTC time for the month anchor."""
        before = utc_now()
        records = generate_schedule(_asset(month=2))
        after = utc_now()
        assert records[0].manufacturing_month in (before.month, after.month)

    def test_recent_utc_mfd_accepted_without_now(self):
        """Test an mfd minutes old in UTC is not treated as future."""
        mfd = utc_now() - timedelta(minutes=5)
        records = generate_schedule(_asset(mfd=mfd))
        assert len(records) == 12
        assert records[0].mfd == mfd

    @pytest.mark.parametrize("month", [0, -3])
    def test_non_positive_month_with_mfd_raises_error(self, month):
        """Test month zero or below cannot empty an mfd schedule."""
        mfd = NOW - timedelta(days=200)
        with pytest.raises(ValidationError, match="month must be a positive integer"):
            generate_schedule(_asset(month=month, mfd=mfd), now=NOW)

    def test_schedule_never_empty(self):
        """Test every accepted anchor yields at least one row."""
        for days in (0, 1, 29, 30, 65, 400):
            assert generate_schedule(_asset(mfd=NOW - timedelta(days=days)), now=NOW)
        for month in (1, 2, 12, 13):
            assert generate_schedule(_asset(month=month), now=NOW)

    def test_oversized_integer_cost_raises_error(self):
        """Test an integer too large for a float is rejected, not an OverflowError."""
        with pytest.raises(ValidationError, match="initialCost is too large"):
            generate_schedule(_asset(initial_cost=10 ** 400, month=3), now=NOW)


class TestMonthlyDepreciation:
    """Test monthly cost derivation."""

    def test_annual_rate_split_over_twelve(self):
        assert monthly_depreciation(12000, 12) == 120.0
        assert monthly_depreciation(1000, 10) == pytest.approx(1000 * 10 / 1200)

    def test_policy_rejects_bad_month_length(self):
        with pytest.raises(ValueError, match="days_per_month"):
            SchedulePolicy(days_per_month=0)
