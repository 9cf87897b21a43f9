"""
Depreciation schedule generation.

Turns an asset's cost, annual rate and time anchor into an ordered list
of monthly depreciation records for one financial year.

Generation rules:
1. Time anchor - manufacturing date wins over an explicit month
2. Bound - elapsed months from the anchor, capped at twelve
3. Fold - each month subtracts the fixed monthly cost from the running total
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, NamedTuple, Optional

from asset_depreciation.exceptions import ValidationError
from asset_depreciation.storage.models import AssetDepreciationRecord

logger = logging.getLogger(__name__)

# Fixed-length month used to turn elapsed days into elapsed months.
# Not calendar-accurate.
APPROX_DAYS_PER_MONTH = 30

MAX_SCHEDULE_MONTHS = 12


class ZeroElapsedPolicy(Enum):
    """Bound to use when no whole month has elapsed since the anchor."""
    FULL_YEAR = "full_year"  # Fall back to the twelve-month horizon
    SINGLE_MONTH = "single_month"  # Emit the starting month only


@dataclass(frozen=True)
class SchedulePolicy:
    """Tunable generation rules."""
    zero_elapsed: ZeroElapsedPolicy = ZeroElapsedPolicy.FULL_YEAR
    clamp_at_zero: bool = False
    days_per_month: int = APPROX_DAYS_PER_MONTH

    def __post_init__(self):
        """Validate days_per_month is positive."""
        if self.days_per_month <= 0:
            raise ValueError("days_per_month must be > 0")


DEFAULT_POLICY = SchedulePolicy()


@dataclass(frozen=True)
class AssetInput:
    """Parameters for one schedule submission."""
    asset_id: str
    company_id: str
    financial_year: str
    initial_cost: float
    depreciation_percentage: float
    month: Optional[int] = None
    mfd: Optional[datetime] = None


class TimeAnchor(NamedTuple):
    """Resolved starting point of a schedule."""
    months_passed: int
    starting_month: int
    manufacturing_month: Optional[int]
    manufacturing_year: Optional[int]


def resolve_time_anchor(
    month: Optional[int],
    mfd: Optional[datetime],
    now: datetime,
    days_per_month: int = APPROX_DAYS_PER_MONTH
) -> TimeAnchor:
    """Work out elapsed months and manufacturing fields.

    Args:
        month: Explicit schedule month, if given
        mfd: Manufacturing date, if given
        now: Reference time for elapsed-month computation
        days_per_month: Length of an approximate month in days

    Returns:
        TimeAnchor for the schedule

    Raises:
        ValidationError: If neither anchor is usable, month is not positive,
            or mfd is after now
    """
    if month is not None and month <= 0:
        raise ValidationError("month must be a positive integer")

    if mfd is not None:
        if mfd > now:
            raise ValidationError("manufacturing date cannot be in the future")
        elapsed = now - mfd
        months_passed = elapsed // timedelta(days=days_per_month)
        return TimeAnchor(
            months_passed=months_passed,
            starting_month=1,
            manufacturing_month=mfd.month,
            manufacturing_year=mfd.year,
        )

    if month is not None:
        return TimeAnchor(
            months_passed=month - 1,
            starting_month=1,
            manufacturing_month=now.month,
            manufacturing_year=None,
        )

    raise ValidationError("month or manufacturing date required")


def compute_end_month(anchor: TimeAnchor, policy: SchedulePolicy = DEFAULT_POLICY) -> int:
    """Last month index the generator may visit."""
    if anchor.months_passed:
        return min(anchor.starting_month + anchor.months_passed, MAX_SCHEDULE_MONTHS)
    if policy.zero_elapsed == ZeroElapsedPolicy.SINGLE_MONTH:
        return anchor.starting_month
    return MAX_SCHEDULE_MONTHS


def utc_now() -> datetime:
    """Current time as naive UTC, the clock manufacturing dates are kept in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def monthly_depreciation(initial_cost: float, depreciation_percentage: float) -> float:
    """Fixed per-month reduction for an annual percentage rate."""
    return initial_cost * depreciation_percentage / 100 / 12


def _validate_amount(name: str, value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number")
    try:
        value = float(value)
    except OverflowError:
        raise ValidationError(f"{name} is too large")
    if not math.isfinite(value):
        raise ValidationError(f"{name} must be a finite number")
    if value < 0:
        raise ValidationError(f"{name} cannot be negative")
    return value


def generate_schedule(
    asset: AssetInput,
    now: Optional[datetime] = None,
    policy: Optional[SchedulePolicy] = None
) -> List[AssetDepreciationRecord]:
    """Generate the monthly depreciation records for one asset.

    The running total is carried through the loop as an accumulator and
    is decremented before the explicit-month cut-off is checked, so the
    last emitted row already reflects its own month.

    Args:
        asset: Asset parameters and time anchor
        now: Naive UTC reference time; defaults to the current UTC time
        policy: Generation rules; defaults to DEFAULT_POLICY

    Returns:
        Records ordered by month, starting at 1, at most twelve

    Raises:
        ValidationError: If the input cannot produce a schedule
    """
    policy = policy or DEFAULT_POLICY
    now = now or utc_now()

    initial_cost = _validate_amount("initialCost", asset.initial_cost)
    percentage = _validate_amount("depreciationPercentage", asset.depreciation_percentage)

    anchor = resolve_time_anchor(asset.month, asset.mfd, now, policy.days_per_month)
    end_month = compute_end_month(anchor, policy)
    monthly_cost = monthly_depreciation(initial_cost, percentage)

    logger.debug(
        "Asset %s: months_passed=%d, months %d..%d, monthly cost %.4f",
        asset.asset_id, anchor.months_passed, anchor.starting_month, end_month, monthly_cost
    )

    records = []
    total = initial_cost
    for m in range(anchor.starting_month, end_month + 1):
        total = total - monthly_cost
        if asset.month is not None and asset.month < m:
            break
        records.append(AssetDepreciationRecord(
            asset_id=asset.asset_id,
            company_id=asset.company_id,
            financial_year=asset.financial_year,
            month=m,
            initial_cost=initial_cost,
            depreciation_percentage=percentage,
            monthly_depreciation_cost=monthly_cost,
            total_depreciated_cost=max(total, 0.0) if policy.clamp_at_zero else total,
            mfd=asset.mfd,
            manufacturing_year=anchor.manufacturing_year,
            manufacturing_month=anchor.manufacturing_month,
        ))

    return records
