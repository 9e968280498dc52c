"""
Progressive tariff tier classification.

Residential electricity is billed in three cumulative tiers: usage up to
``one_level_pq`` kWh for the year is tier 1, up to ``two_level_pq`` is
tier 2, anything beyond is tier 3. Thresholds are exclusive, so a running
total equal to a threshold stays in the lower tier.
"""

from dataclasses import dataclass
from typing import Any, Iterable, List, Tuple

from .fields import USAGE_ALIASES, first_present, to_number


@dataclass(frozen=True)
class TierEntry:
    """One classified period."""
    cumulative_total: float
    monthly_amount: float
    level: int


@dataclass(frozen=True)
class TierProgress:
    """Year-to-date position within the tier ladder."""
    level: int
    percent: float  # share of the current tier's cap, 0.0 to 1.0
    fills: Tuple[float, float, float]  # per-tier fill, 0.0 to 1.0


def tier_level(total: float, one_level_pq: float, two_level_pq: float) -> int:
    """Tier (1, 2 or 3) for a cumulative usage total."""
    if total > two_level_pq:
        return 3
    if total > one_level_pq:
        return 2
    return 1


def classify(
    amounts: Iterable[float],
    one_level_pq: float,
    two_level_pq: float
) -> List[TierEntry]:
    """Classify each period by the running cumulative total.

    Args:
        amounts: Per-period usage in chronological order
        one_level_pq: Tier 1 upper bound (inclusive)
        two_level_pq: Tier 2 upper bound (inclusive)

    Returns:
        One TierEntry per input amount, in input order
    """
    entries = []
    total = 0.0
    for amount in amounts:
        total += amount
        entries.append(TierEntry(
            cumulative_total=total,
            monthly_amount=amount,
            level=tier_level(total, one_level_pq, two_level_pq)
        ))
    return entries


def classify_months(
    month_list: Iterable[Any],
    one_level_pq: float,
    two_level_pq: float
) -> List[TierEntry]:
    """Classify the upstream monthly usage list.

    Missing or unparseable amounts count as 0 but keep their slot so
    indexes stay aligned with calendar months.
    """
    amounts = []
    for item in month_list:
        amount = to_number(first_present(item, USAGE_ALIASES))
        amounts.append(amount if amount is not None else 0.0)
    return classify(amounts, one_level_pq, two_level_pq)


def tier_progress(total_year_pq: float, one_level_pq: float, two_level_pq: float) -> TierProgress:
    """Compute the year-to-date tier progress shown beside the chart.

    The open-ended third tier is capped at ``2 * two_level_pq - one_level_pq``
    so its bar has a finite length.

    Args:
        total_year_pq: Year-to-date usage in kWh
        one_level_pq: Tier 1 upper bound
        two_level_pq: Tier 2 upper bound

    Returns:
        TierProgress with the current level, the fill of the current tier
        and the individual fill of each of the three tier bars
    """
    total = max(total_year_pq, 0.0)
    third_cap = two_level_pq + two_level_pq - one_level_pq
    level = tier_level(total, one_level_pq, two_level_pq)

    cap = (one_level_pq, two_level_pq, third_cap)[level - 1]
    percent = min(total / cap, 1.0)

    p1 = min(total, one_level_pq) / one_level_pq
    p2 = min(total / two_level_pq, 1.0) if total > one_level_pq else 0.0
    p3 = min(total / third_cap, 1.0) if total > two_level_pq else 0.0

    return TierProgress(level=level, percent=percent, fills=(p1, p2, p3))
