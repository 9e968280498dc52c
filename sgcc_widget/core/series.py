"""
Bar chart series derivation.

Turns an account record into chronological ``BarDatum`` sequences for the
standard chart (daily or monthly dimension) and the large widget chart
(7 days, 30 days or 12 months). Daily bars inherit the tariff tier of the
month they fall in.
"""

import re
from dataclasses import dataclass
from datetime import date
from typing import Any, List, Mapping, Optional

from sgcc_widget.config.settings import Dimension, Settings, WidgetRange

from .fields import USAGE_ALIASES, dig_list, first_present, is_present, to_number
from .tariff import TierEntry, classify_months

# Leading YYYY, optional non-digit separator, then MM
DAY_PATTERN = re.compile(r"^(\d{4})\D?(\d{2})")

LARGE_RANGE_COUNTS = {
    WidgetRange.SEVEN_DAYS: 7,
    WidgetRange.THIRTY_DAYS: 30,
    WidgetRange.TWELVE_MONTHS: 12,
}


@dataclass(frozen=True)
class BarDatum:
    """A single chart bar."""
    value: float
    level: int
    label: Optional[str] = None


def _month_list(record: Mapping[str, Any]) -> List[Any]:
    return dig_list(record, "monthElecQuantity", "mothEleList")


def _day_list(record: Mapping[str, Any]) -> List[Any]:
    return dig_list(record, "dayElecQuantity31", "sevenEleList")


def _daily_level(day: str, classification: List[TierEntry], current_year: int) -> int:
    """Tier of a daily entry, looked up from its calendar month."""
    match = DAY_PATTERN.match(day)
    if not match or not classification:
        return 1
    year, month = int(match.group(1)), int(match.group(2))
    if year != current_year:
        return 1
    # assumes the monthly list starts at January; clamp out-of-range months
    index = max(0, min(len(classification) - 1, month - 1))
    return classification[index].level


def daily_bars(
    record: Mapping[str, Any],
    classification: List[TierEntry],
    today: Optional[date] = None
) -> List[BarDatum]:
    """Extract daily bars in chronological ascending order.

    The upstream 31-day list is newest first. Entries without a numeric
    usage value are skipped; entries from another year or with an
    unparseable date get tier 1.

    Args:
        record: Account record
        classification: Monthly tier classification for the same record
        today: Reference date for the current-year check (defaults to today)

    Returns:
        List of BarDatum, oldest first
    """
    current_year = (today or date.today()).year
    bars: List[BarDatum] = []
    for item in _day_list(record):
        if not isinstance(item, Mapping):
            continue
        value = to_number(item.get("dayElePq"))
        if value is None:
            continue
        day = item.get("day")
        label = str(day) if is_present(day) else None
        level = _daily_level(label or "", classification, current_year)
        bars.insert(0, BarDatum(value=value, level=level, label=label))
    return bars


def monthly_bars(record: Mapping[str, Any]) -> List[BarDatum]:
    """Map the upstream monthly list to labelled bars.

    The value is the first present usage alias (0 when none is present);
    items whose value is present but not numeric are skipped. Levels come
    from an upstream ``level`` tag when it is 1-3, else 1.
    """
    bars: List[BarDatum] = []
    for item in _month_list(record):
        if not isinstance(item, Mapping):
            continue
        raw = first_present(item, USAGE_ALIASES)
        value = to_number(raw) if raw is not None else 0.0
        if value is None:
            continue
        tag = to_number(item.get("level"))
        level = int(tag) if tag in (1.0, 2.0, 3.0) else 1
        month = item.get("month")
        bars.append(BarDatum(value=value, level=level, label=str(month) if is_present(month) else ""))
    return bars


def build_chart_series(
    record: Mapping[str, Any],
    settings: Settings,
    today: Optional[date] = None
) -> List[BarDatum]:
    """Build the standard chart series.

    Args:
        record: Account record
        settings: Widget settings (dimension, bar count, tier thresholds)
        today: Reference date for the current-year check

    Returns:
        At most ``settings.bar_count`` bars, oldest first
    """
    classification = classify_months(
        _month_list(record), settings.one_level_pq, settings.two_level_pq
    )

    if settings.dimension == Dimension.MONTHLY:
        bars = [
            BarDatum(value=entry.monthly_amount, level=entry.level)
            for entry in classification
        ]
    else:
        bars = daily_bars(record, classification, today)

    return bars[-settings.bar_count:]


def build_large_range_series(
    record: Mapping[str, Any],
    settings: Settings,
    today: Optional[date] = None
) -> List[BarDatum]:
    """Build the large widget series for ``settings.large_widget_range``.

    Args:
        record: Account record
        settings: Widget settings
        today: Reference date for the current-year check

    Returns:
        The last 12 months, or the last 7 or 30 days, oldest first
    """
    if not isinstance(record, Mapping):
        return []

    count = LARGE_RANGE_COUNTS[settings.large_widget_range]
    if settings.large_widget_range == WidgetRange.TWELVE_MONTHS:
        return monthly_bars(record)[-count:]

    classification = classify_months(
        _month_list(record), settings.one_level_pq, settings.two_level_pq
    )
    return daily_bars(record, classification, today)[-count:]
