"""
Display summary extraction.

Flattens an account record into the handful of strings and numbers the
widget shows next to the chart.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .fields import COST_ALIASES, USAGE_ALIASES, dig, dig_list, first_present, is_present, to_number

BALANCE_LABEL = "剩余电费"
ARREARS_LABEL = "待缴电费"


@dataclass(frozen=True)
class DisplaySummary:
    """Presentation-ready account summary."""
    balance: str
    has_arrear: bool
    last_bill: str
    last_usage: str
    year_bill: str
    year_usage: str
    total_year_pq: float
    last_update_time: Optional[int]

    @property
    def balance_label(self) -> str:
        """Caption for ``balance``: amount due when in arrears, else remaining."""
        return ARREARS_LABEL if self.has_arrear else BALANCE_LABEL


def _text(value: Any, default: str) -> str:
    return str(value) if is_present(value) else default


def _money(value: Any, default: str = "0.00") -> str:
    """Render an amount; numeric values get two decimals, strings pass through."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return f"{value:.2f}"
    return _text(value, default)


def extract_display_summary(record: Mapping[str, Any]) -> DisplaySummary:
    """Derive the display summary from one account record.

    Last-period figures come from the first match of: the last monthly
    entry, then the first step record's totals, then zero defaults. The
    step record's year-to-date usage, when set, overrides the monthly
    aggregate because monthly data lags behind.

    Args:
        record: Account record (may be missing any field)

    Returns:
        DisplaySummary
    """
    balance = _money(dig(record, "eleBill", "sumMoney"))
    has_arrear = bool(dig(record, "arrearsOfFees"))

    months = dig_list(record, "monthElecQuantity", "mothEleList")
    particulars = dig(record, "stepElecQuantity", 0, "electricParticulars")
    if not isinstance(particulars, Mapping):
        particulars = None

    last_bill, last_usage = "0.00", "0"
    if months:
        last = months[-1]
        last_bill = _money(first_present(last, COST_ALIASES))
        last_usage = _text(first_present(last, USAGE_ALIASES), "0")
    elif particulars is not None:
        last_bill = _money(particulars.get("totalAmount"))
        last_usage = _text(particulars.get("totalPq"), "0")

    year_bill = _text(dig(record, "monthElecQuantity", "dataInfo", "totalEleCost"), "0")
    year_usage = _text(dig(record, "monthElecQuantity", "dataInfo", "totalEleNum"), "0")

    total_year_pq = 0.0
    step_year_pq = particulars.get("totalYearPq") if particulars is not None else None
    if step_year_pq:
        total_year_pq = to_number(step_year_pq) or 0.0
        year_usage = str(step_year_pq)

    last_update_time = dig(record, "lastUpdateTime")

    return DisplaySummary(
        balance=balance,
        has_arrear=has_arrear,
        last_bill=last_bill,
        last_usage=last_usage,
        year_bill=year_bill,
        year_usage=year_usage,
        total_year_pq=total_year_pq,
        last_update_time=last_update_time
    )
