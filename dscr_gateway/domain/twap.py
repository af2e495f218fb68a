"""Time-weighted (exponentially decayed) average of monthly NOI"""

from decimal import Decimal
from typing import Any, Mapping, Optional

from dscr_gateway.domain.models import to_decimal
from dscr_gateway.utils.date_utils import month_index, months_between

DEFAULT_DECAY = Decimal("0.9")


def calculate_twap(noi_by_month: Mapping[str, Optional[Any]], decay: Any = DEFAULT_DECAY) -> Decimal:
    """
    Collapse monthly NOI into one recency-weighted figure.

    A month `k` calendar months before the latest month weighs `decay ** k`.
    Months with a missing value are skipped, but the remaining months keep
    their true calendar distance, so a gap never pulls older months forward.
    Key order in the input does not matter.

    Args:
        noi_by_month: "YYYY-MM" -> NOI for that month (None = absent)
        decay: Per-month weight multiplier, 0 < decay <= 1

    Returns:
        Weighted average, or 0 when no month has a value
    """
    decay = to_decimal(decay)
    if not 0 < decay <= 1:
        raise ValueError("decay must be in (0, 1]")

    present = {key: to_decimal(value) for key, value in noi_by_month.items() if value is not None}
    if not present:
        return Decimal(0)

    latest = max(present, key=month_index)

    weighted_sum = Decimal(0)
    weight_total = Decimal(0)
    # Sum in calendar order so the result is identical for any key order
    for key in sorted(present, key=month_index):
        weight = decay ** months_between(key, latest)
        weighted_sum += present[key] * weight
        weight_total += weight

    return weighted_sum / weight_total
