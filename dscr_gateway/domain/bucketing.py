"""Calendar-month grouping of transactions and per-month NOI reduction"""

from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from dscr_gateway.domain.models import Transaction
from dscr_gateway.utils.date_utils import month_key

MonthlyBuckets = Dict[str, List[Decimal]]
MonthlyNOI = Dict[str, Optional[Decimal]]

REDUCTION_METHODS = ("sum", "mean")


def bucketize_by_month(transactions: Iterable[Transaction]) -> MonthlyBuckets:
    """
    Group transaction amounts by "YYYY-MM".

    Keys and amounts keep discovery order. No filtering and no sign checks.
    """
    buckets: MonthlyBuckets = {}
    for txn in transactions:
        buckets.setdefault(month_key(txn.date), []).append(txn.amount)
    return buckets


def _reduce(amounts: Sequence[Decimal], method: str) -> Optional[Decimal]:
    if not amounts:
        return None
    total = sum(amounts, Decimal(0))
    if method == "sum":
        return total
    return total / len(amounts)


def reduce_monthly_noi(buckets: Mapping[str, Sequence[Decimal]], method: str = "sum") -> MonthlyNOI:
    """
    Collapse each month's amounts into one NOI figure.

    - "sum": total net flow of the month (default)
    - "mean": average transaction of the month

    Empty months map to None so the aggregator treats them as absent.
    """
    if method not in REDUCTION_METHODS:
        raise ValueError(f"Unknown monthly reduction '{method}', expected one of {REDUCTION_METHODS}")

    return {key: _reduce(amounts, method) for key, amounts in buckets.items()}
