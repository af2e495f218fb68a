"""Per-month outlier removal for transaction amounts.

Statistics are always computed inside a single calendar month so that
seasonal swings or steady income growth across months are never flagged.
Two strategies are available:

- MAD: modified z-score against the median absolute deviation (default,
  usable from two data points up)
- IQR: Tukey fences at 1.5 * IQR outside the quartiles (needs four points)
"""

import statistics
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Mapping, Sequence

from dscr_gateway.domain.bucketing import MonthlyBuckets, bucketize_by_month
from dscr_gateway.domain.models import Transaction

MAD_SCALE = Decimal("0.6745")  # MAD -> standard deviation under normality
MAD_THRESHOLD = Decimal("3.5")
IQR_MULTIPLIER = Decimal("1.5")
IQR_MIN_SAMPLES = 4


def filter_bucket_mad(amounts: Sequence[Decimal], threshold: Decimal = MAD_THRESHOLD) -> List[Decimal]:
    """Drop amounts whose modified z-score exceeds `threshold`"""
    if len(amounts) <= 1:
        return list(amounts)

    center = statistics.median(amounts)
    mad = statistics.median([abs(x - center) for x in amounts])

    # No spread: nothing can be told apart from the rest
    if mad == 0:
        return list(amounts)

    return [x for x in amounts if abs(MAD_SCALE * (x - center) / mad) <= threshold]


def filter_bucket_iqr(amounts: Sequence[Decimal], multiplier: Decimal = IQR_MULTIPLIER) -> List[Decimal]:
    """Drop amounts outside [Q1 - k*IQR, Q3 + k*IQR]"""
    if len(amounts) < IQR_MIN_SAMPLES:
        return list(amounts)

    # "inclusive" interpolates linearly between order statistics at (n - 1) * p
    q1, _, q3 = statistics.quantiles(amounts, n=4, method="inclusive")
    iqr = q3 - q1
    lower = q1 - multiplier * iqr
    upper = q3 + multiplier * iqr

    return [x for x in amounts if lower <= x <= upper]


OUTLIER_FILTERS: Dict[str, Callable[[Sequence[Decimal]], List[Decimal]]] = {
    "mad": filter_bucket_mad,
    "iqr": filter_bucket_iqr,
}


def filter_outliers(buckets: Mapping[str, Sequence[Decimal]], strategy: str = "mad") -> MonthlyBuckets:
    """
    Apply an outlier strategy to every month independently.

    Every month of the input appears in the output; a month only loses
    values, never gains or changes them.
    """
    try:
        bucket_filter = OUTLIER_FILTERS[strategy]
    except KeyError:
        raise ValueError(f"Unknown outlier strategy '{strategy}', expected one of {sorted(OUTLIER_FILTERS)}") from None

    return {key: bucket_filter(amounts) for key, amounts in buckets.items()}


def count_removed(before: Mapping[str, Sequence[Decimal]], after: Mapping[str, Sequence[Decimal]]) -> int:
    """Number of amounts dropped between two bucket maps"""
    return sum(len(amounts) for amounts in before.values()) - sum(len(amounts) for amounts in after.values())


def remove_outliers_mad(transactions: Iterable[Transaction], threshold: Decimal = MAD_THRESHOLD) -> MonthlyBuckets:
    """Bucket transactions by month and drop MAD outliers within each month"""
    return {
        key: filter_bucket_mad(amounts, threshold)
        for key, amounts in bucketize_by_month(transactions).items()
    }


def remove_outliers_iqr(transactions: Iterable[Transaction], multiplier: Decimal = IQR_MULTIPLIER) -> MonthlyBuckets:
    """Bucket transactions by month and drop IQR outliers within each month"""
    return {
        key: filter_bucket_iqr(amounts, multiplier)
        for key, amounts in bucketize_by_month(transactions).items()
    }
