"""DSCR rate solver - core business logic for loan pricing

Finds the interest rate at which a loan's fixed monthly payment uses up
exactly `NOI / target DSCR` of the borrower's estimated monthly income.

Pipeline:
1. Bucket transactions by calendar month
2. Remove outliers inside each month
3. Reduce each month to one NOI figure
4. Time-weight the months into a single monthly NOI
5. Bisect the amortization formula for the matching rate

All arithmetic runs on Decimal with a fixed step count so the same inputs
always produce the same digits.
"""

import logging
from decimal import Decimal, localcontext
from typing import Any, Iterable, List, Mapping, Tuple, Union

from dscr_gateway.domain.bucketing import bucketize_by_month, reduce_monthly_noi
from dscr_gateway.domain.models import RateQuote, RateSolverParams, Transaction, to_decimal
from dscr_gateway.domain.outliers import count_removed, filter_outliers
from dscr_gateway.domain.twap import DEFAULT_DECAY, calculate_twap

logger = logging.getLogger(__name__)

PRECISION = 50  # Significant digits for every solver computation
DEFAULT_TOLERANCE = Decimal("0.0001")  # Final bracket width, in percentage points

TransactionInput = Union[Transaction, Mapping[str, Any]]


def monthly_payment(principal: Decimal, annual_rate: Decimal, term_months: int) -> Decimal:
    """
    Fixed monthly payment of a fully amortizing loan.

    M = P * r(1+r)^n / ((1+r)^n - 1), with r = annual_rate / 12.
    `annual_rate` is a fraction (0.05 for 5%); a zero rate repays principal
    in equal parts.
    """
    if annual_rate == 0:
        return principal / term_months
    r = annual_rate / 12
    factor = (1 + r) ** term_months
    return principal * r * factor / (factor - 1)


def bisection_steps(low: Decimal, high: Decimal, tolerance: Decimal) -> int:
    """Number of halvings needed to shrink [low, high] to at most `tolerance`"""
    if tolerance <= 0:
        raise ValueError("tolerance must be > 0")
    width = high - low
    steps = 0
    while width > tolerance:
        width /= 2
        steps += 1
    return steps


def _coerce_transactions(transactions: Iterable[TransactionInput]) -> List[Transaction]:
    return [txn if isinstance(txn, Transaction) else Transaction.from_raw(txn) for txn in transactions]


def estimate_monthly_noi(
    transactions: Iterable[Transaction],
    outlier_strategy: str = "mad",
    monthly_reduction: str = "sum",
    decay: Any = DEFAULT_DECAY,
) -> Tuple[Decimal, int, int]:
    """
    Run the income half of the pipeline.

    Returns:
        (monthly NOI, months contributing, outliers removed)
    """
    buckets = bucketize_by_month(transactions)
    cleaned = filter_outliers(buckets, outlier_strategy)
    noi_by_month = reduce_monthly_noi(cleaned, monthly_reduction)

    months_used = sum(1 for value in noi_by_month.values() if value is not None)
    return calculate_twap(noi_by_month, decay), months_used, count_removed(buckets, cleaned)


def solve_rate(noi: Decimal, params: RateSolverParams, tolerance: Decimal = DEFAULT_TOLERANCE) -> Tuple[Decimal, str]:
    """
    Bisect for the rate whose payment equals `noi / target_dscr`.

    Returns:
        (rate in percent * 100, outcome) where outcome is "floor", "ceiling"
        or "solved"
    """
    if noi <= 0:
        return params.floor_rate, "floor"

    target_payment = noi / params.target_dscr
    low = params.min_rate_percent
    high = params.max_rate_percent

    # payment() increases with the rate, so the answer is clamped at the ends
    if target_payment <= monthly_payment(params.loan_amount, low / 100, params.term_months):
        return params.floor_rate, "floor"
    if target_payment >= monthly_payment(params.loan_amount, high / 100, params.term_months):
        return params.ceiling_rate, "ceiling"

    for _ in range(bisection_steps(low, high, to_decimal(tolerance))):
        mid = (low + high) / 2
        if monthly_payment(params.loan_amount, mid / 100, params.term_months) > target_payment:
            high = mid
        else:
            low = mid

    return high * 100, "solved"


def quote_interest_rate(
    transactions: Iterable[TransactionInput],
    params: RateSolverParams,
    outlier_strategy: str = "mad",
    monthly_reduction: str = "sum",
    decay: Any = DEFAULT_DECAY,
    tolerance: Any = DEFAULT_TOLERANCE,
) -> RateQuote:
    """
    Price a loan against a transaction history.

    Parameters are validated before any statistics run. A history with no
    positive income signal gets the floor rate rather than an error.

    Raises:
        InvalidRateParametersError: On a non-positive amount, term or DSCR,
            or unusable rate bounds
        InvalidTransactionDataError: On a malformed raw transaction
    """
    params.validate()
    txns = _coerce_transactions(transactions)

    with localcontext() as ctx:
        ctx.prec = PRECISION

        if txns:
            noi, months_used, removed = estimate_monthly_noi(txns, outlier_strategy, monthly_reduction, decay)
        else:
            noi, months_used, removed = Decimal(0), 0, 0

        rate, outcome = solve_rate(noi, params, tolerance)
        payment = monthly_payment(params.loan_amount, rate / 10_000, params.term_months)
        dscr = noi / payment if noi > 0 else Decimal(0)

    logger.debug(
        "Rate solved",
        extra={"outcome": outcome, "monthly_noi": str(noi), "months_used": months_used, "outliers_removed": removed},
    )

    return RateQuote(
        interest_rate=rate,
        monthly_noi=noi,
        monthly_payment=payment,
        dscr=dscr,
        target_dscr=params.target_dscr,
        meets_target=dscr >= params.target_dscr,
        transactions_used=len(txns),
        months_used=months_used,
        outliers_removed=removed,
        outcome=outcome,
    )


def calculate_required_interest_rate(
    transactions: Iterable[TransactionInput],
    loan_amount: Any,
    term_months: int = 24,
    target_dscr: Any = 1.25,
    min_rate_percent: Any = 1.0,
    max_rate_percent: Any = 10.0,
    *,
    outlier_strategy: str = "mad",
    monthly_reduction: str = "sum",
    decay: Any = DEFAULT_DECAY,
    tolerance: Any = DEFAULT_TOLERANCE,
) -> Decimal:
    """
    Main entry point: highest rate the history can carry at `target_dscr`.

    Returns:
        Annual rate in percent scaled by 100 (1% -> 100, 10% -> 1000),
        always within [min_rate_percent * 100, max_rate_percent * 100]
    """
    params = RateSolverParams.create(
        loan_amount=loan_amount,
        term_months=term_months,
        target_dscr=target_dscr,
        min_rate_percent=min_rate_percent,
        max_rate_percent=max_rate_percent,
    )
    quote = quote_interest_rate(
        transactions,
        params,
        outlier_strategy=outlier_strategy,
        monthly_reduction=monthly_reduction,
        decay=decay,
        tolerance=tolerance,
    )
    return quote.interest_rate
