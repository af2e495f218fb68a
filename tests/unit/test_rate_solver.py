"""Unit tests for the DSCR rate solver"""

import pytest
from datetime import date, timedelta
from decimal import Decimal
from dscr_gateway.domain.exceptions import (
    InvalidDSCRError,
    InvalidLoanAmountError,
    InvalidLoanTermError,
    InvalidRateBoundsError,
    InvalidRateParametersError,
    InvalidTransactionDataError,
)
from dscr_gateway.domain.models import RateSolverParams
from dscr_gateway.domain.rate_solver import (
    bisection_steps,
    calculate_required_interest_rate,
    monthly_payment,
    quote_interest_rate,
)


def test_regression_fixed_history_flat_weighting(regression_transactions):
    """Test the captured production payload reproduces its recorded rate bit-for-bit"""
    rate = calculate_required_interest_rate(regression_transactions, 20000, decay=1)

    assert rate == Decimal("245.074462890625")
    assert float(rate) == 245.074462890625


def test_regression_history_recent_weak_month_drives_floor(regression_transactions):
    """Test recency weighting lets the weak latest month dominate"""
    # Dec 2024 (5.4) weighs 1.0, Nov 0.9, Aug 2023 only 0.9 ** 16
    assert calculate_required_interest_rate(regression_transactions, 20000) == 100


def test_empty_transactions_return_floor():
    """Test no history gives the minimum rate"""
    assert calculate_required_interest_rate([], 100000) == 100
    assert calculate_required_interest_rate([], 100000, min_rate_percent=2.5) == 250


def test_all_negative_noi_returns_floor(make_txns):
    """Test a history with only outflows gives the minimum rate"""
    transactions = make_txns((-1000, "2024-01-01"), (-1000, "2024-02-01"))

    assert calculate_required_interest_rate(transactions, 100000) == 100


def test_invalid_parameters_raise(make_txns):
    """Test each invalid parameter raises its own error"""
    transactions = make_txns((1000, "2024-01-01"))

    with pytest.raises(InvalidLoanAmountError, match="Invalid loan amount"):
        calculate_required_interest_rate(transactions, -1000)
    with pytest.raises(InvalidLoanAmountError):
        calculate_required_interest_rate(transactions, 0)
    with pytest.raises(InvalidLoanTermError, match="Invalid loan term"):
        calculate_required_interest_rate(transactions, 1000, -24)
    with pytest.raises(InvalidDSCRError, match="Invalid DSCR"):
        calculate_required_interest_rate(transactions, 1000, 24, -1.25)
    with pytest.raises(InvalidRateBoundsError):
        calculate_required_interest_rate(transactions, 1000, min_rate_percent=5, max_rate_percent=5)


@pytest.mark.parametrize("term_months", [24.0, True, "24", None])
def test_non_integer_term_rejected(make_txns, term_months):
    """Test the term must be a real int, never coerced from floats or bools"""
    transactions = make_txns((1000, "2024-01-01"))

    with pytest.raises(InvalidLoanTermError, match="Invalid loan term"):
        calculate_required_interest_rate(transactions, 20000, term_months)


@pytest.mark.parametrize(
    "kwargs, error",
    [
        ({"loan_amount": float("nan")}, InvalidLoanAmountError),
        ({"loan_amount": float("inf")}, InvalidLoanAmountError),
        ({"loan_amount": "abc"}, InvalidLoanAmountError),
        ({"loan_amount": True}, InvalidLoanAmountError),
        ({"loan_amount": 20000, "target_dscr": float("nan")}, InvalidDSCRError),
        ({"loan_amount": 20000, "target_dscr": "Infinity"}, InvalidDSCRError),
        ({"loan_amount": 20000, "min_rate_percent": float("nan")}, InvalidRateBoundsError),
        ({"loan_amount": 20000, "max_rate_percent": float("inf")}, InvalidRateBoundsError),
    ],
)
def test_non_finite_parameters_rejected(make_txns, kwargs, error):
    """Test NaN, infinite and non-numeric parameters raise their parameter's error"""
    transactions = make_txns((1000, "2024-01-01"))

    with pytest.raises(error):
        calculate_required_interest_rate(transactions, **kwargs)


def test_invalid_parameters_checked_before_income():
    """Test validation applies even when there is no history to price"""
    with pytest.raises(InvalidRateParametersError):
        calculate_required_interest_rate([], 0)
    with pytest.raises(InvalidRateParametersError):
        quote_interest_rate([], RateSolverParams(loan_amount=Decimal(1000), target_dscr=Decimal(0)))


def test_malformed_raw_transaction():
    """Test raw transactions that cannot be parsed are rejected"""
    with pytest.raises(InvalidTransactionDataError):
        calculate_required_interest_rate([{"amount": "abc", "date": "2024-01-01"}], 1000)
    with pytest.raises(InvalidTransactionDataError):
        calculate_required_interest_rate([{"amount": 10, "date": "not-a-date"}], 1000)


def test_recovers_known_rate():
    """Test income sized for 5% at DSCR 1.25 solves back to 5%"""
    principal = Decimal(10000)
    noi = monthly_payment(principal, Decimal("0.05"), 12) * Decimal("1.25")
    transactions = [{"amount": noi, "date": date(2024, month, 1)} for month in range(1, 13)]

    rate = calculate_required_interest_rate(transactions, principal, 12)

    # Bisection stops within 0.0001 percentage points above the root
    assert Decimal(500) <= rate < Decimal("500.01")


def test_solved_rate_meets_target_coverage():
    """Test the quoted payment sits at the target DSCR"""
    principal = Decimal(10000)
    noi = monthly_payment(principal, Decimal("0.05"), 12) * 2
    transactions = [{"amount": noi, "date": date(2024, month, 1)} for month in range(1, 13)]
    params = RateSolverParams.create(principal, 12, target_dscr=2)

    quote = quote_interest_rate(transactions, params)

    assert quote.outcome == "solved"
    assert abs(quote.dscr - 2) < Decimal("0.0001")
    assert quote.months_used == 12
    assert quote.transactions_used == 12


@pytest.mark.parametrize(
    "rows",
    [
        [],
        [(5000, "2024-01-01")],
        [(5000, "2024-01-01"), (-1000, "2024-02-01"), (5000, "2024-03-01")],
        [(1, "2024-01-01"), (10**9, "2024-02-01")],
        [(-10**6, "2024-05-05")],
    ],
)
def test_result_always_within_bounds(make_txns, rows):
    """Test the rate never leaves [min * 100, max * 100]"""
    rate = calculate_required_interest_rate(make_txns(*rows), 100000)

    assert 100 <= rate <= 1000


def test_term_changes_rate_and_clamps(steady_transactions):
    """Test short terms hit the floor and long terms hit the ceiling"""
    # NOI ~5100: a 12 month term costs more than 1% allows, 60 months less than 10%
    short_term = calculate_required_interest_rate(steady_transactions, 100000, 12)
    long_term = calculate_required_interest_rate(steady_transactions, 100000, 60)

    assert short_term == 100
    assert long_term == 1000


def test_larger_loan_never_raises_rate(make_txns):
    """Test the sustainable rate falls as principal grows"""
    transactions = make_txns((1100, "2024-01-05"), (1100, "2024-02-05"), (1100, "2024-03-05"))

    small = calculate_required_interest_rate(transactions, 20000)
    large = calculate_required_interest_rate(transactions, 21000)

    assert 100 < small < 1000
    assert large <= small


def test_higher_dscr_never_raises_rate(make_txns):
    """Test a stricter coverage target leaves room for less interest"""
    transactions = make_txns((1100, "2024-01-05"), (1100, "2024-02-05"), (1100, "2024-03-05"))

    relaxed = calculate_required_interest_rate(transactions, 20000, 24, 1.25)
    strict = calculate_required_interest_rate(transactions, 20000, 24, 1.30)

    assert strict < relaxed


def test_recent_income_weighs_more(make_txns):
    """Test rising income prices higher than falling income with the same mean"""
    falling = make_txns(
        (5000, "2024-01-01"), (5000, "2024-02-01"), (4800, "2024-03-01"), (4800, "2024-04-01")
    )
    rising = make_txns(
        (4800, "2024-01-01"), (4800, "2024-02-01"), (5000, "2024-03-01"), (5000, "2024-04-01")
    )

    assert calculate_required_interest_rate(rising, 90000) > calculate_required_interest_rate(falling, 90000)


def test_resists_late_manipulation(make_txns):
    """Test a minority burst of extreme deposits late in the series barely moves the rate"""
    rows = [
        (1000, "2024-01-03"), (1050, "2024-01-10"), (980, "2024-01-17"), (1020, "2024-01-24"),
        (1010, "2024-02-03"), (990, "2024-02-10"), (1040, "2024-02-17"), (1000, "2024-02-24"),
        (1030, "2024-03-03"), (1000, "2024-03-10"), (990, "2024-03-17"), (1010, "2024-03-24"),
    ]
    burst = [(50000, "2024-03-25"), (50000, "2024-03-26"), (50000, "2024-03-27")]

    normal = calculate_required_interest_rate(make_txns(*rows), 75000)
    manipulated = calculate_required_interest_rate(make_txns(*rows, *burst), 75000)

    assert 100 < normal < 1000
    assert abs(normal - manipulated) < 1


def test_majority_burst_passes_through(make_txns):
    """
    Test a burst that outnumbers the month's other amounts is not filtered.

    Once most of a month's amounts are identical, the median absolute
    deviation is zero and the month is kept as is, so the burst reaches the
    income estimate.
    """
    rows = [
        (1000, "2024-01-03"), (1050, "2024-01-10"), (980, "2024-01-17"), (1020, "2024-01-24"),
        (1010, "2024-02-03"), (990, "2024-02-10"), (1040, "2024-02-17"), (1000, "2024-02-24"),
        (1030, "2024-03-03"), (1000, "2024-03-10"), (990, "2024-03-17"), (1010, "2024-03-24"),
    ]
    burst = [(50000, f"2024-03-{day}") for day in (25, 26, 27, 28, 29)]

    quote = quote_interest_rate(make_txns(*rows, *burst), RateSolverParams.create(75000))

    assert quote.outliers_removed == 0
    assert quote.interest_rate == 1000
    assert quote.outcome == "ceiling"


def test_iqr_strategy_selectable(make_txns):
    """Test the IQR strategy can drive the solver"""
    rows = [(1000, "2024-01-03"), (1050, "2024-01-10"), (980, "2024-01-17"), (1020, "2024-01-24"), (90000, "2024-01-25")]

    rate = calculate_required_interest_rate(make_txns(*rows), 75000, outlier_strategy="iqr")

    assert 100 < rate < 1000


def test_quote_floor_for_missing_income():
    """Test a quote without income reports zero coverage at the floor"""
    quote = quote_interest_rate([], RateSolverParams.create(50000))

    assert quote.interest_rate == 100
    assert quote.outcome == "floor"
    assert quote.dscr == 0
    assert quote.meets_target is False
    assert quote.monthly_payment > 0


def test_quote_counts_outliers(make_txns):
    """Test removed amounts are reported on the quote"""
    base = date(2024, 1, 1)
    rows = [(1000 + i * 10, (base + timedelta(days=i)).isoformat()) for i in range(5)]
    rows.append((99999, "2024-01-28"))

    quote = quote_interest_rate(make_txns(*rows), RateSolverParams.create(50000))

    assert quote.outliers_removed == 1
    assert quote.monthly_noi == sum(1000 + i * 10 for i in range(5))


def test_monthly_payment_formula():
    """Test the amortization payment against a known value and the zero-rate case"""
    payment = monthly_payment(Decimal(20000), Decimal("0.10"), 24)

    assert payment.quantize(Decimal("0.01")) == Decimal("922.90")
    assert monthly_payment(Decimal(1200), Decimal(0), 12) == 100


def test_bisection_steps():
    """Test the fixed step count for the default bracket"""
    assert bisection_steps(Decimal(1), Decimal(10), Decimal("0.0001")) == 17
    with pytest.raises(ValueError):
        bisection_steps(Decimal(1), Decimal(10), Decimal(0))
