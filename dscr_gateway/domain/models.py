"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from dscr_gateway.domain.exceptions import (
    InvalidDSCRError,
    InvalidLoanAmountError,
    InvalidLoanTermError,
    InvalidRateBoundsError,
    InvalidTransactionDataError,
)


def to_decimal(value: Any) -> Decimal:
    """Convert a number to Decimal through its string form (5.4 stays 5.4)"""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("booleans are not amounts")
    return Decimal(str(value))


def _is_finite(value: Any) -> bool:
    try:
        return to_decimal(value).is_finite()
    except (TypeError, ValueError, InvalidOperation):
        return False


def _param_decimal(value: Any, error: type, message: str) -> Decimal:
    """Coerce a loan parameter, reporting failures as the parameter's own error"""
    try:
        return to_decimal(value)
    except (TypeError, ValueError, InvalidOperation) as e:
        raise error(message) from e


@dataclass(frozen=True)
class Transaction:
    """Dated income/expense event; positive amounts are income"""

    amount: Decimal
    date: date

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "Transaction":
        """
        Build a Transaction from an `{amount, date}` mapping.

        `date` may be an ISO-8601 string, a date or a datetime.

        Raises:
            InvalidTransactionDataError: On missing fields or unparseable values
        """
        try:
            amount = to_decimal(raw["amount"])
            raw_date = raw["date"]
            if isinstance(raw_date, datetime):
                day = raw_date.date()
            elif isinstance(raw_date, date):
                day = raw_date
            else:
                day = date.fromisoformat(str(raw_date)[:10])
        except (KeyError, TypeError, ValueError, InvalidOperation) as e:
            raise InvalidTransactionDataError(f"Invalid transaction: {raw!r}") from e

        if not amount.is_finite():
            raise InvalidTransactionDataError(f"Transaction amount must be finite: {raw!r}")

        return cls(amount=amount, date=day)


@dataclass(frozen=True)
class RateSolverParams:
    """Loan terms the rate solver works against"""

    loan_amount: Decimal
    term_months: int = 24
    target_dscr: Decimal = Decimal("1.25")
    min_rate_percent: Decimal = Decimal("1.0")
    max_rate_percent: Decimal = Decimal("10.0")

    @classmethod
    def create(
        cls,
        loan_amount: Any,
        term_months: int = 24,
        target_dscr: Any = "1.25",
        min_rate_percent: Any = "1.0",
        max_rate_percent: Any = "10.0",
    ) -> "RateSolverParams":
        """Coerce numeric inputs to Decimal and validate"""
        params = cls(
            loan_amount=_param_decimal(loan_amount, InvalidLoanAmountError, "Invalid loan amount: not a number"),
            term_months=term_months,
            target_dscr=_param_decimal(target_dscr, InvalidDSCRError, "Invalid DSCR: not a number"),
            min_rate_percent=_param_decimal(min_rate_percent, InvalidRateBoundsError, "Invalid rate bounds: not a number"),
            max_rate_percent=_param_decimal(max_rate_percent, InvalidRateBoundsError, "Invalid rate bounds: not a number"),
        )
        params.validate()
        return params

    def validate(self) -> None:
        if not _is_finite(self.loan_amount) or not self.loan_amount > 0:
            raise InvalidLoanAmountError("Invalid loan amount: must be > 0")
        # bool is an int subclass; True is not a one-month term
        if isinstance(self.term_months, bool) or not isinstance(self.term_months, int) or self.term_months <= 0:
            raise InvalidLoanTermError("Invalid loan term: must be > 0 months")
        if not _is_finite(self.target_dscr) or not self.target_dscr > 0:
            raise InvalidDSCRError("Invalid DSCR: target must be > 0")
        if not _is_finite(self.min_rate_percent) or not _is_finite(self.max_rate_percent):
            raise InvalidRateBoundsError("Invalid rate bounds: must be finite numbers")
        if self.min_rate_percent < 0:
            raise InvalidRateBoundsError("Invalid rate bounds: minimum must be >= 0")
        if self.min_rate_percent >= self.max_rate_percent:
            raise InvalidRateBoundsError("Invalid rate bounds: minimum must be below maximum")

    @property
    def floor_rate(self) -> Decimal:
        """Minimum rate in result units (percent * 100)"""
        return self.min_rate_percent * 100

    @property
    def ceiling_rate(self) -> Decimal:
        """Maximum rate in result units (percent * 100)"""
        return self.max_rate_percent * 100


@dataclass(frozen=True)
class RateQuote:
    """Output of a rate calculation, with the figures that produced it"""

    interest_rate: Decimal  # percent * 100
    monthly_noi: Decimal
    monthly_payment: Decimal
    dscr: Decimal
    target_dscr: Decimal
    meets_target: bool
    transactions_used: int
    months_used: int
    outliers_removed: int
    outcome: str  # floor | ceiling | solved
