"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidTransactionDataError(DomainException):
    """Transaction data is malformed or invalid"""

    pass


class InvalidRateParametersError(DomainException):
    """Loan parameters cannot be used to solve for a rate"""

    pass


class InvalidLoanAmountError(InvalidRateParametersError):
    """Loan amount is zero or negative"""

    pass


class InvalidLoanTermError(InvalidRateParametersError):
    """Loan term is zero or negative"""

    pass


class InvalidDSCRError(InvalidRateParametersError):
    """Target debt service coverage ratio is zero or negative"""

    pass


class InvalidRateBoundsError(InvalidRateParametersError):
    """Rate search bounds are negative or empty"""

    pass
