"""POST /v1/rate - DSCR interest rate endpoint"""

import logging
import time

from fastapi import APIRouter, Depends, HTTPException, Request

from dscr_gateway.api.dependencies import get_request_id, get_settings
from dscr_gateway.api.v1.schemas import RateRequest, RateResponse
from dscr_gateway.config import Settings
from dscr_gateway.domain.exceptions import DomainException
from dscr_gateway.domain.models import RateSolverParams, Transaction
from dscr_gateway.domain.rate_solver import quote_interest_rate
from dscr_gateway.infrastructure.observability.logging import log_rate_calculation
from dscr_gateway.infrastructure.observability.metrics import invalid_request_counter, record_rate
from dscr_gateway.utils.hashing import hash_rate_inputs

router = APIRouter()


def _pick(value, default):
    return default if value is None else value


@router.post("/rate", response_model=RateResponse)
def calculate_rate(
    request_body: RateRequest,
    request: Request,
    config: Settings = Depends(get_settings),
):
    """
    Price a loan against the borrower's transaction history.

    Flow:
    1. Validate loan parameters (request overrides fall back to settings)
    2. Bucket, clean and time-weight monthly income
    3. Solve for the rate that meets the target DSCR
    4. Fingerprint the inputs for attestation
    5. Return the quote
    """
    start_time = time.time()
    request_id = get_request_id(request)

    if len(request_body.transactions) > config.max_transactions_per_request:
        invalid_request_counter.inc()
        raise HTTPException(
            status_code=422,
            detail=f"Too many transactions: limit is {config.max_transactions_per_request}",
        )

    strategy = _pick(request_body.outlier_strategy, config.outlier_strategy)

    try:
        params = RateSolverParams.create(
            loan_amount=request_body.loan_amount,
            term_months=_pick(request_body.term_months, config.default_term_months),
            target_dscr=_pick(request_body.target_dscr, config.default_dscr_target),
            min_rate_percent=_pick(request_body.min_rate_percent, config.min_rate_percent),
            max_rate_percent=_pick(request_body.max_rate_percent, config.max_rate_percent),
        )
        transactions = [Transaction(amount=t.amount, date=t.date) for t in request_body.transactions]

        quote = quote_interest_rate(
            transactions,
            params,
            outlier_strategy=strategy,
            monthly_reduction=config.monthly_reduction,
            decay=config.twap_decay,
            tolerance=config.rate_tolerance,
        )

    except DomainException as e:
        invalid_request_counter.inc()
        logging.warning(f"Invalid rate request: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=422, detail=str(e))

    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    input_hash = hash_rate_inputs(transactions, params.loan_amount)

    # Record metrics and logs
    duration_ms = (time.time() - start_time) * 1000
    record_rate(quote.outcome, float(quote.interest_rate), quote.outliers_removed, strategy)
    log_rate_calculation(request_id, quote, str(params.loan_amount), input_hash, duration_ms)

    return RateResponse(
        interest_rate=f"{quote.interest_rate:.6f}",
        monthly_noi=f"{quote.monthly_noi:.2f}",
        monthly_payment=f"{quote.monthly_payment:.2f}",
        dscr=f"{quote.dscr:.4f}",
        target_dscr=f"{quote.target_dscr:.4f}",
        meets_target=quote.meets_target,
        transactions_used=quote.transactions_used,
        months_used=quote.months_used,
        outliers_removed=quote.outliers_removed,
        input_hash=input_hash,
    )
