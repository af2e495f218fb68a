"""Pydantic schemas for API request/response validation"""

import datetime
from decimal import Decimal
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class TransactionSchema(BaseModel):
    """Single dated cash flow; positive amounts are income"""

    amount: Decimal
    date: datetime.date


class RateRequest(BaseModel):
    """Request body for POST /v1/rate"""

    transactions: List[TransactionSchema] = Field(default_factory=list)
    loan_amount: Decimal = Field(..., description="Principal to be repaid")
    term_months: Optional[int] = Field(None, description="Loan term, defaults to service setting")
    target_dscr: Optional[Decimal] = Field(None, description="Required NOI / payment ratio")
    min_rate_percent: Optional[Decimal] = None
    max_rate_percent: Optional[Decimal] = None
    outlier_strategy: Optional[Literal["mad", "iqr"]] = None


class RateResponse(BaseModel):
    """Response for POST /v1/rate"""

    interest_rate: str  # percent * 100, six places
    monthly_noi: str
    monthly_payment: str
    dscr: str
    target_dscr: str
    meets_target: bool
    transactions_used: int
    months_used: int
    outliers_removed: int
    input_hash: str


class OutlierRequest(BaseModel):
    """Request body for POST /v1/outliers"""

    transactions: List[TransactionSchema] = Field(default_factory=list)
    strategy: Optional[Literal["mad", "iqr"]] = None


class OutlierResponse(BaseModel):
    """Response for POST /v1/outliers"""

    strategy: str
    months: Dict[str, List[str]]
    removed: int
