"""POST /v1/outliers - preview per-month outlier removal"""

from fastapi import APIRouter, Depends

from dscr_gateway.api.dependencies import get_settings
from dscr_gateway.api.v1.schemas import OutlierRequest, OutlierResponse
from dscr_gateway.config import Settings
from dscr_gateway.domain.bucketing import bucketize_by_month
from dscr_gateway.domain.models import Transaction
from dscr_gateway.domain.outliers import count_removed, filter_outliers

router = APIRouter()


@router.post("/outliers", response_model=OutlierResponse)
def preview_outliers(request_body: OutlierRequest, config: Settings = Depends(get_settings)):
    """
    Show which amounts survive outlier removal, grouped by month.

    Returns:
        Cleaned amounts per "YYYY-MM" and the number removed
    """
    strategy = request_body.strategy or config.outlier_strategy
    buckets = bucketize_by_month(Transaction(amount=t.amount, date=t.date) for t in request_body.transactions)
    cleaned = filter_outliers(buckets, strategy)

    return OutlierResponse(
        strategy=strategy,
        months={key: [str(amount) for amount in amounts] for key, amounts in sorted(cleaned.items())},
        removed=count_removed(buckets, cleaned),
    )
