"""Deterministic fingerprint of rate inputs for downstream attestation"""

import hashlib
import json
from decimal import Decimal
from typing import Iterable

from dscr_gateway.domain.models import Transaction


def hash_rate_inputs(transactions: Iterable[Transaction], loan_amount: Decimal) -> str:
    """SHA-256 hex digest of the canonical JSON form of transactions + loan amount"""
    payload = {
        "transactions": [{"amount": str(t.amount), "date": t.date.isoformat()} for t in transactions],
        "loan_amount": str(loan_amount),
    }
    data = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(data.encode("utf-8")).hexdigest()
