"""Pytest fixtures for testing"""

import pytest
from datetime import date
from decimal import Decimal
from fastapi.testclient import TestClient
from dscr_gateway.api.main import create_app
from dscr_gateway.domain.models import Transaction


def _build_transactions(*rows: tuple) -> list[Transaction]:
    return [Transaction(amount=Decimal(str(amount)), date=date.fromisoformat(day)) for amount, day in rows]


@pytest.fixture
def make_txns():
    """Factory building transactions from (amount, "YYYY-MM-DD") pairs"""
    return _build_transactions


@pytest.fixture
def client() -> TestClient:
    """Create FastAPI test client"""
    app = create_app()
    return TestClient(app)


@pytest.fixture
def steady_transactions() -> list[Transaction]:
    """Three months of steady income, one deposit per month"""
    return _build_transactions(
        (5000, "2024-01-01"),
        (5200, "2024-02-01"),
        (5100, "2024-03-01"),
    )


@pytest.fixture
def regression_transactions() -> list[dict]:
    """Raw payload captured from a production proof context"""
    return [
        {"amount": 5.4, "date": "2024-12-20"},
        {"amount": 1600, "date": "2024-11-18"},
        {"amount": 1600, "date": "2023-08-25"},
    ]
