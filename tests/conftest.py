"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient

from dealmodel.main import app
from dealmodel.schemas import UnderwritingModel, WaterfallStructure


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests that re-underwrite many scenarios")
    config.addinivalue_line("markers", "integration: marks tests that write and reload workbooks")


@pytest.fixture
def client():
    """HTTP client against the application."""
    return TestClient(app)


@pytest.fixture
def base_model():
    """
    Levered 100-unit acquisition.

    $10M price, $6.5M loan at 6% / 30 years, $900K GPR, $300K aggregate
    operating expenses, 5-year hold at a 5.5% exit cap.
    """
    return UnderwritingModel(
        deal_name="Riverside Commons",
        property_type="Multifamily",
        purchase_price=10_000_000,
        units=100,
        gross_potential_rent=900_000,
        vacancy_rate=0.05,
        rent_growth=0.03,
        operating_expenses=300_000,
        expense_growth=0.02,
        loan_amount=6_500_000,
        interest_rate=0.06,
        amortization=30,
        hold_period=5,
        exit_cap_rate=0.055,
    )


@pytest.fixture
def waterfall_model(base_model):
    """Base model with a 90/10 LP/GP structure and two promote tiers."""
    return base_model.model_copy(update={
        "waterfall": WaterfallStructure(
            lp_equity=3_150_000,
            gp_equity=350_000,
            preferred_return=0.08,
            promote_tiers=[
                {"hurdle": 0.08, "lpSplit": 0.80, "gpSplit": 0.20},
                {"hurdle": 0.15, "lpSplit": 0.70, "gpSplit": 0.30},
            ],
        ),
    })


@pytest.fixture
def unlevered_no_hold_model():
    """All-equity deal with a zero-year hold: no operating years, no IRR."""
    return UnderwritingModel(
        deal_name="Vacant Lot",
        purchase_price=1_000_000,
        gross_potential_rent=100_000,
        hold_period=0,
    )
