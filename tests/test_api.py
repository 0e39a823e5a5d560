"""
Tests for calculation and underwriting API endpoints.
"""

import io

import pytest
from openpyxl import load_workbook

from dealmodel.reports.excel import XLSX_MEDIA_TYPE


@pytest.fixture
def deal_payload():
    """camelCase underwriting body as sent by the deal screen."""
    return {
        "dealName": "Harbor View",
        "propertyType": "Multifamily",
        "purchasePrice": 10_000_000,
        "units": 100,
        "grossPotentialRent": 900_000,
        "vacancyRate": 0.05,
        "rentGrowth": 0.03,
        "operatingExpenses": 300_000,
        "expenseGrowth": 0.02,
        "loanAmount": 6_500_000,
        "interestRate": 0.06,
        "amortization": 30,
        "holdPeriod": 5,
        "exitCapRate": 0.055,
    }


class TestHealthAPI:
    """Test health endpoint."""

    def test_health(self, client):
        """Test health check."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestCalculationsAPI:
    """Test standalone calculation endpoints."""

    def test_calculate_irr(self, client):
        """Test IRR calculation endpoint."""
        response = client.post(
            "/api/calculate/irr",
            json={"cash_flows": [-100, 121]},
        )
        assert response.status_code == 200
        data = response.json()
        assert abs(data["irr"] - 0.21) < 0.001
        assert data["multiple"] == pytest.approx(1.21)
        assert data["profit"] == pytest.approx(21)

    def test_calculate_irr_undetermined(self, client):
        """An out-of-range IRR comes back as null."""
        response = client.post(
            "/api/calculate/irr",
            json={"cash_flows": [-100, 10_000]},
        )
        assert response.status_code == 200
        assert response.json()["irr"] is None

    def test_calculate_irr_without_investment(self, client):
        """Vectors without an outflow are rejected."""
        response = client.post(
            "/api/calculate/irr",
            json={"cash_flows": [100, 50]},
        )
        assert response.status_code == 400

    def test_calculate_amortization(self, client):
        """Test amortization calculation endpoint."""
        response = client.post(
            "/api/calculate/amortization",
            json={
                "principal": 1_000_000,
                "annual_rate": 0.05,
                "amortization_years": 30,
                "io_years": 1,
                "years": 5,
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert len(data["schedule"]) == 5
        assert data["schedule"][0]["is_interest_only"] is True
        assert data["schedule"][0]["principal"] == 0
        assert abs(data["monthly_payment"] - 5368.22) < 0.01
        assert data["total_principal"] > 0


class TestUnderwritingAPI:
    """Test underwriting endpoints."""

    def test_projection(self, client, deal_payload):
        """Projection returns years 0..N plus exit, returns and metrics."""
        response = client.post("/api/underwriting/projection", json=deal_payload)
        assert response.status_code == 200
        data = response.json()

        assert [y["year"] for y in data["years"]] == [0, 1, 2, 3, 4, 5]
        assert data["years"][0]["before_tax_cash_flow"] == pytest.approx(-3_500_000)
        assert data["years"][1]["effective_gross_income"] == pytest.approx(855_000)
        assert data["exit"]["exit_cap_rate"] == 0.055
        assert data["returns"]["equity_invested"] == pytest.approx(3_500_000)
        assert data["returns"]["irr"] is not None
        assert data["metrics"]["ltv"] == pytest.approx(0.65)

    def test_projection_accepts_snake_case(self, client):
        """Field names are accepted in either case."""
        response = client.post(
            "/api/underwriting/projection",
            json={"purchase_price": 1_000_000, "gross_potential_rent": 120_000, "hold_period": 3},
        )
        assert response.status_code == 200
        assert len(response.json()["years"]) == 4

    def test_projection_rejects_zero_cap_rate(self, client, deal_payload):
        """Exit cap rate must be positive."""
        deal_payload["exitCapRate"] = 0
        response = client.post("/api/underwriting/projection", json=deal_payload)
        assert response.status_code == 400

    def test_projection_rejects_no_equity(self, client, deal_payload):
        """Loan covering the price leaves no equity."""
        deal_payload["loanAmount"] = deal_payload["purchasePrice"]
        response = client.post("/api/underwriting/projection", json=deal_payload)
        assert response.status_code == 400

    def test_projection_rejects_negative_hold(self, client, deal_payload):
        """Hold period cannot be negative."""
        deal_payload["holdPeriod"] = -1
        response = client.post("/api/underwriting/projection", json=deal_payload)
        assert response.status_code == 422

    def test_sensitivity(self, client, deal_payload):
        """Linear matrix by default."""
        response = client.post("/api/underwriting/sensitivity", json=deal_payload)
        assert response.status_code == 200
        data = response.json()

        assert data["approximate"] is True
        assert data["column_values"] == [0.045, 0.05, 0.055, 0.06, 0.065]
        assert data["row_values"] == [0.03, 0.05, 0.07, 0.10]
        assert len(data["cells"]) == 4
        assert data["cells"][1][2] == data["baseline_irr"]

    @pytest.mark.slow
    def test_sensitivity_exact(self, client, deal_payload):
        """Exact mode re-underwrites each cell."""
        response = client.post(
            "/api/underwriting/sensitivity",
            params={"exact": True},
            json=deal_payload,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["approximate"] is False
        assert data["cells"][1][0] > data["cells"][1][4]

    @pytest.mark.integration
    def test_export(self, client, deal_payload):
        """Export returns a workbook attachment."""
        response = client.post(
            "/api/underwriting/export",
            json={"underwriting": deal_payload, "options": {"includeSensitivity": True}},
        )
        assert response.status_code == 200
        assert response.headers["content-type"] == XLSX_MEDIA_TYPE
        assert "attachment" in response.headers["content-disposition"]
        assert "Harbor" in response.headers["content-disposition"]

        workbook = load_workbook(io.BytesIO(response.content))
        assert workbook.sheetnames == ["Summary", "Assumptions", "Cash Flows", "Sensitivity"]

    def test_export_default_options(self, client, deal_payload):
        """Options may be omitted."""
        response = client.post("/api/underwriting/export", json={"underwriting": deal_payload})
        assert response.status_code == 200

    def test_export_invalid_model(self, client, deal_payload):
        """Invalid models are rejected before any workbook is written."""
        deal_payload["exitCapRate"] = -0.05
        response = client.post("/api/underwriting/export", json={"underwriting": deal_payload})
        assert response.status_code == 400

    def test_templates(self, client):
        """Test template listing."""
        response = client.get("/api/underwriting/templates")
        assert response.status_code == 200
        ids = [t["id"] for t in response.json()["templates"]]
        assert ids == ["standard", "acre_all_in_one", "lp_report"]


class TestSettings:
    """Test application settings."""

    def test_sensitivity_mode(self):
        """Mode string selects the exact estimator case-insensitively."""
        from dealmodel.config import Settings

        assert not Settings().exact_sensitivity
        assert Settings(sensitivity_mode="Exact").exact_sensitivity
