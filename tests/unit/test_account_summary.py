"""Unit tests for account summary normalization."""

import pytest

from legsync.pipeline.account_summary import (
    AccountSummary,
    extract_underlying_prices,
    normalize_account_summary,
)


class TestNormalizeAccountSummary:
    def test_loose_keys_and_wrappers(self):
        summary = normalize_account_summary({
            "Net Liquidation": {"value": "8000.50"},
            "total_cash_value": "-250.75",
            "MAINT_MARGIN_REQ": "1,234.5",
            "buying-power": {"amount": 16000},
        })
        assert summary.net_liquidation == pytest.approx(8000.50)
        assert summary.cash == pytest.approx(-250.75)
        assert summary.margin_debt == pytest.approx(250.75)
        assert summary.maintenance_margin == pytest.approx(1234.5)
        assert summary.buying_power == 16000.0
        assert summary.excess_liquidity is None

    def test_exact_spellings(self):
        summary = normalize_account_summary({
            "netLiquidation": 100000,
            "totalCashValue": 2500,
            "excessLiquidity": "45000",
            "grossPositionValue": 97500,
            "leverage": "0.98",
            "cushion": 0.45,
        })
        assert summary.net_liquidation == 100000.0
        assert summary.cash == 2500.0
        assert summary.margin_debt == 0.0
        assert summary.excess_liquidity == 45000.0
        assert summary.gross_position_value == 97500.0
        assert summary.leverage == pytest.approx(0.98)
        assert summary.cushion == pytest.approx(0.45)

    def test_earlier_spelling_wins(self):
        summary = normalize_account_summary({"cashBalance": 5, "totalCashValue": 7})
        assert summary.cash == 7.0

    def test_unparseable_values_are_none(self):
        summary = normalize_account_summary({"NetLiquidation": "n/a", "cash": None})
        assert summary.net_liquidation is None
        assert summary.cash is None
        assert summary.margin_debt is None

    def test_zero_is_kept(self):
        summary = normalize_account_summary({"cash": 0})
        assert summary.cash == 0.0
        assert summary.margin_debt == 0.0

    def test_not_a_mapping(self):
        assert normalize_account_summary(None) == AccountSummary()
        assert normalize_account_summary(["netLiquidation", 1]) == AccountSummary()


class TestUnderlyingPrices:
    def test_extract(self):
        prices = extract_underlying_prices({
            "__underlying_prices": {"crm": "250.123456", " aapl ": 190, "": 1, "X": "bad"},
        })
        assert prices == {"CRM": 250.1235, "AAPL": 190.0}

    def test_missing(self):
        assert extract_underlying_prices({"netLiquidation": 1}) == {}
        assert extract_underlying_prices({"__underlying_prices": [1, 2]}) == {}
        assert extract_underlying_prices(None) == {}
