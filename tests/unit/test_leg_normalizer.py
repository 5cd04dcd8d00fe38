"""Unit tests for the leg normalizer — broker rows to canonical records."""

import pytest
from datetime import date, datetime, timezone

from legsync.models.legs import OptionLeg, OptionType, StockRow
from legsync.models.leg_normalizer import (
    extract_order_key,
    normalize_execution_row,
    normalize_position_row,
    normalize_statement_row,
    parse_trade_time,
    split_snapshot_rows,
)
from tests.conftest import make_execution_row, make_position_row


# ---------------------------------------------------------------------------
# Position rows
# ---------------------------------------------------------------------------

class TestPositionRows:
    def test_statement_contract_option(self):
        leg = normalize_position_row(make_position_row(conid="12345"))
        assert isinstance(leg, OptionLeg)
        assert leg.ticker == "CRM"
        assert leg.expiry == date(2026, 2, 27)
        assert leg.strike == 160.0
        assert leg.option_type == OptionType.PUT
        assert leg.quantity == 1
        assert leg.avg_cost == 1.50
        assert leg.market_price == 1.25
        assert leg.market_value == pytest.approx(125.0)
        assert leg.conid == 12345
        assert leg.symbol == "CRM 27FEB26 160 P"

    def test_occ_symbol_option(self):
        leg = normalize_position_row(make_position_row(symbol="CRM 260227P00160000", contract=""))
        assert leg.symbol == "CRM 27FEB26 160 P"

    def test_scaled_average_cost_corrected(self):
        leg = normalize_position_row(make_position_row(average_cost=13455, market_price=134.55))
        assert leg.avg_cost == pytest.approx(134.55)

    def test_wrapped_and_string_fields(self):
        row = make_position_row(
            quantity={"value": "-2"}, market_price="1.10", market_value="-220", average_cost="1.40",
        )
        leg = normalize_position_row(row)
        assert leg.quantity == -2
        assert leg.is_short
        assert leg.market_price == pytest.approx(1.10)

    def test_stock_row(self):
        row = make_position_row(
            symbol="AAPL", contract="", quantity=50,
            market_price=190.0, average_cost=150.0, unrealized_pl=2000.0,
        )
        stock = normalize_position_row(row)
        assert isinstance(stock, StockRow)
        assert stock.ticker == "AAPL"
        assert stock.shares == 50
        assert stock.cost_basis == 7500.0
        assert stock.close_price == 190.0
        assert stock.unrealized_pl == 2000.0

    def test_zero_quantity_option_dropped(self):
        assert normalize_position_row(make_position_row(quantity=0)) is None

    def test_bad_option_quantity_never_becomes_stock(self):
        assert normalize_position_row(make_position_row(quantity="abc")) is None

    def test_unrecognizable_row(self):
        assert normalize_position_row(make_position_row(symbol="???", contract="")) is None
        assert normalize_position_row("not a row") is None


class TestSplitSnapshotRows:
    def test_split_and_count_dropped(self):
        rows = [
            make_position_row(),
            make_position_row(symbol="AAPL", contract="", quantity=10, market_price=190.0),
            make_position_row(quantity=0),
            make_position_row(symbol="???", contract=""),
            "garbage",
        ]
        result = split_snapshot_rows(rows)
        assert len(result.legs) == 1
        assert len(result.stocks) == 1
        assert result.dropped == 3

    def test_empty(self):
        result = split_snapshot_rows(None)
        assert result.legs == [] and result.stocks == [] and result.dropped == 0


# ---------------------------------------------------------------------------
# Execution rows
# ---------------------------------------------------------------------------

class TestExecutionRows:
    def test_option_execution(self):
        execution = normalize_execution_row(make_execution_row(conid="555", order_ref="IC-1"))
        assert execution.side == "BUY"
        assert execution.ticker == "CRM"
        assert execution.option_symbol == "CRM 27FEB26 160 P"
        assert execution.trade_time == datetime(2026, 1, 15, 10, 30)
        assert execution.conid == 555
        assert execution.order_key == "ref:IC-1"

    @pytest.mark.parametrize("side, expected", [
        ("BOT", "BUY"), ("B", "BUY"), ("SLD", "SELL"), ("s", "SELL"), ("BUY", "BUY"), (None, None),
    ])
    def test_side_mapping(self, side, expected):
        assert normalize_execution_row(make_execution_row(side=side)).side == expected

    def test_stock_execution(self):
        execution = normalize_execution_row(make_execution_row(symbol="AAPL"))
        assert execution.ticker == "AAPL"
        assert execution.option_symbol is None

    def test_missing_symbol(self):
        assert normalize_execution_row(make_execution_row(symbol="")) is None


class TestOrderKey:
    def test_order_ref_wins(self):
        assert extract_order_key(make_execution_row(order_ref="IC-1", order_id=42)) == "ref:IC-1"

    def test_order_id_fallback(self):
        assert extract_order_key(make_execution_row(order_id=42)) == "oid:42"

    def test_raw_nesting(self):
        assert extract_order_key(make_execution_row(raw={"orderId": 7})) == "oid:7"
        assert extract_order_key(make_execution_row(raw={"order_ref": "R"})) == "ref:R"

    def test_blank_ref_ignored(self):
        assert extract_order_key(make_execution_row(order_ref="  ", order_id=9)) == "oid:9"

    def test_none(self):
        assert extract_order_key(make_execution_row()) is None


class TestParseTradeTime:
    def test_broker_format(self):
        assert parse_trade_time("20260115-10:30:00") == datetime(2026, 1, 15, 10, 30)

    def test_iso_format(self):
        assert parse_trade_time("2026-01-15T10:30:00Z") == datetime(2026, 1, 15, 10, 30, tzinfo=timezone.utc)

    def test_unparseable(self):
        assert parse_trade_time("yesterday") is None
        assert parse_trade_time(None) is None


# ---------------------------------------------------------------------------
# Statement rows
# ---------------------------------------------------------------------------

class TestStatementRows:
    def test_sell_flips_sign_and_derives_values(self):
        leg = normalize_statement_row({
            "symbol": "CRM 27FEB26 165 P",
            "quantity": 1,
            "side": "SELL",
            "avg_price": 1.20,
            "close_price": 0.80,
        })
        assert leg.quantity == -1
        assert leg.avg_cost == pytest.approx(1.20)
        assert leg.market_value == pytest.approx(-80.0)
        assert leg.unrealized_pl == pytest.approx(40.0)

    def test_price_fallback_and_explicit_values(self):
        leg = normalize_statement_row({
            "symbol": "CRM 27FEB26 160 P",
            "quantity": 2,
            "price": 0.50,
            "market_value": 90.0,
            "unrealized_pl": -10.0,
        })
        assert leg.quantity == 2
        assert leg.avg_cost == 0.50
        assert leg.market_value == 90.0
        assert leg.unrealized_pl == -10.0

    def test_non_option(self):
        assert normalize_statement_row({"symbol": "AAPL", "quantity": 1}) is None
