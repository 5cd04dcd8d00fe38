"""Unit tests for the live model service — snapshot in, reconciled live view out."""

from datetime import date

from legsync.pipeline.reconciler import Provenance
from legsync.pipeline.strategy_engine import Strategy
from legsync.services.live_model_service import (
    build_live_model,
    load_known_trades,
    snapshot_date,
)
from tests.conftest import make_execution_row, make_known_trade, make_position_row


def _snapshot():
    positions = [
        make_position_row(contract="CRM 27FEB26 160 P", quantity=1, market_price=0.40, average_cost=0.50),
        make_position_row(contract="CRM 27FEB26 165 P", quantity=-1, market_price=0.90, average_cost=1.20),
        make_position_row(contract="CRM 27FEB26 205 C", quantity=-1, market_price=1.00, average_cost=1.30),
        make_position_row(contract="CRM 27FEB26 210 C", quantity=1, market_price=0.45, average_cost=0.582),
        make_position_row(symbol="MSFT", contract="MSFT 20MAR26 400 C", quantity=1,
                          market_price=9.00, average_cost=800.0, conid=21),
        make_position_row(symbol="MSFT", contract="MSFT 20MAR26 420 C", quantity=-1,
                          market_price=3.00, average_cost=300.0, conid=22),
        make_position_row(symbol="AAPL", contract="", quantity=100, market_price=190.0, average_cost=150.0),
        make_position_row(symbol="???", contract=""),
    ]
    return {
        "positions": positions,
        "summary": {
            "NetLiquidation": {"value": "100000"},
            "TotalCashValue": "-500",
            "__underlying_prices": {"aapl": 185.0, "crm": 250.0},
        },
        "trades": [
            make_execution_row(symbol="MSFT 260320C00400000", conid=21, order_ref="V-1",
                               trade_time="20260112-09:45:00"),
            make_execution_row(symbol="MSFT 260320C00420000", conid=22, side="SLD", order_ref="V-1",
                               trade_time="20260112-09:45:00"),
            make_execution_row(symbol=""),
        ],
        "fetched_at": "2026-01-20T15:00:00Z",
    }


class TestBuildLiveModel:
    def test_end_to_end(self):
        known = [
            make_known_trade(),
            {"id": "not-a-number"},
            make_known_trade(id=2, status="CLOSED"),
        ]
        model = build_live_model(_snapshot(), known)

        assert model.meta == {"matched": 1, "derived": 1, "unmatched_legs": 2, "dropped_rows": 1}
        assert [p.provenance for p in model.positions] == [Provenance.MATCHED, Provenance.DERIVED]

        matched, derived = model.positions
        assert matched.known_trade_id == 1
        assert matched.urgency == 2
        assert derived.ticker == "MSFT"
        assert derived.strategy == Strategy.BULL_CALL_SPREAD
        assert derived.entry_date == date(2026, 1, 12)
        assert derived.entry_price_long == 8.0
        assert derived.entry_price_short == 3.0

    def test_quotes_prices_and_stocks(self):
        model = build_live_model(_snapshot())
        assert model.option_quotes["CRM 27FEB26 160 P"] == 0.40
        assert model.option_quotes["MSFT 20MAR26 420 C"] == 3.00
        assert len(model.option_quotes) == 6
        assert model.underlying_prices == {"AAPL": 190.0, "CRM": 250.0}
        assert [s.ticker for s in model.stocks] == ["AAPL"]
        assert len(model.executions) == 2

    def test_account_summary(self):
        summary = build_live_model(_snapshot()).account_summary
        assert summary.net_liquidation == 100000.0
        assert summary.margin_debt == 500.0

    def test_derived_sorted_by_ticker(self):
        model = build_live_model(_snapshot())
        tickers = [p.ticker for p in model.positions]
        assert tickers == sorted(tickers)
        assert tickers == ["CRM", "MSFT"]

    def test_explicit_as_of(self):
        model = build_live_model(_snapshot(), [make_known_trade()], as_of=date(2026, 2, 25))
        assert model.positions[0].urgency == 5

    def test_position_metrics_aligned_with_positions(self):
        model = build_live_model(_snapshot(), [make_known_trade()])
        assert len(model.metrics) == len(model.positions)

        condor, vertical = model.metrics
        assert condor.snapshot.has_all_quotes is True
        assert condor.risk.level == 5
        assert vertical.snapshot.live_pl == 100.0
        assert vertical.snapshot.profit_capture_pct == 6.7
        assert vertical.risk.label == "UNKNOWN"

    def test_empty_snapshot(self):
        model = build_live_model({})
        assert model.positions == []
        assert model.meta == {"matched": 0, "derived": 0, "unmatched_legs": 0, "dropped_rows": 0}
        assert model.account_summary.net_liquidation is None
        assert model.metrics == []


class TestHelpers:
    def test_load_known_trades_filters(self):
        trades = load_known_trades([
            make_known_trade(id=1),
            make_known_trade(id=2, status="closed"),
            {"id": "bad"},
            make_known_trade(id=3, status="open"),
        ])
        assert [t.id for t in trades] == [1, 3]

    def test_snapshot_date(self):
        assert snapshot_date({"fetched_at": "2026-01-20T15:00:00Z"}) == date(2026, 1, 20)
        assert snapshot_date({"fetched_at": "junk", "created_at": "2026-01-19"}) == date(2026, 1, 19)
        assert snapshot_date({}) is None
