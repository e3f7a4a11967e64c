"""Tests for monitoring/performance.py"""

from datetime import datetime

import pytest

from crypto_advisor.monitoring import (
    PerformanceTracker,
    max_drawdown,
    returns_from_values,
    sharpe_ratio,
)
from crypto_advisor.paper_trading import Trade, TradeType
from tests.conftest import buy, sell


def closed_trade(pnl, trade_id='TR00001'):
    return Trade(
        trade_id=trade_id,
        symbol='BTC',
        trade_type=TradeType.SELL if pnl is not None else TradeType.BUY,
        quantity=1.0,
        price=100.0,
        commission=0.1,
        timestamp=datetime(2024, 1, 1),
        realized_pnl=pnl
    )


class TestTradeStatistics:

    def test_win_loss_metrics(self):
        tracker = PerformanceTracker()
        for pnl in (100.0, -50.0, 200.0, None):
            tracker.record_trade(closed_trade(pnl))

        metrics = tracker.get_metrics()
        assert metrics.total_trades == 3
        assert metrics.winning_trades == 2
        assert metrics.losing_trades == 1
        assert metrics.win_rate == pytest.approx(66.6667, rel=1e-4)
        assert metrics.average_win == pytest.approx(150)
        assert metrics.average_loss == pytest.approx(-50)
        assert metrics.largest_win == 200
        assert metrics.largest_loss == -50
        assert metrics.profit_factor == pytest.approx(6)

    def test_no_losses_profit_factor_zero(self):
        tracker = PerformanceTracker()
        tracker.record_trade(closed_trade(10.0))
        assert tracker.get_metrics().profit_factor == 0.0

    def test_reset(self):
        tracker = PerformanceTracker()
        tracker.record_trade(closed_trade(10.0))
        tracker.update_equity(100)
        tracker.reset()

        assert tracker.get_metrics().total_trades == 0
        assert tracker.get_equity_series().empty


class TestValueHistory:

    def test_sharpe(self):
        assert sharpe_ratio([0.1, 0.2, 0.3]) == pytest.approx(2.2045, rel=1e-4)

    def test_sharpe_degenerate(self):
        assert sharpe_ratio([0.1]) == 0.0
        assert sharpe_ratio([0.05, 0.05, 0.05]) == 0.0

    def test_sharpe_constant_returns_with_float_noise(self):
        assert sharpe_ratio([0.1 + 1e-17, 0.1, 0.1 - 1e-17]) == 0.0
        assert sharpe_ratio(returns_from_values([100, 110, 121, 133.1])) == 0.0

    def test_constant_growth_equity_curve(self):
        tracker = PerformanceTracker()
        for value in (100, 110, 121, 133.1):
            tracker.update_equity(value)

        metrics = tracker.get_metrics()
        assert metrics.sharpe_ratio == 0.0
        assert metrics.max_drawdown == 0.0

    def test_max_drawdown(self):
        assert max_drawdown([100, 120, 90, 130, 65]) == pytest.approx(50)
        assert max_drawdown([100, 110, 120]) == 0.0
        assert max_drawdown([100]) == 0.0

    def test_returns_from_values(self):
        assert returns_from_values([100, 110, 99]) == pytest.approx([0.1, -0.1])
        assert returns_from_values([0, 10, 20]) == pytest.approx([1.0])

    def test_equity_curve_metrics(self):
        tracker = PerformanceTracker()
        for value in (100, 120, 90, 130, 65):
            tracker.update_equity(value)

        metrics = tracker.get_metrics()
        assert metrics.max_drawdown == pytest.approx(50)
        assert list(tracker.get_equity_series()) == [100, 120, 90, 130, 65]


class TestLedgerIntegration:

    def test_records_closed_trades(self, ledger):
        tracker = PerformanceTracker()
        ledger.add_listener(tracker.record_trade)

        ledger.execute_trade(buy('BTC', 1, 100))
        ledger.execute_trade(sell('BTC', 1, 110))

        metrics = tracker.get_metrics()
        assert metrics.total_trades == 1
        assert metrics.winning_trades == 1
        assert metrics.largest_win == pytest.approx(110 - 100 - 0.11)

    def test_report(self):
        tracker = PerformanceTracker()
        tracker.record_trade(closed_trade(25.0))
        report = tracker.generate_report()

        assert 'PAPER TRADING PERFORMANCE' in report
        assert 'Win Rate' in report
        assert '100.00%' in report
