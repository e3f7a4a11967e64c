"""
Performance Tracking Module
===========================
Win/loss statistics from the ledger's trade log, plus Sharpe ratio and
max drawdown over a portfolio value history.
"""

import pandas as pd
import numpy as np
from dataclasses import dataclass, asdict
from typing import List, Optional, Sequence
import threading
import logging

logger = logging.getLogger(__name__)


@dataclass
class PerformanceMetrics:
    """Trading performance metrics."""
    # Win/Loss
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: float = 0.0  # percent
    largest_win: float = 0.0
    largest_loss: float = 0.0
    total_win_amount: float = 0.0
    total_loss_amount: float = 0.0  # negative sum of losing trades
    average_win: float = 0.0
    average_loss: float = 0.0
    profit_factor: float = 0.0

    # Value history
    sharpe_ratio: float = 0.0
    max_drawdown: float = 0.0  # percent

    def to_dict(self) -> dict:
        return asdict(self)


def returns_from_values(values: Sequence[float]) -> List[float]:
    """Period-over-period simple returns; points after a zero value are skipped."""
    values = [float(v) for v in values]
    return [
        (current - previous) / previous
        for previous, current in zip(values[:-1], values[1:])
        if previous != 0
    ]


def sharpe_ratio(returns: Sequence[float], risk_free_rate: float = 0.02) -> float:
    """(mean return - risk free rate) / population std. Zero when returns do not vary."""
    if len(returns) < 2:
        return 0.0

    arr = np.asarray(returns, dtype=float)
    std = arr.std()
    if np.isclose(std, 0.0, atol=1e-12) or np.allclose(arr, arr[0]):
        return 0.0
    return float((arr.mean() - risk_free_rate) / std)


def max_drawdown(values: Sequence[float]) -> float:
    """Largest peak-to-trough decline, in percent."""
    if len(values) < 2:
        return 0.0

    peak = float(values[0])
    max_dd = 0.0
    for value in values[1:]:
        value = float(value)
        if value > peak:
            peak = value
        elif peak > 0:
            max_dd = max(max_dd, (peak - value) / peak)

    return max_dd * 100


class PerformanceTracker:
    """
    Running trade statistics.

    Subscribe ``record_trade`` to a PortfolioLedger to receive every
    executed trade; only trades carrying realized P&L are counted.
    """

    def __init__(self, risk_free_rate: float = 0.02):
        self.risk_free_rate = risk_free_rate
        self.equity_curve: List[float] = []
        self._metrics = PerformanceMetrics()
        self._lock = threading.Lock()

    def record_trade(self, trade):
        """Update win/loss statistics from a realized trade."""
        pnl = trade.realized_pnl
        if pnl is None:
            return

        with self._lock:
            m = self._metrics
            m.total_trades += 1

            if pnl > 0:
                m.winning_trades += 1
                m.total_win_amount += pnl
                m.largest_win = max(m.largest_win, pnl)
            elif pnl < 0:
                m.losing_trades += 1
                m.total_loss_amount += pnl
                m.largest_loss = min(m.largest_loss, pnl)

            m.win_rate = m.winning_trades / m.total_trades * 100
            m.average_win = m.total_win_amount / m.winning_trades if m.winning_trades else 0.0
            m.average_loss = m.total_loss_amount / m.losing_trades if m.losing_trades else 0.0
            m.profit_factor = (
                abs(m.total_win_amount / m.total_loss_amount) if m.total_loss_amount != 0 else 0.0
            )

        logger.debug(f"Recorded {trade.trade_id}: pnl={pnl:,.2f}, win rate {m.win_rate:.1f}%")

    def update_equity(self, value: float):
        """Append a portfolio value to the history used for Sharpe and drawdown."""
        with self._lock:
            self.equity_curve.append(float(value))

    def get_metrics(self) -> PerformanceMetrics:
        """Snapshot of the running statistics plus value-history metrics."""
        with self._lock:
            metrics = PerformanceMetrics(**asdict(self._metrics))
            values = list(self.equity_curve)

        metrics.sharpe_ratio = sharpe_ratio(returns_from_values(values), self.risk_free_rate)
        metrics.max_drawdown = max_drawdown(values)
        return metrics

    def get_equity_series(self) -> pd.Series:
        """Value history as a pandas Series."""
        with self._lock:
            return pd.Series(self.equity_curve, dtype=float, name='equity')

    def reset(self):
        with self._lock:
            self._metrics = PerformanceMetrics()
            self.equity_curve = []

    def generate_report(self) -> str:
        """Generate a text performance report."""
        metrics = self.get_metrics()

        report = f"""
╔══════════════════════════════════════════════════════════════╗
║                  PAPER TRADING PERFORMANCE                   ║
╠══════════════════════════════════════════════════════════════╣
║ Time: {pd.Timestamp.now().strftime('%Y-%m-%d %H:%M:%S'):55s}║
╠══════════════════════════════════════════════════════════════╣
║ TRADING STATISTICS                                           ║
╟──────────────────────────────────────────────────────────────╢
║ Closed Trades:      {metrics.total_trades:>22d}                   ║
║ Winning / Losing:   {f'{metrics.winning_trades} / {metrics.losing_trades}':>22s}                   ║
║ Win Rate:           {metrics.win_rate:>21.2f}%                   ║
║ Avg Win:            {metrics.average_win:>22,.2f}                   ║
║ Avg Loss:           {metrics.average_loss:>22,.2f}                   ║
║ Largest Win:        {metrics.largest_win:>22,.2f}                   ║
║ Largest Loss:       {metrics.largest_loss:>22,.2f}                   ║
║ Profit Factor:      {metrics.profit_factor:>22.2f}                   ║
╠══════════════════════════════════════════════════════════════╣
║ RISK-ADJUSTED METRICS                                        ║
╟──────────────────────────────────────────────────────────────╢
║ Sharpe Ratio:       {metrics.sharpe_ratio:>22.2f}                   ║
║ Max Drawdown:       {metrics.max_drawdown:>21.2f}%                   ║
╚══════════════════════════════════════════════════════════════╝
"""
        return report
