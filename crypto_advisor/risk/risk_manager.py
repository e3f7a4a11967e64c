"""
Risk Manager Module
===================
Stateless admission checks for proposed trades.

Core principle: risk rules are enforced algorithmically. Every check must
pass before the ledger executes a trade.
"""

from dataclasses import dataclass, field
from typing import List
from enum import Enum
import logging

logger = logging.getLogger(__name__)


class RiskCheck(Enum):
    """Risk policy checks."""
    POSITION_SIZE = "position_size"
    DAILY_LOSS = "daily_loss"
    DRAWDOWN = "drawdown"


@dataclass
class RiskAssessment:
    """Outcome of evaluating one trade against the policy."""
    approved: bool
    violations: List[RiskCheck] = field(default_factory=list)
    messages: List[str] = field(default_factory=list)


class RiskManager:
    """
    Trade admission predicate over (proposed trade, portfolio snapshot).

    SELL orders skip the position-size check since reducing exposure is
    always permitted. The loss checks apply to every trade.
    """

    def __init__(self, policy=None):
        from ..config import RiskPolicy
        self.policy = policy or RiskPolicy()

    def assess(self, request, portfolio) -> RiskAssessment:
        """
        Evaluate a proposed trade.

        Args:
            request: TradeRequest to admit
            portfolio: Current Portfolio snapshot

        Returns:
            RiskAssessment listing every failed check
        """
        violations = []
        messages = []

        if request.is_buy and not self.check_position_size(request, portfolio):
            existing = portfolio.positions.get(request.symbol)
            existing_value = existing.current_value if existing else 0.0
            resulting = existing_value + request.quantity * request.price
            limit = portfolio.total_value * self.policy.max_position_size_fraction
            violations.append(RiskCheck.POSITION_SIZE)
            messages.append(
                f"Position size limit: {request.symbol} would be {resulting:,.2f} > {limit:,.2f}"
            )

        if not self.check_daily_loss(portfolio):
            violations.append(RiskCheck.DAILY_LOSS)
            messages.append(
                f"Daily loss limit: {portfolio.total_pnl_percent:.2f}% < "
                f"-{self.policy.max_daily_loss_fraction * 100:.2f}%"
            )

        if not self.check_drawdown(portfolio):
            violations.append(RiskCheck.DRAWDOWN)
            messages.append(
                f"Max drawdown exceeded: {portfolio.total_pnl_percent:.2f}% < "
                f"-{self.policy.max_drawdown_fraction * 100:.2f}%"
            )

        return RiskAssessment(approved=not violations, violations=violations, messages=messages)

    def check_position_size(self, request, portfolio) -> bool:
        """Resulting position value stays within the size cap."""
        existing = portfolio.positions.get(request.symbol)
        existing_value = existing.current_value if existing else 0.0
        trade_value = request.quantity * request.price
        limit = portfolio.total_value * self.policy.max_position_size_fraction
        # Relative tolerance so a position sized exactly at the cap is admitted
        return existing_value + trade_value <= limit * (1 + 1e-9)

    def check_daily_loss(self, portfolio) -> bool:
        return portfolio.total_pnl_percent >= -self.policy.max_daily_loss_fraction * 100

    def check_drawdown(self, portfolio) -> bool:
        return portfolio.total_pnl_percent >= -self.policy.max_drawdown_fraction * 100

    def position_size(self, signal, portfolio, risk_fraction: float = 0.02) -> float:
        """
        Fixed-fractional position size for a signal.

        Risks ``risk_fraction`` of portfolio value between entry and stop,
        capped by the position-size limit.
        """
        entry = signal.entry_price
        if entry <= 0:
            return 0.0

        risk_per_unit = abs(entry - signal.stop_loss)
        if risk_per_unit <= 0:
            return 0.0

        account_value = portfolio.total_value
        quantity = account_value * risk_fraction / risk_per_unit
        max_quantity = account_value * self.policy.max_position_size_fraction / entry

        return max(min(quantity, max_quantity), 0.0)
