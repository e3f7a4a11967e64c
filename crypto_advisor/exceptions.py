"""
Exceptions
==========
Error taxonomy for the advisor core.

Indicator math never raises for degenerate (flat) windows; it returns the
documented fallback values instead. Everything that can reject an input or a
trade raises one of the classes below.
"""

from enum import Enum
from typing import List, Optional


class RejectionReason(Enum):
    """Why a proposed trade was not admitted to the ledger."""
    INVALID_INPUT = "invalid_input"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    INSUFFICIENT_QUANTITY = "insufficient_quantity"
    RISK_LIMIT_EXCEEDED = "risk_limit_exceeded"


class CryptoAdvisorError(Exception):
    """Base class for all advisor errors."""
    pass


class InvalidInputError(CryptoAdvisorError, ValueError):
    """Raised for malformed series, configuration or trade fields."""
    pass


class TradeRejected(CryptoAdvisorError):
    """Raised when a trade fails admission. The ledger is left unchanged."""

    reason = RejectionReason.INVALID_INPUT

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Trade rejected ({self.reason.value}): {message}")


class InvalidTradeError(TradeRejected, InvalidInputError):
    """Trade fields missing, of the wrong type, or non-positive."""
    reason = RejectionReason.INVALID_INPUT


class InsufficientFundsError(TradeRejected):
    """BUY cost plus commission exceeds available cash."""
    reason = RejectionReason.INSUFFICIENT_FUNDS

    def __init__(self, required: float, available: float):
        self.required = required
        self.available = available
        super().__init__(f"required {required:,.2f}, available cash {available:,.2f}")


class InsufficientQuantityError(TradeRejected):
    """SELL quantity exceeds the held position."""
    reason = RejectionReason.INSUFFICIENT_QUANTITY

    def __init__(self, symbol: str, requested: float, held: float):
        self.symbol = symbol
        self.requested = requested
        self.held = held
        super().__init__(f"cannot sell {requested} {symbol}, holding {held}")


class RiskLimitExceededError(TradeRejected):
    """Trade failed one or more risk policy checks."""
    reason = RejectionReason.RISK_LIMIT_EXCEEDED

    def __init__(self, violations: List, messages: Optional[List[str]] = None):
        self.violations = list(violations)
        self.messages = list(messages or [])
        detail = "; ".join(self.messages) or ", ".join(v.value for v in self.violations)
        super().__init__(detail)
