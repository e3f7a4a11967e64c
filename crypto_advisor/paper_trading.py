"""
Paper Trading Ledger
====================

Virtual crypto portfolio with:
- Cash and per-symbol position tracking (weighted-average cost basis)
- Realized / unrealized P&L
- Risk-gated trade admission
- Append-only trade log

``apply_trade`` is the pure transition (old portfolio + request -> new
portfolio and trade record, or a raised rejection). ``PortfolioLedger``
wraps it with state, a lock and listeners. Persisting snapshots is left to
the host application.
"""

import copy
import math
import numbers
import uuid
from datetime import datetime
from dataclasses import dataclass, field, asdict, replace
from typing import Callable, Dict, List, Optional, Tuple
from enum import Enum
import threading
import logging

from .exceptions import (
    InvalidTradeError,
    InsufficientFundsError,
    InsufficientQuantityError,
    RiskLimitExceededError,
    TradeRejected,
)

logger = logging.getLogger(__name__)

# Remaining quantity at or below this is treated as a closed position
QUANTITY_EPSILON = 1e-12


class TradeType(Enum):
    BUY = "BUY"
    SELL = "SELL"


class TradeStatus(Enum):
    EXECUTED = "EXECUTED"


def _to_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


@dataclass
class Position:
    """Open holding in one symbol."""
    symbol: str
    quantity: float
    cost_basis: float
    current_price: float

    @property
    def average_price(self) -> float:
        return self.cost_basis / self.quantity if self.quantity > 0 else 0.0

    @property
    def current_value(self) -> float:
        return self.quantity * self.current_price

    @property
    def unrealized_pnl(self) -> float:
        return self.current_value - self.cost_basis

    @property
    def unrealized_pnl_percent(self) -> float:
        return self.unrealized_pnl / self.cost_basis * 100 if self.cost_basis > 0 else 0.0

    def to_dict(self) -> dict:
        data = asdict(self)
        data['average_price'] = self.average_price
        data['current_value'] = self.current_value
        data['unrealized_pnl'] = self.unrealized_pnl
        data['unrealized_pnl_percent'] = self.unrealized_pnl_percent
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'Position':
        return cls(
            symbol=data['symbol'],
            quantity=float(data['quantity']),
            cost_basis=float(data['cost_basis']),
            current_price=float(data['current_price'])
        )


@dataclass
class Portfolio:
    """Cash, positions and the last marked valuation."""
    initial_capital: float
    cash: float
    positions: Dict[str, Position] = field(default_factory=dict)
    total_value: float = 0.0
    total_pnl: float = 0.0
    total_pnl_percent: float = 0.0
    last_updated: datetime = field(default_factory=datetime.now)

    @classmethod
    def new(cls, initial_capital: float) -> 'Portfolio':
        """Fresh all-cash portfolio."""
        return cls(initial_capital=initial_capital, cash=initial_capital,
                   total_value=initial_capital)

    def copy(self) -> 'Portfolio':
        return copy.deepcopy(self)

    def to_dict(self) -> dict:
        return {
            'initial_capital': self.initial_capital,
            'cash': self.cash,
            'positions': {s: p.to_dict() for s, p in self.positions.items()},
            'total_value': self.total_value,
            'total_pnl': self.total_pnl,
            'total_pnl_percent': self.total_pnl_percent,
            'last_updated': self.last_updated.isoformat()
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Portfolio':
        return cls(
            initial_capital=float(data['initial_capital']),
            cash=float(data['cash']),
            positions={s: Position.from_dict(p) for s, p in data.get('positions', {}).items()},
            total_value=float(data.get('total_value', data['cash'])),
            total_pnl=float(data.get('total_pnl', 0.0)),
            total_pnl_percent=float(data.get('total_pnl_percent', 0.0)),
            last_updated=_to_datetime(data['last_updated']) if data.get('last_updated') else datetime.now()
        )


@dataclass(frozen=True)
class Trade:
    """Executed trade. Never edited once logged."""
    trade_id: str
    symbol: str
    trade_type: TradeType
    quantity: float
    price: float
    commission: float
    timestamp: datetime
    realized_pnl: Optional[float] = None  # SELL only
    status: TradeStatus = TradeStatus.EXECUTED

    @property
    def value(self) -> float:
        return self.quantity * self.price

    def to_dict(self) -> dict:
        data = asdict(self)
        data['trade_type'] = self.trade_type.value
        data['status'] = self.status.value
        data['timestamp'] = self.timestamp.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'Trade':
        realized = data.get('realized_pnl')
        return cls(
            trade_id=data['trade_id'],
            symbol=data['symbol'],
            trade_type=TradeType(data['trade_type']),
            quantity=float(data['quantity']),
            price=float(data['price']),
            commission=float(data['commission']),
            timestamp=_to_datetime(data['timestamp']),
            realized_pnl=float(realized) if realized is not None else None,
            status=TradeStatus(data.get('status', TradeStatus.EXECUTED.value))
        )


@dataclass
class TradeRequest:
    """Proposed trade awaiting admission."""
    symbol: str
    trade_type: TradeType
    quantity: float
    price: float
    timestamp: Optional[datetime] = None

    @property
    def is_buy(self) -> bool:
        return self.trade_type == TradeType.BUY

    @classmethod
    def from_dict(cls, data: dict) -> 'TradeRequest':
        """Build from a plain mapping ({symbol, type, quantity, price, timestamp?})."""
        return validate_request(cls(
            symbol=data.get('symbol'),
            trade_type=data.get('type', data.get('trade_type')),
            quantity=data.get('quantity'),
            price=data.get('price'),
            timestamp=data.get('timestamp')
        ))


@dataclass
class TradeResult:
    """Outcome of a ledger execution attempt."""
    accepted: bool
    trade: Optional[Trade] = None
    error: Optional[TradeRejected] = None

    @property
    def reason(self) -> Optional[str]:
        return self.error.reason.value if self.error else None


def _positive_number(value, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidTradeError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value) or value <= 0:
        raise InvalidTradeError(f"{name} must be positive, got {value!r}")
    return float(value)


def validate_request(request: TradeRequest) -> TradeRequest:
    """Check request fields; returns a normalized copy or raises InvalidTradeError."""
    if not isinstance(request.symbol, str) or not request.symbol.strip():
        raise InvalidTradeError("symbol is required")

    trade_type = request.trade_type
    if not isinstance(trade_type, TradeType):
        try:
            trade_type = TradeType(str(trade_type).upper())
        except ValueError:
            raise InvalidTradeError(f"trade type must be BUY or SELL, got {request.trade_type!r}")

    timestamp = request.timestamp
    if timestamp is not None and not isinstance(timestamp, datetime):
        try:
            timestamp = _to_datetime(timestamp)
        except (TypeError, ValueError):
            raise InvalidTradeError(f"unparseable timestamp {request.timestamp!r}")

    return TradeRequest(
        symbol=request.symbol.strip(),
        trade_type=trade_type,
        quantity=_positive_number(request.quantity, 'quantity'),
        price=_positive_number(request.price, 'price'),
        timestamp=timestamp
    )


def apply_trade(portfolio: Portfolio, request: TradeRequest, risk_manager=None,
                commission_rate: float = 0.001, trade_id: Optional[str] = None,
                timestamp: Optional[datetime] = None) -> Tuple[Portfolio, Trade]:
    """
    Pure ledger transition: validate, risk-check, execute.

    Args:
        portfolio: Current portfolio (not modified)
        request: Proposed trade
        risk_manager: RiskManager gating admission (skipped when None)
        commission_rate: Commission as a fraction of trade value
        trade_id: Identifier for the trade record
        timestamp: Execution time when the request carries none

    Returns:
        (new portfolio, executed trade)

    Raises:
        InvalidTradeError, RiskLimitExceededError, InsufficientFundsError,
        InsufficientQuantityError
    """
    request = validate_request(request)

    if risk_manager is not None:
        assessment = risk_manager.assess(request, portfolio)
        if not assessment.approved:
            raise RiskLimitExceededError(assessment.violations, assessment.messages)

    symbol = request.symbol
    quantity = request.quantity
    price = request.price
    total_cost = quantity * price
    commission = total_cost * commission_rate
    executed_at = request.timestamp or timestamp or datetime.now()
    realized_pnl = None

    updated = portfolio.copy()

    if request.trade_type == TradeType.BUY:
        required = total_cost + commission
        if updated.cash < required:
            raise InsufficientFundsError(required, updated.cash)

        updated.cash -= required

        position = updated.positions.get(symbol)
        if position is None:
            updated.positions[symbol] = Position(symbol, quantity, total_cost, price)
        else:
            updated.positions[symbol] = replace(
                position,
                quantity=position.quantity + quantity,
                cost_basis=position.cost_basis + total_cost,
                current_price=price
            )

    else:
        position = updated.positions.get(symbol)
        held = position.quantity if position else 0.0
        if position is None or quantity > held + QUANTITY_EPSILON:
            raise InsufficientQuantityError(symbol, quantity, held)

        sold_fraction = min(quantity / held, 1.0)
        cost_of_sold = position.cost_basis * sold_fraction
        realized_pnl = total_cost - cost_of_sold - commission

        updated.cash += total_cost - commission

        remaining = held - quantity
        if remaining <= QUANTITY_EPSILON:
            del updated.positions[symbol]
        else:
            updated.positions[symbol] = replace(
                position,
                quantity=remaining,
                cost_basis=position.cost_basis - cost_of_sold
            )

    trade = Trade(
        trade_id=trade_id or uuid.uuid4().hex[:12],
        symbol=symbol,
        trade_type=request.trade_type,
        quantity=quantity,
        price=price,
        commission=commission,
        timestamp=executed_at,
        realized_pnl=realized_pnl
    )

    return updated, trade


def mark_to_market(portfolio: Portfolio, prices: Dict[str, float]) -> Portfolio:
    """
    Revalue the portfolio at the supplied quotes.

    Positions without a quote keep their last known price.
    """
    updated = portfolio.copy()

    for symbol, position in updated.positions.items():
        quote = prices.get(symbol)
        if quote is not None and quote > 0:
            position.current_price = float(quote)

    updated.total_value = updated.cash + sum(p.current_value for p in updated.positions.values())
    updated.total_pnl = updated.total_value - updated.initial_capital
    updated.total_pnl_percent = (
        updated.total_pnl / updated.initial_capital * 100 if updated.initial_capital > 0 else 0.0
    )
    updated.last_updated = datetime.now()

    return updated


class PortfolioLedger:
    """
    Stateful paper trading ledger.

    Features:
    - Serialized trade admission (one lock per ledger)
    - Append-only trade log with sequential trade IDs
    - Trade listeners (e.g. the performance tracker)
    - Symbol watchlist carried in snapshots
    - Plain-dict snapshots for the host to persist
    """

    def __init__(self, config=None, risk_manager=None):
        from .config import LedgerConfig
        from .risk.risk_manager import RiskManager
        self.config = config or LedgerConfig()
        self.risk_manager = risk_manager or RiskManager()

        self.portfolio = Portfolio.new(self.config.initial_capital)
        self.trades: List[Trade] = []
        self.trade_counter = 0
        self.listeners: List[Callable[[Trade], None]] = []
        self.watchlist: List[str] = []
        self.lock = threading.Lock()

    def add_listener(self, listener: Callable[[Trade], None]):
        """Register a callback invoked with every executed trade; its errors are logged."""
        self.listeners.append(listener)

    def execute_trade(self, request) -> TradeResult:
        """
        Admit and execute a trade.

        Args:
            request: TradeRequest, or a plain mapping accepted by
                TradeRequest.from_dict

        Returns:
            TradeResult; rejected trades leave the ledger unchanged
        """
        with self.lock:
            trade_id = f"{self.config.trade_id_prefix}{self.trade_counter + 1:05d}"
            try:
                if isinstance(request, dict):
                    request = TradeRequest.from_dict(request)
                portfolio, trade = apply_trade(
                    self.portfolio,
                    request,
                    self.risk_manager,
                    self.config.commission_rate,
                    trade_id
                )
            except TradeRejected as e:
                symbol = request.get('symbol') if isinstance(request, dict) else request.symbol
                logger.warning(f"Trade rejected for {symbol}: {e.message}")
                return TradeResult(accepted=False, error=e)

            self.portfolio = portfolio
            self.trades.append(trade)
            self.trade_counter += 1

        pnl_text = f", realized {trade.realized_pnl:,.2f}" if trade.realized_pnl is not None else ""
        logger.info(
            f"Executed {trade.trade_id}: {trade.trade_type.value} {trade.quantity} "
            f"{trade.symbol} @ {trade.price:,.2f}{pnl_text}"
        )

        # Listener failures never undo a committed trade
        for listener in self.listeners:
            try:
                listener(trade)
            except Exception as e:
                logger.error(f"Trade listener error for {trade.trade_id}: {e}")

        return TradeResult(accepted=True, trade=trade)

    def update_prices(self, prices: Dict[str, float]) -> Portfolio:
        """Mark the portfolio to market and return the new snapshot."""
        with self.lock:
            self.portfolio = mark_to_market(self.portfolio, prices)
            return self.portfolio.copy()

    def get_portfolio(self) -> Portfolio:
        with self.lock:
            return self.portfolio.copy()

    @property
    def trade_count(self) -> int:
        with self.lock:
            return len(self.trades)

    def get_trade_history(self, limit: int = 50) -> List[Trade]:
        """Most recent trades, newest first."""
        with self.lock:
            return list(reversed(self.trades[-limit:])) if limit > 0 else []

    def get_allocation(self) -> List[dict]:
        """Cash and position weights of the last marked total value."""
        with self.lock:
            portfolio = self.portfolio
            total_value = portfolio.total_value

            def percentage(value: float) -> float:
                return value / total_value * 100 if total_value > 0 else 0.0

            allocation = []
            if portfolio.cash > 0:
                allocation.append({
                    'symbol': 'CASH',
                    'value': portfolio.cash,
                    'percentage': percentage(portfolio.cash)
                })

            for symbol, position in portfolio.positions.items():
                allocation.append({
                    'symbol': symbol,
                    'value': position.current_value,
                    'percentage': percentage(position.current_value),
                    'quantity': position.quantity,
                    'average_price': position.average_price,
                    'current_price': position.current_price,
                    'unrealized_pnl': position.unrealized_pnl
                })

        return sorted(allocation, key=lambda a: a['percentage'], reverse=True)

    # =====================
    # Watchlist
    # =====================

    def add_to_watchlist(self, symbol: str):
        """Track a symbol; adding a watched symbol again is a no-op."""
        with self.lock:
            if symbol not in self.watchlist:
                self.watchlist.append(symbol)

    def remove_from_watchlist(self, symbol: str):
        with self.lock:
            if symbol in self.watchlist:
                self.watchlist.remove(symbol)

    def get_watchlist(self) -> List[str]:
        with self.lock:
            return list(self.watchlist)

    def snapshot(self) -> dict:
        """Plain-structure ledger state."""
        with self.lock:
            return {
                'portfolio': self.portfolio.to_dict(),
                'trades': [t.to_dict() for t in self.trades],
                'trade_counter': self.trade_counter,
                'watchlist': list(self.watchlist),
                'config': asdict(self.config)
            }

    @classmethod
    def restore(cls, snapshot: dict, risk_manager=None) -> 'PortfolioLedger':
        """Rebuild a ledger from ``snapshot()`` output."""
        from .config import LedgerConfig
        config_data = snapshot.get('config') or {}
        config = LedgerConfig(**{k: v for k, v in config_data.items()
                                 if k in LedgerConfig.__dataclass_fields__})

        ledger = cls(config=config, risk_manager=risk_manager)
        ledger.portfolio = Portfolio.from_dict(snapshot['portfolio'])
        ledger.trades = [Trade.from_dict(t) for t in snapshot.get('trades', [])]
        ledger.trade_counter = int(snapshot.get('trade_counter', len(ledger.trades)))
        ledger.watchlist = list(snapshot.get('watchlist', []))
        return ledger

    def reset(self):
        """Reset the ledger to its initial capital."""
        with self.lock:
            self.portfolio = Portfolio.new(self.config.initial_capital)
            self.trades = []
            self.trade_counter = 0
        logger.info(f"Ledger reset to {self.config.initial_capital:,.2f}")
