"""
Crypto Trading Assistant - Decision & Bookkeeping Core
======================================================

Turns raw price/volume series into technical signals, combines them into a
directional prediction with a confidence score, converts predictions into
risk/reward filtered trade recommendations and keeps an auditable paper
trading ledger.

PIPELINE:
    ┌──────────────┐
    │ PRICE SERIES │  ← timestamp, price, volume (supplied by the host)
    └────┬─────────┘
         ↓
    ┌──────────────────────┐
    │ INDICATORS, PATTERNS │  ← RSI, MACD, Bollinger, ..., chart patterns
    └────┬─────────────────┘
         ↓
    ┌──────────────┐
    │ FEATURES     │  ← normalized indicators + on-chain / sentiment series
    └────┬─────────┘
         ↓
    ┌──────────────┐
    │ SCORING      │  ← technical / sentiment / on-chain / volatility
    └────┬─────────┘
         ↓
    ┌──────────────┐
    │ SIGNAL       │  ← confidence and risk/reward gate
    └────┬─────────┘
         ↓
    ┌──────────────┐
    │ RISK + LEDGER│  ← position size, loss limits, cash and positions
    └────┬─────────┘
         ↓
    ┌──────────────┐
    │ PERFORMANCE  │  ← win rate, profit factor, Sharpe, drawdown
    └──────────────┘

USAGE:
    # Command line
    crypto-advisor prices.csv --symbol BTC --profile ensemble

    # Programmatic usage
    from crypto_advisor import TradingAssistant, PriceSeries

    assistant = TradingAssistant()
    series = PriceSeries.from_lists(timestamps, prices, volumes, symbol="BTC")
    result = assistant.analyze("BTC", series)
    if result.signal:
        assistant.execute_signal(result.signal)

MODULES:
    - data: Input containers (price series, external metrics)
    - features: Indicator library and feature engineering
    - ml: Scoring model and pattern detection
    - alpha: Signal generation
    - risk: Trade admission checks
    - paper_trading: Portfolio ledger
    - monitoring: Performance tracking
"""

from .config import SystemConfig, RiskPolicy, load_config
from .exceptions import (
    CryptoAdvisorError,
    InvalidInputError,
    TradeRejected,
    InvalidTradeError,
    InsufficientFundsError,
    InsufficientQuantityError,
    RiskLimitExceededError,
    RejectionReason
)
from .data import PriceSeries, ExternalMetrics
from .features import IndicatorEngine, IndicatorSet, TechnicalIndicators, FeatureEngine, FeatureBundle
from .ml import ScoringModel, Prediction, Direction, PatternDetector, Pattern, SCORING_PROFILES
from .alpha import SignalGenerator, Signal, SignalType
from .risk import RiskManager, RiskAssessment, RiskCheck
from .paper_trading import (
    PortfolioLedger,
    Portfolio,
    Position,
    Trade,
    TradeRequest,
    TradeResult,
    TradeType,
    apply_trade,
    mark_to_market
)
from .monitoring import PerformanceTracker, PerformanceMetrics
from .orchestrator import TradingAssistant, AnalysisResult, main

__version__ = "1.0.0"
__all__ = [
    # Main
    'TradingAssistant',
    'AnalysisResult',
    'SystemConfig',
    'RiskPolicy',
    'load_config',
    'main',

    # Errors
    'CryptoAdvisorError',
    'InvalidInputError',
    'TradeRejected',
    'InvalidTradeError',
    'InsufficientFundsError',
    'InsufficientQuantityError',
    'RiskLimitExceededError',
    'RejectionReason',

    # Data
    'PriceSeries',
    'ExternalMetrics',

    # Features
    'IndicatorEngine',
    'IndicatorSet',
    'TechnicalIndicators',
    'FeatureEngine',
    'FeatureBundle',

    # Scoring
    'ScoringModel',
    'Prediction',
    'Direction',
    'PatternDetector',
    'Pattern',
    'SCORING_PROFILES',

    # Signals
    'SignalGenerator',
    'Signal',
    'SignalType',

    # Risk
    'RiskManager',
    'RiskAssessment',
    'RiskCheck',

    # Ledger
    'PortfolioLedger',
    'Portfolio',
    'Position',
    'Trade',
    'TradeRequest',
    'TradeResult',
    'TradeType',
    'apply_trade',
    'mark_to_market',

    # Monitoring
    'PerformanceTracker',
    'PerformanceMetrics'
]
