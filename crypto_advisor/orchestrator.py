"""
Trading Assistant Orchestrator
==============================
Main pipeline wiring every component:
    PRICES → INDICATORS + PATTERNS → FEATURES → SCORING → SIGNAL
           → RISK GATE → LEDGER → PERFORMANCE
"""

import pandas as pd
from dataclasses import dataclass, field
from typing import Dict, List, Optional
import json
import logging

from .config import SystemConfig
from .data import PriceSeries, ExternalMetrics
from .exceptions import InvalidInputError
from .features import IndicatorEngine, IndicatorSet, FeatureEngine, FeatureBundle
from .ml import ScoringModel, Prediction, PatternDetector, Pattern
from .alpha import SignalGenerator, Signal, SignalType
from .risk import RiskManager
from .paper_trading import PortfolioLedger, TradeRequest, TradeResult, TradeType
from .monitoring import PerformanceTracker

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Everything one analysis pass produced for a symbol."""
    symbol: str
    indicators: IndicatorSet
    patterns: List[Pattern]
    features: FeatureBundle
    prediction: Prediction
    signal: Optional[Signal] = None
    hints: list = field(default_factory=list)
    timestamp: pd.Timestamp = field(default_factory=pd.Timestamp.now)

    def to_dict(self) -> dict:
        return {
            'symbol': self.symbol,
            'prediction': self.prediction.to_dict(),
            'signal': self.signal.to_dict() if self.signal else None,
            'patterns': [p.to_dict() for p in self.patterns],
            'hints': [f"{h.signal_type} {h.indicator}: {h.reason}" for h in self.hints],
            'timestamp': self.timestamp.isoformat()
        }


class TradingAssistant:
    """
    Main assistant orchestrator.

    Coordinates the complete pipeline:
    1. INDICATORS: Technical indicators and chart patterns
    2. FEATURES: Normalized feature bundle incl. external metrics
    3. SCORING: Directional prediction with confidence
    4. SIGNAL: Risk/reward gated recommendation
    5. LEDGER: Risk-checked paper execution
    6. PERFORMANCE: Win/loss statistics and equity history
    """

    def __init__(self, config: SystemConfig = None):
        self.config = config or SystemConfig()

        self.indicator_engine = IndicatorEngine(config=self.config.indicators)
        self.pattern_detector = PatternDetector()
        self.feature_engine = FeatureEngine(
            config=self.config.features,
            indicator_engine=self.indicator_engine
        )
        self.scoring_model = ScoringModel(config=self.config.scoring)
        self.signal_generator = SignalGenerator(config=self.config.signals)
        self.risk_manager = RiskManager(policy=self.config.risk)

        self.ledger = PortfolioLedger(config=self.config.ledger, risk_manager=self.risk_manager)
        self.performance = PerformanceTracker()
        self.ledger.add_listener(self.performance.record_trade)
        self.performance.update_equity(self.config.ledger.initial_capital)

        # Latest analysis per symbol
        self.analyses: Dict[str, AnalysisResult] = {}

    def analyze(self, symbol: str, series: PriceSeries,
                external: Optional[ExternalMetrics] = None) -> AnalysisResult:
        """
        Run one analysis pass.

        Args:
            symbol: Symbol being analyzed
            series: Validated price/volume series
            external: Optional on-chain and sentiment series

        Returns:
            AnalysisResult with indicators, patterns, features,
            prediction and (optional) signal
        """
        indicators = self.indicator_engine.compute(
            series,
            self.config.features.volatility_period,
            self.config.features.annualization_factor
        )
        patterns = self.pattern_detector.detect(series.prices)
        features = self.feature_engine.build(series, indicators, external)
        prediction = self.scoring_model.predict(features)
        signal = self.signal_generator.generate(symbol, prediction, indicators)
        hints = self.indicator_engine.generate_signals(series, indicators)

        result = AnalysisResult(
            symbol=symbol,
            indicators=indicators,
            patterns=patterns,
            features=features,
            prediction=prediction,
            signal=signal,
            hints=hints
        )
        self.analyses[symbol] = result

        logger.info(
            f"{symbol}: {prediction.direction.value} "
            f"({prediction.confidence:.0%}), target {prediction.target_price:,.2f}, "
            f"signal {signal.signal_type.value if signal else 'none'}"
        )

        return result

    def execute_signal(self, signal: Signal, quantity: Optional[float] = None) -> TradeResult:
        """
        Paper-trade a signal through the ledger.

        Without an explicit quantity, BUY signals are sized by the risk
        manager and SELL signals close the held position.
        """
        if signal.signal_type == SignalType.HOLD:
            raise InvalidInputError("HOLD signals are not executable")

        portfolio = self.ledger.get_portfolio()

        if signal.signal_type == SignalType.BUY:
            trade_type = TradeType.BUY
            if quantity is None:
                quantity = self.risk_manager.position_size(signal, portfolio)
        else:
            trade_type = TradeType.SELL
            if quantity is None:
                position = portfolio.positions.get(signal.symbol)
                quantity = position.quantity if position else 0.0

        request = TradeRequest(
            symbol=signal.symbol,
            trade_type=trade_type,
            quantity=quantity,
            price=signal.entry_price
        )
        return self.ledger.execute_trade(request)

    def update_prices(self, prices: Dict[str, float]):
        """Mark the ledger to market and record the new portfolio value."""
        portfolio = self.ledger.update_prices(prices)
        self.performance.update_equity(portfolio.total_value)
        return portfolio

    def get_status(self) -> Dict:
        """Get assistant status."""
        portfolio = self.ledger.get_portfolio()
        metrics = self.performance.get_metrics()

        return {
            'profile': self.scoring_model.profile.name,
            'initial_capital': portfolio.initial_capital,
            'cash': portfolio.cash,
            'total_value': portfolio.total_value,
            'total_pnl': portfolio.total_pnl,
            'total_pnl_percent': portfolio.total_pnl_percent,
            'positions_count': len(portfolio.positions),
            'trades_count': self.ledger.trade_count,
            'analyzed_symbols': sorted(self.analyses),
            'win_rate': metrics.win_rate,
            'profit_factor': metrics.profit_factor,
            'max_drawdown': metrics.max_drawdown
        }


def load_series(path: str, symbol: str = "") -> PriceSeries:
    """Read a ``timestamp,price,volume`` CSV into a PriceSeries."""
    df = pd.read_csv(path)
    return PriceSeries.from_frame(df, symbol=symbol)


def main(argv=None):
    """Main entry point for the assistant CLI."""
    import argparse

    parser = argparse.ArgumentParser(description='Crypto Trading Assistant')
    parser.add_argument('csv', type=str, help='CSV file with timestamp,price,volume columns')
    parser.add_argument('--symbol', type=str, default='BTC', help='Symbol name')
    parser.add_argument('--profile', type=str, help='Scoring profile')
    parser.add_argument('--capital', type=float, help='Initial paper capital')
    parser.add_argument('--config', type=str, help='Path to config file')
    parser.add_argument('--external', type=str, help='JSON file with on-chain/sentiment series')
    parser.add_argument('--log-level', type=str, help='Logging level')

    args = parser.parse_args(argv)

    config = SystemConfig.load(args.config) if args.config else SystemConfig()
    if args.capital is not None:
        config.ledger.initial_capital = args.capital
    if args.log_level:
        config.logging.level = args.log_level.upper()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, config.logging.level, logging.INFO),
        format=config.logging.format
    )

    try:
        assistant = TradingAssistant(config)
        if args.profile:
            assistant.scoring_model.set_profile(args.profile)

        series = load_series(args.csv, symbol=args.symbol)

        external = None
        if args.external:
            with open(args.external, 'r') as f:
                external = ExternalMetrics.from_dict(json.load(f))

        result = assistant.analyze(args.symbol, series, external)
    except (InvalidInputError, OSError) as e:
        logger.error(f"Analysis failed: {e}")
        return 1

    prediction = result.prediction
    print("\n" + "=" * 50)
    print(f"PREDICTION - {args.symbol} [{prediction.profile}]")
    print("=" * 50)
    print(f"Direction:     {prediction.direction.value}")
    print(f"Confidence:    {prediction.confidence:.1%}")
    print(f"Current:       {prediction.current_price:,.2f}")
    print(f"Target:        {prediction.target_price:,.2f}")
    print(f"Support:       {', '.join(f'{s:,.2f}' for s in prediction.support_resistance['support'])}")
    print(f"Resistance:    {', '.join(f'{r:,.2f}' for r in prediction.support_resistance['resistance'])}")
    print(f"Risk/Reward:   {prediction.risk_reward:.2f}")

    for pattern in result.patterns:
        print(f"Pattern:       {pattern.name} ({pattern.direction.value}, {pattern.confidence:.0%})")

    print("\n" + "=" * 50)
    print("SIGNAL")
    print("=" * 50)
    signal = result.signal
    if signal is None:
        print("No actionable signal")
    else:
        print(f"{signal.signal_type.value} {signal.symbol} @ {signal.entry_price:,.2f}")
        print(f"Target {signal.target_price:,.2f} / Stop {signal.stop_loss:,.2f} "
              f"(R/R {signal.risk_reward_ratio:.2f}, confidence {signal.confidence:.1f}%)")
        print(f"Reasoning: {signal.reasoning}")

    return 0


if __name__ == "__main__":
    main()
