"""
Signal Generator Module
=======================
Turns a scored prediction plus the latest indicator readings into a
BUY/SELL recommendation, gated by confidence and risk/reward.
"""

import pandas as pd
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from enum import Enum
import logging

from ..ml.scoring_model import Direction, Prediction

logger = logging.getLogger(__name__)


class SignalType(Enum):
    """Trading signal types."""
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


@dataclass
class Signal:
    """Actionable trade recommendation."""
    symbol: str
    signal_type: SignalType
    confidence: float  # 0 to 100
    entry_price: float
    target_price: float
    stop_loss: float
    risk_reward_ratio: float
    reasoning: str
    timestamp: pd.Timestamp = field(default_factory=pd.Timestamp.now)

    def to_dict(self) -> dict:
        return {
            'symbol': self.symbol,
            'type': self.signal_type.value,
            'confidence': self.confidence,
            'entry_price': self.entry_price,
            'target_price': self.target_price,
            'stop_loss': self.stop_loss,
            'risk_reward_ratio': self.risk_reward_ratio,
            'reasoning': self.reasoning,
            'timestamp': self.timestamp.isoformat()
        }


class SignalGenerator:
    """Prediction to trade signal conversion."""

    def __init__(self, config=None):
        from ..config import SignalConfig
        self.config = config or SignalConfig()

    def generate(self, symbol: str, prediction: Prediction,
                 indicators=None) -> Optional[Signal]:
        """
        Build a signal for one symbol.

        Args:
            symbol: Symbol the prediction refers to
            prediction: Output of the scoring model
            indicators: Latest IndicatorSet, used for the reasoning text only

        Returns:
            Signal, or None when direction, confidence or risk/reward
            do not qualify
        """
        cfg = self.config

        if prediction.confidence <= cfg.min_confidence:
            return None

        entry = prediction.current_price
        if prediction.direction == Direction.BULLISH:
            signal_type = SignalType.BUY
            target = entry * (1 + cfg.target_pct)
            stop_loss = entry * (1 - cfg.stop_loss_pct)
            risk = entry - stop_loss
            reward = target - entry
        elif prediction.direction == Direction.BEARISH:
            signal_type = SignalType.SELL
            target = entry * (1 - cfg.target_pct)
            stop_loss = entry * (1 + cfg.stop_loss_pct)
            risk = stop_loss - entry
            reward = entry - target
        else:
            return None

        if risk <= 0:
            return None

        risk_reward = reward / risk
        if risk_reward < cfg.min_risk_reward:
            logger.debug(f"{symbol}: risk/reward {risk_reward:.2f} below {cfg.min_risk_reward}")
            return None

        signal = Signal(
            symbol=symbol,
            signal_type=signal_type,
            confidence=prediction.confidence * 100,
            entry_price=entry,
            target_price=target,
            stop_loss=stop_loss,
            risk_reward_ratio=risk_reward,
            reasoning=self.reasoning(prediction, indicators)
        )

        logger.info(
            f"{signal_type.value} signal for {symbol} @ {entry:,.2f} "
            f"(conf {signal.confidence:.1f}%, R/R {risk_reward:.2f})"
        )
        return signal

    def reasoning(self, prediction: Prediction, indicators=None) -> str:
        """Human-readable list of contributing factors."""
        reasons = []

        if prediction.confidence > self.config.high_confidence:
            reasons.append(f"High model confidence ({prediction.confidence * 100:.1f}%)")

        if indicators is not None:
            rsi = indicators.latest('rsi')
            if rsi is not None:
                if rsi < 30:
                    reasons.append("RSI oversold")
                elif rsi > 70:
                    reasons.append("RSI overbought")

            hist = indicators.latest('macd', 'histogram')
            prev_hist = indicators.previous('macd', 'histogram')
            if hist is not None and prev_hist is not None:
                if hist > 0 and prev_hist <= 0:
                    reasons.append("MACD bullish crossover")
                elif hist < 0 and prev_hist >= 0:
                    reasons.append("MACD bearish crossover")

        return ", ".join(reasons) or "Model prediction"

    def rank_signals(self, predictions: Dict[str, Prediction],
                     indicator_sets: Optional[Dict] = None) -> List[Signal]:
        """Signals for every qualifying symbol, highest confidence first."""
        indicator_sets = indicator_sets or {}
        signals = []

        for symbol, prediction in predictions.items():
            signal = self.generate(symbol, prediction, indicator_sets.get(symbol))
            if signal is not None:
                signals.append(signal)

        return sorted(signals, key=lambda s: s.confidence, reverse=True)
