"""Tests for alpha/signal_generator.py"""

import pandas as pd
import pytest

from crypto_advisor.alpha import SignalGenerator, SignalType
from crypto_advisor.config import SignalConfig
from crypto_advisor.features import IndicatorSet
from crypto_advisor.ml import Direction
from tests.conftest import make_prediction


@pytest.fixture
def generator():
    return SignalGenerator()


class TestGenerate:

    def test_bullish_buy(self, generator):
        signal = generator.generate('BTC', make_prediction(Direction.BULLISH, 0.75, 100.0))

        assert signal.signal_type == SignalType.BUY
        assert signal.confidence == pytest.approx(75.0)
        assert signal.entry_price == 100.0
        assert signal.target_price == pytest.approx(105.0)
        assert signal.stop_loss == pytest.approx(97.0)
        assert signal.risk_reward_ratio == pytest.approx(5 / 3)
        assert signal.reasoning == "Model prediction"

    def test_bearish_sell(self, generator):
        signal = generator.generate('ETH', make_prediction(Direction.BEARISH, 0.85, 100.0))

        assert signal.signal_type == SignalType.SELL
        assert signal.target_price == pytest.approx(95.0)
        assert signal.stop_loss == pytest.approx(103.0)
        assert signal.reasoning == "High model confidence (85.0%)"

    def test_confidence_threshold_is_strict(self, generator):
        assert generator.generate('BTC', make_prediction(confidence=0.7)) is None
        assert generator.generate('BTC', make_prediction(confidence=0.71)) is not None

    def test_neutral_never_signals(self, generator):
        assert generator.generate('BTC', make_prediction(Direction.NEUTRAL, 0.9)) is None

    def test_poor_risk_reward_suppressed(self):
        generator = SignalGenerator(SignalConfig(target_pct=0.03))
        assert generator.generate('BTC', make_prediction(confidence=0.9)) is None

    @pytest.mark.parametrize('direction', [Direction.BULLISH, Direction.BEARISH])
    @pytest.mark.parametrize('confidence', [0.72, 0.8, 0.95])
    def test_emitted_signals_meet_gates(self, generator, direction, confidence):
        signal = generator.generate('BTC', make_prediction(direction, confidence, 250.0))
        assert signal.confidence > 70
        assert signal.risk_reward_ratio >= 1.5

    def test_to_dict(self, generator):
        data = generator.generate('BTC', make_prediction()).to_dict()
        assert data['type'] == 'BUY'
        assert data['symbol'] == 'BTC'


class TestReasoning:

    def test_indicator_reasons(self, generator):
        indicators = IndicatorSet('BTC', {
            'rsi': pd.Series([25.0]),
            'macd': {'histogram': pd.Series([-0.1, 0.2])},
        })
        text = generator.reasoning(make_prediction(confidence=0.9), indicators)
        assert text == "High model confidence (90.0%), RSI oversold, MACD bullish crossover"

    def test_bearish_indicator_reasons(self, generator):
        indicators = IndicatorSet('BTC', {
            'rsi': pd.Series([75.0]),
            'macd': {'histogram': pd.Series([0.3, -0.2])},
        })
        text = generator.reasoning(make_prediction(confidence=0.75), indicators)
        assert text == "RSI overbought, MACD bearish crossover"

    def test_missing_indicators_fall_back(self, generator):
        indicators = IndicatorSet('BTC', {'rsi': pd.Series([50.0])})
        assert generator.reasoning(make_prediction(), indicators) == "Model prediction"


class TestRanking:

    def test_sorted_by_confidence(self, generator):
        predictions = {
            'BTC': make_prediction(confidence=0.75),
            'ETH': make_prediction(Direction.BEARISH, 0.9),
            'SOL': make_prediction(confidence=0.82),
            'ADA': make_prediction(Direction.NEUTRAL, 0.95),
        }
        signals = generator.rank_signals(predictions)
        assert [s.symbol for s in signals] == ['ETH', 'SOL', 'BTC']

    def test_empty(self, generator):
        assert generator.rank_signals({}) == []
