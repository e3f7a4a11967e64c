"""Shared test fixtures for the advisor core tests."""

import numpy as np
import pandas as pd
import pytest

from crypto_advisor.config import LedgerConfig, RiskPolicy, SystemConfig
from crypto_advisor.data import PriceSeries, ExternalMetrics
from crypto_advisor.features.feature_engine import FeatureBundle
from crypto_advisor.ml.scoring_model import Direction, Prediction
from crypto_advisor.paper_trading import PortfolioLedger, TradeRequest, TradeType
from crypto_advisor.risk import RiskManager


def make_series(prices, volumes=None, symbol="BTC", start="2024-01-01 00:00"):
    """Hourly PriceSeries starting at ``start``."""
    timestamps = [pd.Timestamp(start) + pd.Timedelta(hours=i) for i in range(len(prices))]
    return PriceSeries.from_lists(timestamps, list(prices), volumes, symbol=symbol)


def wave_prices(n=120, base=100.0, amplitude=5.0, drift=0.1):
    """Deterministic oscillating price path with a mild drift."""
    i = np.arange(n)
    return list(base + amplitude * np.sin(i / 5.0) + drift * i)


def make_bundle(symbol="BTC", **raw):
    """FeatureBundle from raw feature lists (normalization is irrelevant to scoring)."""
    raw_arrays = {name: np.asarray(values, dtype=float) for name, values in raw.items()}
    return FeatureBundle(symbol=symbol, normalized=dict(raw_arrays), raw=raw_arrays)


def make_prediction(direction=Direction.BULLISH, confidence=0.75, price=100.0, **extra):
    return Prediction(
        direction=direction,
        confidence=confidence,
        target_price=price,
        support_resistance={'support': [], 'resistance': []},
        risk_reward=1.5,
        current_price=price,
        **extra
    )


def buy(symbol, quantity, price):
    return TradeRequest(symbol=symbol, trade_type=TradeType.BUY, quantity=quantity, price=price)


def sell(symbol, quantity, price):
    return TradeRequest(symbol=symbol, trade_type=TradeType.SELL, quantity=quantity, price=price)


@pytest.fixture
def price_series():
    return make_series(wave_prices(), volumes=[1000.0 + 10 * i for i in range(120)])


@pytest.fixture
def bullish_external():
    return ExternalMetrics(
        active_addresses=[900_000, 950_000],
        exchange_flow=[-2.0],
        sopr=[0.9],
        fear_greed=[10],
        social_sentiment=[1.0],
    )


@pytest.fixture
def default_config():
    return SystemConfig()


@pytest.fixture
def ledger():
    """Default 10,000 ledger with the standard risk policy."""
    return PortfolioLedger(config=LedgerConfig(), risk_manager=RiskManager())


@pytest.fixture
def funded_ledger():
    """100,000 ledger without a practical position-size cap."""
    policy = RiskPolicy(max_position_size_fraction=1.0)
    return PortfolioLedger(
        config=LedgerConfig(initial_capital=100_000),
        risk_manager=RiskManager(policy)
    )
