"""
Feature Engineering Module
==========================
Assembles indicator outputs, volatility and external on-chain/sentiment
series into a feature bundle for the scoring model.
"""

import pandas as pd
import numpy as np
from typing import Dict, List, Optional
from dataclasses import dataclass, field
import logging

from .indicators import IndicatorEngine, IndicatorSet, StatisticalFeatures

logger = logging.getLogger(__name__)


# Indicator lines carried into the bundle: feature name -> (indicator, band key)
INDICATOR_FEATURES = {
    'rsi': ('rsi', None),
    'macd': ('macd', 'macd'),
    'macd_signal': ('macd', 'signal'),
    'macd_histogram': ('macd', 'histogram'),
    'bb_upper': ('bollinger', 'upper'),
    'bb_middle': ('bollinger', 'middle'),
    'bb_lower': ('bollinger', 'lower'),
    'stochastic_k': ('stochastic', 'k'),
    'volatility': ('volatility', None),
}

EXTERNAL_FEATURES = [
    'active_addresses',
    'transaction_volume',
    'exchange_flow',
    'sopr',
    'fear_greed',
    'social_sentiment',
    'btc_correlation',
]


@dataclass
class FeatureBundle:
    """
    Container for engineered features.

    ``normalized`` holds every sequence feature min-max scaled to [0, 1] over
    its own range. ``raw`` holds the same sequences unscaled, which is what
    the threshold-based scorers read. ``passthrough`` holds values that are
    never normalized (time-of-day, day-of-week, latest price).
    """
    symbol: str
    normalized: Dict[str, np.ndarray]
    raw: Dict[str, np.ndarray]
    passthrough: Dict[str, object] = field(default_factory=dict)
    timestamp: pd.Timestamp = field(default_factory=pd.Timestamp.now)

    @property
    def feature_names(self) -> List[str]:
        return list(self.normalized.keys())

    def latest(self, name: str, raw: bool = True) -> Optional[float]:
        """Last value of a feature sequence, or None when absent or empty."""
        return self.previous(name, offset=0, raw=raw)

    def previous(self, name: str, offset: int = 1, raw: bool = True) -> Optional[float]:
        """Value ``offset`` samples before the latest, indexed against the feature's own length."""
        values = (self.raw if raw else self.normalized).get(name)
        if values is None or len(values) <= offset:
            return None
        return float(values[-1 - offset])


class FeatureEngine:
    """
    Main feature engineering class.

    Performs no resampling: external series of mismatched length are
    accepted as-is and indexed against their own length downstream.
    """

    def __init__(self, config=None, indicator_engine: Optional[IndicatorEngine] = None):
        from ..config import FeatureConfig
        self.config = config or FeatureConfig()

        self.indicator_engine = indicator_engine or IndicatorEngine()
        self.statistical = StatisticalFeatures()

    def build(self, series, indicators: Optional[IndicatorSet] = None,
              external=None) -> FeatureBundle:
        """
        Build the feature bundle for one analysis pass.

        Args:
            series: PriceSeries to analyze
            indicators: Precomputed IndicatorSet (computed here when omitted)
            external: Optional ExternalMetrics with on-chain/sentiment series

        Returns:
            FeatureBundle with normalized, raw and pass-through features
        """
        if indicators is None:
            indicators = self.indicator_engine.compute(
                series, self.config.volatility_period, self.config.annualization_factor
            )

        raw: Dict[str, np.ndarray] = {}

        # =====================
        # Price / Volume
        # =====================
        raw['price'] = series.prices.values.astype(float)
        raw['volume'] = series.volumes.values.astype(float)

        # =====================
        # Indicators
        # =====================
        for feature_name, (indicator, key) in INDICATOR_FEATURES.items():
            raw[feature_name] = indicators.series(indicator, key).values.astype(float)

        # =====================
        # External series
        # =====================
        if external is not None:
            for name in EXTERNAL_FEATURES:
                values = getattr(external, name, None)
                if values is not None and len(values) > 0:
                    raw[name] = np.asarray(values, dtype=float)

        if self.config.normalize:
            normalized = {name: self.statistical.min_max_normalize(values)
                          for name, values in raw.items()}
        else:
            normalized = {name: values.copy() for name, values in raw.items()}

        index = series.timestamps
        passthrough = {
            'time_of_day': (index.hour + index.minute / 60.0).values.astype(float),
            'day_of_week': index.dayofweek.values.astype(int),
            'latest_price': series.latest_price,
        }

        logger.debug(f"Built {len(normalized)} features for {series.symbol}")

        return FeatureBundle(
            symbol=series.symbol,
            normalized=normalized,
            raw=raw,
            passthrough=passthrough
        )
