"""Tests for features/feature_engine.py"""

import numpy as np
import pytest

from crypto_advisor.config import FeatureConfig
from crypto_advisor.data import ExternalMetrics
from crypto_advisor.features import FeatureEngine, IndicatorEngine, StatisticalFeatures
from tests.conftest import make_series, wave_prices


class TestFeatureBundle:

    def test_sequence_features_normalized(self, price_series):
        bundle = FeatureEngine().build(price_series)
        for name, values in bundle.normalized.items():
            if len(values):
                assert values.min() >= 0.0, name
                assert values.max() <= 1.0, name

    def test_core_features_present(self, price_series):
        bundle = FeatureEngine().build(price_series)
        expected = {
            'price', 'volume', 'rsi', 'macd', 'macd_signal', 'macd_histogram',
            'bb_upper', 'bb_middle', 'bb_lower', 'stochastic_k', 'volatility'
        }
        assert expected <= set(bundle.feature_names)

    def test_zero_range_feature_is_all_zeros(self):
        series = make_series(wave_prices(60))  # volumes default to zero
        bundle = FeatureEngine().build(series)
        assert (bundle.normalized['volume'] == 0).all()

    def test_raw_values_unscaled(self, price_series):
        engine = FeatureEngine()
        indicators = IndicatorEngine().compute(price_series)
        bundle = engine.build(price_series, indicators)

        assert bundle.raw['rsi'] == pytest.approx(indicators.series('rsi').values)
        assert bundle.latest('price') == pytest.approx(price_series.latest_price)

    def test_normalization_can_be_disabled(self, price_series):
        bundle = FeatureEngine(FeatureConfig(normalize=False)).build(price_series)
        assert bundle.normalized['price'] == pytest.approx(bundle.raw['price'])


class TestExternalSeries:

    def test_mismatched_lengths_kept(self, price_series):
        external = ExternalMetrics(fear_greed=[40, 30, 20], sopr=[1.01])
        bundle = FeatureEngine().build(price_series, external=external)

        assert len(bundle.raw['fear_greed']) == 3
        assert len(bundle.raw['sopr']) == 1
        assert list(bundle.normalized['fear_greed']) == pytest.approx([1.0, 0.5, 0.0])

    def test_empty_series_omitted(self, price_series):
        bundle = FeatureEngine().build(price_series, external=ExternalMetrics(sopr=[1.0]))
        assert 'social_sentiment' not in bundle.raw
        assert 'sopr' in bundle.raw

    def test_from_dict_ignores_unknown_keys(self):
        external = ExternalMetrics.from_dict({'fear_greed': [50], 'whale_alerts': [1]})
        assert external.available() == ['fear_greed']


class TestPassthrough:

    def test_time_features(self):
        series = make_series([100, 101, 102], start="2024-01-01 09:30")
        bundle = FeatureEngine().build(series)

        assert list(bundle.passthrough['time_of_day']) == pytest.approx([9.5, 10.5, 11.5])
        # 2024-01-01 is a Monday
        assert list(bundle.passthrough['day_of_week']) == [0, 0, 0]
        assert bundle.passthrough['latest_price'] == 102

    def test_passthrough_never_normalized(self):
        series = make_series([100, 101, 102], start="2024-01-01 09:30")
        bundle = FeatureEngine().build(series)
        assert 'time_of_day' not in bundle.normalized
        assert np.max(bundle.passthrough['time_of_day']) > 1


class TestVolatility:

    def test_configured_annualization(self, price_series):
        bundle = FeatureEngine(FeatureConfig(annualization_factor=365)).build(price_series)
        expected = StatisticalFeatures.volatility(price_series.prices, 20, 365)
        assert bundle.raw['volatility'] == pytest.approx(expected.values)

    def test_matches_indicator_line(self, price_series):
        config = FeatureConfig(volatility_period=10, annualization_factor=365)
        indicators = IndicatorEngine().compute(price_series, 10, 365)
        bundle = FeatureEngine(config).build(price_series, indicators)
        assert bundle.raw['volatility'] == pytest.approx(indicators.series('volatility').values)
