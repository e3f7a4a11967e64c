"""Tests for data/market_data.py"""

import pandas as pd
import pytest

from crypto_advisor.data import ExternalMetrics, PriceSeries
from crypto_advisor.exceptions import InvalidInputError
from tests.conftest import make_series


class TestPriceSeries:

    def test_from_lists(self):
        series = make_series([100, 101, 102], volumes=[1, 2, 3], symbol='ETH')
        assert len(series) == 3
        assert series.symbol == 'ETH'
        assert series.latest_price == 102
        assert list(series.volumes) == [1, 2, 3]

    def test_epoch_milliseconds(self):
        series = PriceSeries.from_lists([1_704_067_200_000, 1_704_070_800_000], [1.0, 2.0])
        assert series.timestamps[0] == pd.Timestamp('2024-01-01 00:00')
        assert series.timestamps[1] == pd.Timestamp('2024-01-01 01:00')

    def test_volumes_default_to_zero(self):
        assert (make_series([1, 2]).volumes == 0).all()

    def test_from_frame(self):
        df = pd.DataFrame(
            {'close': [10.0, 11.0], 'volume': [5.0, 6.0]},
            index=pd.date_range('2024-01-01', periods=2, freq='h')
        )
        series = PriceSeries.from_frame(df, symbol='SOL')
        assert series.latest_price == 11.0
        assert series.to_frame().columns.tolist() == ['price', 'volume']

    def test_tail(self):
        series = make_series([1, 2, 3, 4]).tail(2)
        assert list(series.prices) == [3, 4]

    @pytest.mark.parametrize('n', [0, -1])
    def test_tail_rejects_non_positive_length(self, n):
        with pytest.raises(InvalidInputError):
            make_series([1, 2, 3]).tail(n)

    def test_tail_longer_than_series(self):
        assert len(make_series([1, 2, 3]).tail(10)) == 3

    @pytest.mark.parametrize('timestamps, prices, volumes', [
        ([], [], None),
        (['2024-01-01', '2024-01-02'], [1.0], None),
        (['2024-01-01', '2024-01-02'], [1.0, 2.0], [1.0]),
        (['2024-01-02', '2024-01-01'], [1.0, 2.0], None),
        (['2024-01-01', '2024-01-01'], [1.0, 2.0], None),
        (['2024-01-01', '2024-01-02'], [1.0, -2.0], None),
        (['2024-01-01', '2024-01-02'], [1.0, float('inf')], None),
        (['2024-01-01', '2024-01-02'], [1.0, 2.0], [1.0, -1.0]),
        (['not a date', '2024-01-02'], [1.0, 2.0], None),
    ])
    def test_rejects_malformed_input(self, timestamps, prices, volumes):
        with pytest.raises(InvalidInputError):
            PriceSeries.from_lists(timestamps, prices, volumes)

    def test_empty_frame(self):
        with pytest.raises(InvalidInputError):
            PriceSeries.from_frame(pd.DataFrame())


class TestExternalMetrics:

    def test_defaults_empty(self):
        assert ExternalMetrics().available() == []

    def test_from_dict_converts_to_float(self):
        metrics = ExternalMetrics.from_dict({'sopr': [1, 2], 'fear_greed': None})
        assert metrics.sopr == [1.0, 2.0]
        assert metrics.fear_greed == []

    def test_to_dict_lists_every_series(self):
        assert len(ExternalMetrics().to_dict()) == 7
