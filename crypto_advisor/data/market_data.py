"""
Market Data Module
==================
Input containers for one analysis pass: the price/volume series and the
externally supplied on-chain and sentiment series.

Data acquisition happens outside this package. These containers only
validate and hold what the caller hands in.
"""

import pandas as pd
import numpy as np
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence
import logging

from ..exceptions import InvalidInputError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class PriceSeries:
    """
    Time-ordered (timestamp, price, volume) triples.

    Timestamps are strictly increasing and the series holds at least one
    point. Prices and volumes are stored as ``pd.Series`` indexed by
    timestamp so every derived indicator keeps its trailing alignment.
    """
    symbol: str
    prices: pd.Series
    volumes: pd.Series

    @classmethod
    def from_lists(cls, timestamps: Sequence, prices: Sequence[float],
                   volumes: Optional[Sequence[float]] = None,
                   symbol: str = "") -> 'PriceSeries':
        """
        Build and validate a series from parallel sequences.

        Args:
            timestamps: Anything ``pd.to_datetime`` accepts (epoch ms ints are
                treated as milliseconds)
            prices: Price per point
            volumes: Volume per point (zeros when omitted)
            symbol: Symbol name for reference
        """
        if len(timestamps) == 0:
            raise InvalidInputError("price series must contain at least one point")
        if len(prices) != len(timestamps):
            raise InvalidInputError(
                f"prices ({len(prices)}) and timestamps ({len(timestamps)}) differ in length"
            )
        if volumes is None:
            volumes = [0.0] * len(prices)
        if len(volumes) != len(timestamps):
            raise InvalidInputError(
                f"volumes ({len(volumes)}) and timestamps ({len(timestamps)}) differ in length"
            )

        index = _to_datetime_index(timestamps)
        price_series = pd.Series(np.asarray(prices, dtype=float), index=index, name='price')
        volume_series = pd.Series(np.asarray(volumes, dtype=float), index=index, name='volume')

        series = cls(symbol=symbol, prices=price_series, volumes=volume_series)
        series.validate()
        logger.debug(f"Loaded {len(series)} points for {symbol or 'series'}")
        return series

    @classmethod
    def from_frame(cls, df: pd.DataFrame, symbol: str = "") -> 'PriceSeries':
        """
        Build a series from a DataFrame.

        Accepts either ``timestamp``/``price``/``volume`` columns, or a
        DatetimeIndex with a ``close`` (or ``price``) column and an optional
        ``volume`` column.
        """
        if df is None or df.empty:
            raise InvalidInputError("price frame is empty")

        price_col = 'price' if 'price' in df.columns else 'close'
        if price_col not in df.columns:
            raise InvalidInputError("price frame needs a 'price' or 'close' column")

        if 'timestamp' in df.columns:
            timestamps = df['timestamp'].tolist()
        else:
            timestamps = list(df.index)

        volumes = df['volume'].tolist() if 'volume' in df.columns else None
        return cls.from_lists(timestamps, df[price_col].tolist(), volumes, symbol=symbol)

    def validate(self):
        """Raise InvalidInputError unless the series is non-empty, ordered and finite."""
        if len(self.prices) == 0:
            raise InvalidInputError("price series must contain at least one point")

        if not self.prices.index.is_monotonic_increasing or not self.prices.index.is_unique:
            raise InvalidInputError("timestamps must be strictly increasing")

        if not np.all(np.isfinite(self.prices.values)) or (self.prices.values <= 0).any():
            raise InvalidInputError("prices must be finite positive numbers")

        if not np.all(np.isfinite(self.volumes.values)) or (self.volumes.values < 0).any():
            raise InvalidInputError("volumes must be finite and non-negative")

    @property
    def timestamps(self) -> pd.DatetimeIndex:
        return self.prices.index

    @property
    def latest_price(self) -> float:
        return float(self.prices.iloc[-1])

    def tail(self, n: int) -> 'PriceSeries':
        """Most recent ``n`` points as a new series."""
        if n < 1:
            raise InvalidInputError(f"tail length must be at least 1, got {n}")
        series = PriceSeries(symbol=self.symbol,
                             prices=self.prices.iloc[-n:],
                             volumes=self.volumes.iloc[-n:])
        series.validate()
        return series

    def to_frame(self) -> pd.DataFrame:
        """Series as a DataFrame with ``price`` and ``volume`` columns."""
        return pd.DataFrame({'price': self.prices, 'volume': self.volumes})

    def __len__(self) -> int:
        return len(self.prices)


@dataclass(frozen=True)
class ExternalMetrics:
    """
    Externally supplied on-chain and sentiment series.

    Every series may be empty and may be shorter than the price series;
    consumers index each one against its own length.
    """
    active_addresses: List[float] = field(default_factory=list)
    transaction_volume: List[float] = field(default_factory=list)
    exchange_flow: List[float] = field(default_factory=list)
    sopr: List[float] = field(default_factory=list)
    fear_greed: List[float] = field(default_factory=list)
    social_sentiment: List[float] = field(default_factory=list)
    btc_correlation: List[float] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> 'ExternalMetrics':
        """Build from a mapping; unknown keys are ignored."""
        if not data:
            return cls()
        known = {
            k: [float(x) for x in v]
            for k, v in data.items()
            if k in cls.__dataclass_fields__ and v is not None
        }
        return cls(**known)

    def to_dict(self) -> Dict[str, List[float]]:
        return {name: list(getattr(self, name)) for name in self.__dataclass_fields__}

    def available(self) -> List[str]:
        """Names of the series that carry at least one sample."""
        return [name for name in self.__dataclass_fields__ if len(getattr(self, name)) > 0]


def _to_datetime_index(timestamps: Sequence) -> pd.DatetimeIndex:
    """Convert timestamps to a DatetimeIndex; bare numbers are epoch milliseconds."""
    values = list(timestamps)
    if values and all(isinstance(t, (int, float, np.integer, np.floating)) for t in values):
        return pd.DatetimeIndex(pd.to_datetime(values, unit='ms'))
    try:
        return pd.DatetimeIndex(pd.to_datetime(values))
    except (ValueError, TypeError) as e:
        raise InvalidInputError(f"unparseable timestamps: {e}") from e
