"""
Indicator Library
=================
Pure transforms over a price (and volume) series.

Every indicator keeps the timestamps of the input points it corresponds to.
An indicator with a warm-up period N therefore returns a series N-1 points
shorter than its input, aligned on the trailing end. Always read the latest
value from the end, never by absolute position.

Degenerate windows (flat prices, zero volume) produce defined fallbacks,
never NaN or infinity.
"""

import pandas as pd
import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
import logging

logger = logging.getLogger(__name__)

Band = Dict[str, pd.Series]


@dataclass
class SupportResistanceLevel:
    """A detected support or resistance level."""
    price: float
    level_type: str  # 'support' or 'resistance'
    strength: int
    timestamp: pd.Timestamp

    def to_dict(self) -> dict:
        return {
            'price': self.price,
            'type': self.level_type,
            'strength': self.strength,
            'timestamp': self.timestamp.isoformat()
        }


@dataclass
class IndicatorHint:
    """Single-indicator trading hint."""
    signal_type: str  # 'BUY' or 'SELL'
    indicator: str
    strength: str  # 'STRONG' or 'MEDIUM'
    reason: str


def _empty(name: Optional[str] = None) -> pd.Series:
    return pd.Series(dtype=float, name=name)


def _windows(values: pd.Series, period: int) -> np.ndarray:
    """Trailing windows as a 2-D array, one row per complete window."""
    if len(values) < period:
        return np.empty((0, period))
    return sliding_window_view(values.values.astype(float), period)


def _wilder_smooth(values: np.ndarray, period: int) -> np.ndarray:
    """Wilder smoothing seeded with the simple mean of the first ``period`` values."""
    if len(values) < period:
        return np.empty(0)

    smoothed = np.empty(len(values) - period + 1)
    smoothed[0] = values[:period].mean()
    for i, value in enumerate(values[period:], start=1):
        smoothed[i] = (smoothed[i - 1] * (period - 1) + value) / period
    return smoothed


def _safe_divide(numerator, denominator, fallback: float) -> np.ndarray:
    """Element-wise division that yields ``fallback`` wherever the denominator is 0."""
    numerator = np.asarray(numerator, dtype=float)
    denominator = np.asarray(denominator, dtype=float)
    out = np.full(np.broadcast(numerator, denominator).shape, fallback, dtype=float)
    return np.divide(numerator, denominator, out=out, where=denominator != 0)


class TechnicalIndicators:
    """Technical analysis indicators."""

    @staticmethod
    def sma(prices: pd.Series, period: int) -> pd.Series:
        """Simple Moving Average."""
        return prices.rolling(window=period).mean().iloc[period - 1:]

    @staticmethod
    def ema(prices: pd.Series, period: int) -> pd.Series:
        """Exponential Moving Average seeded with the first price."""
        return prices.ewm(span=period, adjust=False).mean()

    @staticmethod
    def rsi(prices: pd.Series, period: int = 14) -> pd.Series:
        """
        Relative Strength Index with Wilder smoothing.

        The first value uses simple averages over the first ``period``
        changes. A window without losses reads 100.
        """
        delta = prices.diff().iloc[1:]
        if len(delta) < period:
            return _empty('rsi')

        gains = delta.clip(lower=0).values
        losses = (-delta).clip(lower=0).values

        avg_gain = _wilder_smooth(gains, period)
        avg_loss = _wilder_smooth(losses, period)

        rs = _safe_divide(avg_gain, avg_loss, np.inf)
        rsi = 100 - (100 / (1 + rs))

        return pd.Series(rsi, index=delta.index[period - 1:], name='rsi')

    @staticmethod
    def macd(prices: pd.Series, fast: int = 12, slow: int = 26, signal: int = 9) -> Band:
        """Moving Average Convergence Divergence."""
        if len(prices) < slow:
            return {'macd': _empty('macd'), 'signal': _empty('signal'),
                    'histogram': _empty('histogram')}

        ema_fast = TechnicalIndicators.ema(prices, fast)
        ema_slow = TechnicalIndicators.ema(prices, slow)

        # MACD starts where the slow EMA has warmed up
        macd_line = (ema_fast - ema_slow).iloc[slow - 1:]
        signal_line = TechnicalIndicators.ema(macd_line, signal)
        histogram = (macd_line - signal_line).iloc[signal - 1:]

        return {
            'macd': macd_line.rename('macd'),
            'signal': signal_line.rename('signal'),
            'histogram': histogram.rename('histogram')
        }

    @staticmethod
    def bollinger_bands(prices: pd.Series, period: int = 20, std_dev: float = 2.0) -> Band:
        """Bollinger Bands with population standard deviation."""
        windows = _windows(prices, period)
        index = prices.index[period - 1:] if len(windows) else prices.index[:0]

        middle = windows.mean(axis=1) if len(windows) else np.empty(0)
        std = windows.std(axis=1) if len(windows) else np.empty(0)

        upper = middle + std * std_dev
        lower = middle - std * std_dev

        # Bandwidth: volatility measure
        bandwidth = _safe_divide(2 * std_dev * std, middle, 0.0)

        return {
            'upper': pd.Series(upper, index=index, name='upper'),
            'middle': pd.Series(middle, index=index, name='middle'),
            'lower': pd.Series(lower, index=index, name='lower'),
            'bandwidth': pd.Series(bandwidth, index=index, name='bandwidth')
        }

    @staticmethod
    def stochastic(prices: pd.Series, period: int = 14,
                   smooth_k: int = 3, smooth_d: int = 3) -> Band:
        """Stochastic Oscillator on a close-only series. Flat windows read 50."""
        highest = prices.rolling(window=period).max().iloc[period - 1:]
        lowest = prices.rolling(window=period).min().iloc[period - 1:]
        close = prices.iloc[period - 1:]

        raw_k = pd.Series(
            _safe_divide(close - lowest, highest - lowest, 0.5) * 100,
            index=close.index
        )
        stoch_k = TechnicalIndicators.sma(raw_k, smooth_k)
        stoch_d = TechnicalIndicators.sma(stoch_k, smooth_d)

        return {
            'k': stoch_k.rename('k'),
            'd': stoch_d.rename('d')
        }

    @staticmethod
    def williams_r(prices: pd.Series, period: int = 14) -> pd.Series:
        """Williams %R. Flat windows read -50."""
        highest = prices.rolling(window=period).max().iloc[period - 1:]
        lowest = prices.rolling(window=period).min().iloc[period - 1:]
        close = prices.iloc[period - 1:]

        wr = _safe_divide(highest - close, highest - lowest, 0.5) * -100
        return pd.Series(wr, index=close.index, name='williams_r')

    @staticmethod
    def cci(prices: pd.Series, period: int = 20) -> pd.Series:
        """Commodity Channel Index. Typical price is the close for close-only data."""
        windows = _windows(prices, period)
        if not len(windows):
            return _empty('cci')

        mean = windows.mean(axis=1)
        mean_deviation = np.abs(windows - mean[:, None]).mean(axis=1)
        close = prices.values[period - 1:]

        cci = _safe_divide(close - mean, 0.015 * mean_deviation, 0.0)
        return pd.Series(cci, index=prices.index[period - 1:], name='cci')

    @staticmethod
    def atr(prices: pd.Series, period: int = 14) -> pd.Series:
        """Average True Range of a close-only series (true range = |close change|)."""
        true_range = prices.diff().abs().iloc[1:]
        atr = _wilder_smooth(true_range.values, period)
        if not len(atr):
            return _empty('atr')
        return pd.Series(atr, index=true_range.index[period - 1:], name='atr')

    @staticmethod
    def obv(prices: pd.Series, volumes: pd.Series) -> pd.Series:
        """On-Balance Volume, starting from the first volume."""
        direction = np.sign(prices.diff()).fillna(0)
        flow = direction * volumes
        flow.iloc[0] = volumes.iloc[0]
        return flow.cumsum().rename('obv')

    @staticmethod
    def vwap(prices: pd.Series, volumes: pd.Series) -> pd.Series:
        """Cumulative Volume Weighted Average Price. No volume yet reads the price."""
        cumulative_pv = (prices * volumes).cumsum()
        cumulative_volume = volumes.cumsum()

        vwap = prices.values.astype(float).copy()
        np.divide(cumulative_pv.values, cumulative_volume.values,
                  out=vwap, where=cumulative_volume.values > 0)
        return pd.Series(vwap, index=prices.index, name='vwap')

    @staticmethod
    def ichimoku(prices: pd.Series, tenkan: int = 9, kijun: int = 26,
                 senkou: int = 52) -> Band:
        """Ichimoku Cloud lines on a close-only series."""
        def midpoint(period: int) -> pd.Series:
            high = prices.rolling(window=period).max()
            low = prices.rolling(window=period).min()
            return ((high + low) / 2).iloc[period - 1:]

        tenkan_sen = midpoint(tenkan)
        kijun_sen = midpoint(kijun)
        senkou_a = ((tenkan_sen + kijun_sen) / 2).dropna()
        senkou_b = midpoint(senkou)
        chikou = prices.iloc[:-kijun] if len(prices) > kijun else prices.iloc[:0]

        return {
            'tenkan_sen': tenkan_sen.rename('tenkan_sen'),
            'kijun_sen': kijun_sen.rename('kijun_sen'),
            'senkou_span_a': senkou_a.rename('senkou_span_a'),
            'senkou_span_b': senkou_b.rename('senkou_span_b'),
            'chikou_span': chikou.rename('chikou_span')
        }

    @staticmethod
    def fibonacci(prices: pd.Series) -> Dict[str, float]:
        """Fibonacci retracement and extension levels over the series range."""
        high = float(prices.max())
        low = float(prices.min())
        price_range = high - low

        return {
            'level_0': high,
            'level_236': high - price_range * 0.236,
            'level_382': high - price_range * 0.382,
            'level_500': high - price_range * 0.5,
            'level_618': high - price_range * 0.618,
            'level_786': high - price_range * 0.786,
            'level_1000': low,
            'level_1618': low - price_range * 0.618,
            'level_2618': low - price_range * 1.618
        }

    @staticmethod
    def support_resistance(prices: pd.Series, window: int = 20, tolerance: float = 0.001,
                           min_strength: int = 2, max_levels: int = 10) -> List[SupportResistanceLevel]:
        """
        Support and resistance levels from local extrema.

        A point is resistance when nothing within ``window`` points on either
        side exceeds it, and support when nothing falls below it. Strength
        counts the later closes that trade within ``tolerance`` of the level.
        Only levels stronger than ``min_strength`` are kept, strongest first.
        """
        values = prices.values.astype(float)
        levels = []

        for i in range(window, len(values) - window):
            current = values[i]
            surrounding = values[i - window:i + window + 1]

            if (surrounding <= current).all():
                level_type = 'resistance'
            elif (surrounding >= current).all():
                level_type = 'support'
            else:
                continue

            later = values[i + 1:]
            strength = int((np.abs(later - current) <= current * tolerance).sum())
            levels.append(SupportResistanceLevel(
                price=float(current),
                level_type=level_type,
                strength=strength,
                timestamp=prices.index[i]
            ))

        levels = [lvl for lvl in levels if lvl.strength > min_strength]
        levels.sort(key=lambda lvl: lvl.strength, reverse=True)
        return levels[:max_levels]


class StatisticalFeatures:
    """Statistical and mathematical features."""

    @staticmethod
    def log_returns(prices: pd.Series) -> pd.Series:
        """One-period log returns (first point dropped)."""
        return np.log(prices / prices.shift(1)).iloc[1:]

    @staticmethod
    def volatility(prices: pd.Series, period: int = 20, annualization: int = 252) -> pd.Series:
        """Rolling annualized volatility of log returns (population std)."""
        returns = StatisticalFeatures.log_returns(prices)
        windows = _windows(returns, period)
        if not len(windows):
            return _empty('volatility')

        vol = windows.std(axis=1) * np.sqrt(annualization)
        return pd.Series(vol, index=returns.index[period - 1:], name='volatility')

    @staticmethod
    def min_max_normalize(values) -> np.ndarray:
        """Scale to [0, 1] over the values' own range. Zero range maps to zeros."""
        arr = np.asarray(values, dtype=float)
        if arr.size == 0:
            return arr

        finite = arr[np.isfinite(arr)]
        if finite.size == 0:
            return np.zeros_like(arr)

        low, high = finite.min(), finite.max()
        value_range = high - low
        if value_range == 0:
            return np.zeros_like(arr)

        normalized = (arr - low) / value_range
        normalized[~np.isfinite(normalized)] = 0.0
        return normalized


@dataclass
class IndicatorSet:
    """Container for computed indicators."""
    symbol: str
    values: Dict[str, Any]
    timestamp: pd.Timestamp = field(default_factory=pd.Timestamp.now)

    @property
    def names(self) -> List[str]:
        return list(self.values.keys())

    def series(self, name: str, key: Optional[str] = None) -> pd.Series:
        """Indicator series by name; ``key`` selects a line of a band."""
        value = self.values.get(name)
        if key is not None:
            value = value.get(key) if isinstance(value, dict) else None
        if isinstance(value, pd.Series):
            return value
        return _empty(name)

    def latest(self, name: str, key: Optional[str] = None) -> Optional[float]:
        """Most recent value, or None when the series has no values yet."""
        return self.previous(name, key, offset=0)

    def previous(self, name: str, key: Optional[str] = None, offset: int = 1) -> Optional[float]:
        """Value ``offset`` periods before the latest, counted from the end."""
        series = self.series(name, key)
        if len(series) <= offset:
            return None
        return float(series.iloc[-1 - offset])

    def to_dict(self) -> dict:
        """Plain-structure view (lists and floats) for serialization."""
        def convert(value: Union[pd.Series, dict, list, float]):
            if isinstance(value, pd.Series):
                return [float(v) for v in value.values]
            if isinstance(value, dict):
                return {k: convert(v) for k, v in value.items()}
            if isinstance(value, list):
                return [v.to_dict() if hasattr(v, 'to_dict') else v for v in value]
            return value

        return {
            'symbol': self.symbol,
            'timestamp': self.timestamp.isoformat(),
            'indicators': {name: convert(value) for name, value in self.values.items()}
        }


class IndicatorEngine:
    """
    Runs the full indicator library over a price series.

    Output feeds the feature engine, the scoring model and the signal
    generator.
    """

    def __init__(self, config=None):
        from ..config import IndicatorConfig
        self.config = config or IndicatorConfig()

        self.technical = TechnicalIndicators()
        self.statistical = StatisticalFeatures()

    def compute(self, series, volatility_period: int = 20,
                annualization: int = 252) -> IndicatorSet:
        """
        Compute all indicators for a price series.

        Args:
            series: PriceSeries to analyze
            volatility_period: Window for the rolling volatility line
            annualization: Periods per year used to annualize volatility

        Returns:
            IndicatorSet keyed by indicator name
        """
        cfg = self.config
        prices = series.prices
        volumes = series.volumes

        values: Dict[str, Any] = {}

        # Moving averages
        for period in cfg.ema_periods:
            values[f'ema_{period}'] = self.technical.ema(prices, period)
        values['sma'] = self.technical.sma(prices, cfg.bollinger_period)

        # Oscillators
        values['rsi'] = self.technical.rsi(prices, cfg.rsi_period)
        values['macd'] = self.technical.macd(prices, cfg.macd_fast, cfg.macd_slow, cfg.macd_signal)
        values['stochastic'] = self.technical.stochastic(
            prices, cfg.stochastic_period, cfg.stochastic_smooth_k, cfg.stochastic_smooth_d
        )
        values['williams_r'] = self.technical.williams_r(prices, cfg.williams_period)
        values['cci'] = self.technical.cci(prices, cfg.cci_period)

        # Volatility
        values['bollinger'] = self.technical.bollinger_bands(
            prices, cfg.bollinger_period, cfg.bollinger_std
        )
        values['atr'] = self.technical.atr(prices, cfg.atr_period)
        values['volatility'] = self.statistical.volatility(prices, volatility_period, annualization)

        # Volume
        values['obv'] = self.technical.obv(prices, volumes)
        values['vwap'] = self.technical.vwap(prices, volumes)

        # Levels
        values['ichimoku'] = self.technical.ichimoku(
            prices, cfg.ichimoku_tenkan, cfg.ichimoku_kijun, cfg.ichimoku_senkou
        )
        values['fibonacci'] = self.technical.fibonacci(prices)
        values['support_resistance'] = self.technical.support_resistance(
            prices, cfg.sr_window, cfg.sr_tolerance, cfg.sr_min_strength, cfg.sr_max_levels
        )

        logger.debug(f"Computed {len(values)} indicators for {series.symbol} over {len(series)} points")

        return IndicatorSet(symbol=series.symbol, values=values)

    def generate_signals(self, series, indicators: IndicatorSet) -> List[IndicatorHint]:
        """Per-indicator BUY/SELL hints from the latest readings."""
        hints = []

        rsi = indicators.latest('rsi')
        if rsi is not None:
            if rsi < 30:
                hints.append(IndicatorHint('BUY', 'RSI', 'STRONG', 'Oversold condition'))
            elif rsi > 70:
                hints.append(IndicatorHint('SELL', 'RSI', 'STRONG', 'Overbought condition'))

        current_hist = indicators.latest('macd', 'histogram')
        prev_hist = indicators.previous('macd', 'histogram')
        if current_hist is not None and prev_hist is not None:
            if current_hist > 0 and prev_hist <= 0:
                hints.append(IndicatorHint('BUY', 'MACD', 'MEDIUM', 'Bullish crossover'))
            elif current_hist < 0 and prev_hist >= 0:
                hints.append(IndicatorHint('SELL', 'MACD', 'MEDIUM', 'Bearish crossover'))

        lower = indicators.latest('bollinger', 'lower')
        upper = indicators.latest('bollinger', 'upper')
        if lower is not None and upper is not None:
            price = series.latest_price
            if price <= lower:
                hints.append(IndicatorHint('BUY', 'Bollinger Bands', 'MEDIUM', 'Price at lower band'))
            elif price >= upper:
                hints.append(IndicatorHint('SELL', 'Bollinger Bands', 'MEDIUM', 'Price at upper band'))

        return hints
