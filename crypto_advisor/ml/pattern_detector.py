"""
Pattern Detection Module
========================
Chart pattern recognition over trailing windows of a price series.

Detected patterns:
- Double Top / Double Bottom
- Head and Shoulders
- Ascending / Descending / Symmetrical Triangle

Each pattern type is checked independently, so one window can report
several patterns at once.
"""

import pandas as pd
import numpy as np
from dataclasses import dataclass
from typing import List, Optional, Sequence, Union
import logging

from .scoring_model import Direction

logger = logging.getLogger(__name__)

PriceInput = Union[pd.Series, Sequence[float], np.ndarray]


@dataclass
class Extremum:
    """Local peak or trough inside a scanned window."""
    index: int
    value: float


@dataclass
class Pattern:
    """A detected chart pattern."""
    name: str
    confidence: float
    direction: Direction
    target: float

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'confidence': self.confidence,
            'direction': self.direction.value,
            'target': self.target
        }


class PatternDetector:
    """Geometric chart-pattern scanner based on local extrema."""

    # Relative price tolerance for "equal" peaks, troughs and shoulders
    EQUALITY_TOLERANCE = 0.02

    # Slope band separating flat from rising/falling trendlines
    FLAT_SLOPE = 0.1

    def __init__(self, min_distance: int = 3, double_window: int = 30,
                 head_shoulders_window: int = 20, triangle_window: int = 15):
        self.min_distance = min_distance
        self.double_window = double_window
        self.head_shoulders_window = head_shoulders_window
        self.triangle_window = triangle_window

    @staticmethod
    def find_peaks(prices: PriceInput, min_distance: int = 3) -> List[Extremum]:
        """Points strictly above every neighbour within ``min_distance``."""
        values = np.asarray(prices, dtype=float)
        peaks = []
        for i in range(min_distance, len(values) - min_distance):
            neighbours = np.concatenate([values[i - min_distance:i], values[i + 1:i + min_distance + 1]])
            if (neighbours < values[i]).all():
                peaks.append(Extremum(index=i, value=float(values[i])))
        return peaks

    @staticmethod
    def find_troughs(prices: PriceInput, min_distance: int = 3) -> List[Extremum]:
        """Points strictly below every neighbour within ``min_distance``."""
        values = np.asarray(prices, dtype=float)
        troughs = []
        for i in range(min_distance, len(values) - min_distance):
            neighbours = np.concatenate([values[i - min_distance:i], values[i + 1:i + min_distance + 1]])
            if (neighbours > values[i]).all():
                troughs.append(Extremum(index=i, value=float(values[i])))
        return troughs

    def detect(self, prices: PriceInput) -> List[Pattern]:
        """
        Scan the series for every supported pattern.

        Args:
            prices: Price series (pd.Series, list or array), oldest first

        Returns:
            List of detected patterns, possibly empty
        """
        values = np.asarray(prices, dtype=float)
        patterns = []

        for detector in (self.detect_head_and_shoulders,
                         self.detect_double_top,
                         self.detect_double_bottom,
                         self.detect_triangle):
            pattern = detector(values)
            if pattern is not None:
                patterns.append(pattern)

        if patterns:
            logger.debug(f"Detected patterns: {', '.join(p.name for p in patterns)}")

        return patterns

    def _is_equal(self, a: float, b: float) -> bool:
        if a == 0:
            return b == 0
        return abs(a - b) / abs(a) < self.EQUALITY_TOLERANCE

    def detect_double_top(self, prices: PriceInput) -> Optional[Pattern]:
        """Last two peaks of the window within 2% of each other."""
        window = np.asarray(prices, dtype=float)[-self.double_window:]
        peaks = self.find_peaks(window, self.min_distance)
        if len(peaks) < 2:
            return None

        first, second = peaks[-2:]
        if not self._is_equal(first.value, second.value):
            return None

        return Pattern(
            name='Double Top',
            confidence=0.65,
            direction=Direction.BEARISH,
            target=min(first.value, second.value) * 0.95
        )

    def detect_double_bottom(self, prices: PriceInput) -> Optional[Pattern]:
        """Last two troughs of the window within 2% of each other."""
        window = np.asarray(prices, dtype=float)[-self.double_window:]
        troughs = self.find_troughs(window, self.min_distance)
        if len(troughs) < 2:
            return None

        first, second = troughs[-2:]
        if not self._is_equal(first.value, second.value):
            return None

        return Pattern(
            name='Double Bottom',
            confidence=0.65,
            direction=Direction.BULLISH,
            target=max(first.value, second.value) * 1.05
        )

    def detect_head_and_shoulders(self, prices: PriceInput) -> Optional[Pattern]:
        """Three peaks with the middle one highest and level shoulders."""
        values = np.asarray(prices, dtype=float)
        if len(values) < self.head_shoulders_window:
            return None

        peaks = self.find_peaks(values[-self.head_shoulders_window:], self.min_distance)
        if len(peaks) < 3:
            return None

        left, head, right = peaks[-3:]
        if head.value <= left.value or head.value <= right.value:
            return None
        if not self._is_equal(left.value, right.value):
            return None

        return Pattern(
            name='Head and Shoulders',
            confidence=0.75,
            direction=Direction.BEARISH,
            target=min(left.value, right.value)
        )

    def detect_triangle(self, prices: PriceInput) -> Optional[Pattern]:
        """Converging trendlines through the window's first and last extrema."""
        values = np.asarray(prices, dtype=float)
        if len(values) < self.triangle_window:
            return None

        window = values[-self.triangle_window:]
        peaks = self.find_peaks(window, self.min_distance)
        troughs = self.find_troughs(window, self.min_distance)
        if len(peaks) < 2 or len(troughs) < 2:
            return None

        peak_slope = self._slope(peaks[0], peaks[-1])
        trough_slope = self._slope(troughs[0], troughs[-1])

        flat = self.FLAT_SLOPE
        if abs(peak_slope) < flat and trough_slope > flat:
            return Pattern(
                name='Ascending Triangle',
                confidence=0.7,
                direction=Direction.BULLISH,
                target=peaks[0].value * 1.05
            )

        if abs(trough_slope) < flat and peak_slope < -flat:
            return Pattern(
                name='Descending Triangle',
                confidence=0.7,
                direction=Direction.BEARISH,
                target=troughs[0].value * 0.95
            )

        if peak_slope < -flat and trough_slope > flat:
            return Pattern(
                name='Symmetrical Triangle',
                confidence=0.6,
                direction=Direction.NEUTRAL,
                target=(peaks[0].value + troughs[0].value) / 2
            )

        return None

    @staticmethod
    def _slope(start: Extremum, end: Extremum) -> float:
        return (end.value - start.value) / (end.index - start.index)
