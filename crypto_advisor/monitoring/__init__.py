"""
Monitoring Module
=================
"""
from .performance import (
    PerformanceTracker,
    PerformanceMetrics,
    sharpe_ratio,
    max_drawdown,
    returns_from_values
)

__all__ = [
    'PerformanceTracker',
    'PerformanceMetrics',
    'sharpe_ratio',
    'max_drawdown',
    'returns_from_values'
]
