"""
Data Module
===========
"""
from .market_data import PriceSeries, ExternalMetrics

__all__ = ['PriceSeries', 'ExternalMetrics']
