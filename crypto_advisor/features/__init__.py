"""
Feature Engineering Module
==========================
"""
from .indicators import (
    TechnicalIndicators,
    StatisticalFeatures,
    IndicatorEngine,
    IndicatorSet,
    IndicatorHint,
    SupportResistanceLevel
)
from .feature_engine import FeatureEngine, FeatureBundle

__all__ = [
    'TechnicalIndicators',
    'StatisticalFeatures',
    'IndicatorEngine',
    'IndicatorSet',
    'IndicatorHint',
    'SupportResistanceLevel',
    'FeatureEngine',
    'FeatureBundle'
]
