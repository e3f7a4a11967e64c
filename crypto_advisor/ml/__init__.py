"""
Prediction Models
=================

- Heuristic multi-factor scoring with named profiles
- Geometric chart-pattern detection
"""

from .scoring_model import (
    ScoringModel,
    ScoringProfile,
    SCORING_PROFILES,
    Prediction,
    Direction
)
from .pattern_detector import PatternDetector, Pattern, Extremum

__all__ = [
    'ScoringModel',
    'ScoringProfile',
    'SCORING_PROFILES',
    'Prediction',
    'Direction',
    'PatternDetector',
    'Pattern',
    'Extremum'
]
