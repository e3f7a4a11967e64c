"""
Signal Generation Module
========================
"""
from .signal_generator import SignalGenerator, Signal, SignalType

__all__ = [
    'SignalGenerator',
    'Signal',
    'SignalType'
]
