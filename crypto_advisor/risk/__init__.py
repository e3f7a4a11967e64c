"""
Risk Management Module
======================
"""
from .risk_manager import RiskManager, RiskAssessment, RiskCheck

__all__ = [
    'RiskManager',
    'RiskAssessment',
    'RiskCheck'
]
