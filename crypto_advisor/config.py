"""
Configuration Management
========================
Central configuration for the advisor core.
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional
import json
import os


@dataclass
class IndicatorConfig:
    """Indicator library periods."""
    rsi_period: int = 14
    ema_periods: List[int] = field(default_factory=lambda: [12, 26, 50])
    macd_fast: int = 12
    macd_slow: int = 26
    macd_signal: int = 9
    bollinger_period: int = 20
    bollinger_std: float = 2.0
    stochastic_period: int = 14
    stochastic_smooth_k: int = 3
    stochastic_smooth_d: int = 3
    williams_period: int = 14
    cci_period: int = 20
    atr_period: int = 14
    ichimoku_tenkan: int = 9
    ichimoku_kijun: int = 26
    ichimoku_senkou: int = 52

    # Support / resistance detection
    sr_window: int = 20
    sr_tolerance: float = 0.001  # 0.1% band around a level
    sr_min_strength: int = 2
    sr_max_levels: int = 10


@dataclass
class FeatureConfig:
    """Feature engineering configuration."""
    volatility_period: int = 20
    annualization_factor: int = 252
    normalize: bool = True


@dataclass
class ScoringConfig:
    """Scoring model configuration."""
    # Sub-score weights (fixed design parameter, sum to 1.0)
    weights: Dict[str, float] = field(default_factory=lambda: {
        "technical": 0.40,
        "sentiment": 0.20,
        "on_chain": 0.25,
        "volatility": 0.15
    })

    # Direction thresholds
    bullish_threshold: float = 0.1
    bearish_threshold: float = -0.1

    # Confidence is clamped to this band
    min_confidence: float = 0.6
    max_confidence: float = 0.95

    # Score of +/-1 projects at most this price move
    max_price_move: float = 0.05

    # Pivot-point lookback for support/resistance
    pivot_lookback: int = 20

    # Active profile name
    profile: str = "hybrid-tft"


@dataclass
class SignalConfig:
    """Signal generator configuration."""
    min_confidence: float = 0.7
    min_risk_reward: float = 1.5
    target_pct: float = 0.05  # 5% target
    stop_loss_pct: float = 0.03  # 3% stop loss
    high_confidence: float = 0.8


@dataclass
class RiskPolicy:
    """Risk limits applied at trade admission."""
    max_position_size_fraction: float = 0.25  # 25% of portfolio
    max_daily_loss_fraction: float = 0.05  # 5% daily loss limit
    max_drawdown_fraction: float = 0.20  # 20% max drawdown


@dataclass
class LedgerConfig:
    """Paper portfolio configuration."""
    initial_capital: float = 10000
    commission_rate: float = 0.001  # 0.1% per trade
    trade_id_prefix: str = "TR"


@dataclass
class LoggingConfig:
    """Logging configuration for the CLI entry point."""
    level: str = "INFO"
    format: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


@dataclass
class SystemConfig:
    """Master system configuration."""
    indicators: IndicatorConfig = field(default_factory=IndicatorConfig)
    features: FeatureConfig = field(default_factory=FeatureConfig)
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    signals: SignalConfig = field(default_factory=SignalConfig)
    risk: RiskPolicy = field(default_factory=RiskPolicy)
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def save(self, filepath: str):
        """Save configuration to JSON file."""
        directory = os.path.dirname(filepath)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(filepath, 'w') as f:
            json.dump(self._to_dict(), f, indent=2)

    @classmethod
    def load(cls, filepath: str) -> 'SystemConfig':
        """Load configuration from JSON file."""
        with open(filepath, 'r') as f:
            data = json.load(f)
        return cls._from_dict(data)

    def _to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def _from_dict(cls, data: dict) -> 'SystemConfig':
        """Create from dictionary. Missing sections and keys keep their defaults."""
        sections = {
            'indicators': IndicatorConfig,
            'features': FeatureConfig,
            'scoring': ScoringConfig,
            'signals': SignalConfig,
            'risk': RiskPolicy,
            'ledger': LedgerConfig,
            'logging': LoggingConfig
        }

        config = cls()
        for name, section_cls in sections.items():
            values = data.get(name)
            if not values:
                continue
            known = {k: v for k, v in values.items() if k in section_cls.__dataclass_fields__}
            setattr(config, name, section_cls(**known))
        return config


def load_config(filepath: Optional[str] = None) -> SystemConfig:
    """Load configuration from file, or defaults when no path is given."""
    if filepath:
        return SystemConfig.load(filepath)
    return SystemConfig()


# Default configuration instance
DEFAULT_CONFIG = SystemConfig()
