"""Tests for config.py"""

import json

from crypto_advisor.config import SystemConfig, load_config


class TestSystemConfig:

    def test_defaults(self, default_config):
        assert default_config.scoring.profile == 'hybrid-tft'
        assert sum(default_config.scoring.weights.values()) == 1.0
        assert default_config.signals.min_confidence == 0.7
        assert default_config.risk.max_position_size_fraction == 0.25
        assert default_config.ledger.initial_capital == 10000
        assert default_config.ledger.commission_rate == 0.001

    def test_save_and_load(self, tmp_path):
        config = SystemConfig()
        config.ledger.initial_capital = 50_000
        config.scoring.profile = 'ensemble'
        path = tmp_path / 'nested' / 'config.json'

        config.save(str(path))
        loaded = SystemConfig.load(str(path))

        assert loaded.ledger.initial_capital == 50_000
        assert loaded.scoring.profile == 'ensemble'
        assert loaded.indicators.ema_periods == [12, 26, 50]

    def test_partial_file_keeps_defaults(self, tmp_path):
        path = tmp_path / 'config.json'
        path.write_text(json.dumps({
            'risk': {'max_daily_loss_fraction': 0.1, 'leverage': 3},
            'unknown_section': {'x': 1}
        }))

        config = load_config(str(path))
        assert config.risk.max_daily_loss_fraction == 0.1
        assert config.risk.max_position_size_fraction == 0.25
        assert config.signals.target_pct == 0.05

    def test_load_config_without_path(self):
        assert load_config().logging.level == 'INFO'
