"""Unit tests for environment-driven settings."""

from legsync.config import Settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in (
            "LEGSYNC_CONTRACT_MULTIPLIER", "LEGSYNC_COST_RATIO_MIN", "LEGSYNC_COST_RATIO_MAX",
            "LEGSYNC_COST_ABSOLUTE_MAX", "LEGSYNC_STRIKE_TOLERANCE",
        ):
            monkeypatch.delenv(name, raising=False)
        assert Settings.from_env() == Settings()

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("LEGSYNC_CONTRACT_MULTIPLIER", "10")
        monkeypatch.setenv("LEGSYNC_COST_RATIO_MIN", "15.5")
        cfg = Settings.from_env()
        assert cfg.contract_multiplier == 10.0
        assert cfg.cost_ratio_min == 15.5

    def test_invalid_value_falls_back(self, monkeypatch):
        monkeypatch.setenv("LEGSYNC_COST_ABSOLUTE_MAX", "lots")
        monkeypatch.setenv("LEGSYNC_STRIKE_TOLERANCE", "  ")
        cfg = Settings.from_env()
        assert cfg.cost_absolute_max == 1000.0
        assert cfg.strike_tolerance == 0.0001
