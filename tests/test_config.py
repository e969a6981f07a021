"""Tests for scraper configuration."""

import pytest
from pydantic import ValidationError

from portfolio_scraper.config import FAST_CONFIG, ScraperConfig, WaitStrategy


class TestScraperConfig:
    """Test cases for ScraperConfig."""

    def test_defaults(self):
        config = ScraperConfig()

        assert config.headless is True
        assert config.traversal_order == "depth_first"
        assert config.max_pages is None
        assert [s.wait_until for s in config.wait_strategies] == [
            "domcontentloaded",
            "load",
            "networkidle",
        ]
        assert "--disable-blink-features=AutomationControlled" in config.launch_args

    def test_wait_strategies_required(self):
        with pytest.raises(ValidationError):
            ScraperConfig(wait_strategies=[])

    def test_wait_strategy_timeout_bounds(self):
        with pytest.raises(ValidationError):
            WaitStrategy(wait_until="load", timeout=10)

    def test_invalid_traversal_order(self):
        with pytest.raises(ValidationError):
            ScraperConfig(traversal_order="random")

    def test_validate_assignment(self):
        config = ScraperConfig()

        with pytest.raises(ValidationError):
            config.max_pages = 0

    def test_fast_config_is_faster(self):
        default = ScraperConfig()

        assert len(FAST_CONFIG.wait_strategies) < len(default.wait_strategies)
        assert FAST_CONFIG.settle_delay < default.settle_delay

    def test_from_env(self, monkeypatch):
        from portfolio_scraper import config as config_module

        monkeypatch.setattr(config_module.settings, "SCRAPER_HEADLESS", False)
        monkeypatch.setattr(config_module.settings, "CHROME_EXECUTABLE_PATH", "/opt/chrome")

        config = ScraperConfig.from_env()

        assert config.headless is False
        assert config.executable_path == "/opt/chrome"
