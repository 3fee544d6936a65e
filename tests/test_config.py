"""Tests for Policy and Settings."""

import json
import logging

import pytest
import structlog

from withdrawals import MAX_ITEMS_PER_WITHDRAWAL, ORDER_CAPACITY, Policy, Settings, configure_logging
from withdrawals.config import DEFAULT_DATABASE_URL


class TestPolicy:
    def test_defaults(self):
        policy = Policy()
        assert policy.capacity == ORDER_CAPACITY == 15
        assert policy.max_items == MAX_ITEMS_PER_WITHDRAWAL == 200

    def test_fluent_builders_return_new_policy(self):
        base = Policy()
        custom = base.with_capacity(10).with_max_items(50)

        assert (custom.capacity, custom.max_items) == (10, 50)
        assert (base.capacity, base.max_items) == (15, 200)

    def test_rejects_zero_capacity(self):
        with pytest.raises(ValueError):
            Policy(capacity=0)

    def test_rejects_negative_max_items(self):
        with pytest.raises(ValueError):
            Policy().with_max_items(-1)


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in (
            "WITHDRAWALS_DATABASE_URL",
            "WITHDRAWALS_ORDER_CAPACITY",
            "WITHDRAWALS_MAX_ITEMS",
            "LOG_LEVEL",
            "ENVIRONMENT",
        ):
            monkeypatch.delenv(name, raising=False)

        settings = Settings.from_env()

        assert settings.database_url == DEFAULT_DATABASE_URL
        assert settings.policy() == Policy()
        assert settings.log_level == "INFO"
        assert not settings.is_production

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("WITHDRAWALS_DATABASE_URL", "sqlite+aiosqlite:///orders.db")
        monkeypatch.setenv("WITHDRAWALS_ORDER_CAPACITY", "10")
        monkeypatch.setenv("WITHDRAWALS_MAX_ITEMS", "100")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("ENVIRONMENT", "Production")

        settings = Settings.from_env()

        assert settings.database_url == "sqlite+aiosqlite:///orders.db"
        assert settings.policy() == Policy(capacity=10, max_items=100)
        assert settings.log_level == "DEBUG"
        assert settings.is_production

    def test_invalid_integer(self, monkeypatch):
        monkeypatch.setenv("WITHDRAWALS_ORDER_CAPACITY", "lots")
        with pytest.raises(RuntimeError):
            Settings.from_env()


class TestLogging:
    def test_production_renders_json(self, capsys):
        configure_logging(Settings(environment="production", log_level="INFO"))
        try:
            structlog.get_logger("withdrawals.test").info("withdraw.committed", order_ids=["01A"])
            line = capsys.readouterr().out.strip().splitlines()[-1]
            event = json.loads(line)
            assert event["event"] == "withdraw.committed"
            assert event["order_ids"] == ["01A"]
            assert event["level"] == "info"
        finally:
            structlog.reset_defaults()
            logging.getLogger().handlers = []
