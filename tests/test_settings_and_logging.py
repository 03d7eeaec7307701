"""Tests for configuration and structured logging."""

import json
import logging

import pytest
from pydantic import ValidationError as SettingsError

from config.database import DatabaseSettings
from config.settings import CelerySettings, RedisSettings, Settings
from services.logging_config import (
    JsonFormatter,
    configure_logging,
    get_logger,
    log_performance,
    request_id_var,
)


class TestSettings:
    """Test defaults and environment overrides."""

    def test_defaults(self):
        settings = Settings()

        assert settings.auto_lock_day == 26
        assert settings.max_tasks_per_month == 4
        assert settings.month_create_max_retries == 3
        assert settings.auto_lock_actor == "SYSTEM_CRON"

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("APP_AUTO_LOCK_DAY", "20")
        monkeypatch.setenv("APP_ADMIN_REPORT_EMAIL", "ops@practice.example.com")

        settings = Settings()

        assert settings.auto_lock_day == 20
        assert settings.admin_report_email == "ops@practice.example.com"

    def test_auto_lock_day_bounds(self):
        with pytest.raises(SettingsError):
            Settings(auto_lock_day=31)

    def test_year_window_must_be_ordered(self):
        with pytest.raises(SettingsError):
            Settings(min_assignment_year=2030, max_assignment_year=2025)

    def test_production_flag(self):
        assert Settings(environment="staging").is_production is True
        assert Settings(environment="test").is_production is False


class TestInfraSettings:

    def test_redis_url(self):
        assert RedisSettings(host="cache", port=6380, db=3).url == "redis://cache:6380/3"
        assert RedisSettings(password="pw", ssl=True).url == "rediss://:pw@localhost:6379/0"

    def test_celery_defaults(self):
        celery = CelerySettings()
        assert celery.task_acks_late is True
        assert celery.accept_content == ["json"]

    def test_sqlite_memory_url(self):
        assert DatabaseSettings(sqlite_path=":memory:").sync_url == "sqlite://"

    def test_postgres_url(self):
        db = DatabaseSettings(driver="postgresql+psycopg2", host="db", user="u", password="p", name="practice")

        assert db.is_postgres is True
        assert db.sync_url == "postgresql+psycopg2://u:p@db:5432/practice"


class TestLogging:
    """Test formatters and helpers."""

    def _record(self, message="hello"):
        return logging.LogRecord("practice.test", logging.INFO, __file__, 10, message, None, None)

    def test_json_formatter_includes_request_id(self):
        token = request_id_var.set("req_abc")
        try:
            data = json.loads(JsonFormatter().format(self._record()))
        finally:
            request_id_var.reset(token)

        assert data["message"] == "hello"
        assert data["level"] == "INFO"
        assert data["request_id"] == "req_abc"

    def test_json_formatter_extra_data(self):
        record = self._record()
        record.extra_data = {"client_id": "C1"}

        assert json.loads(JsonFormatter().format(record))["client_id"] == "C1"

    def test_context_logger_carries_extra(self, caplog):
        logger = get_logger("practice.context", client_id="C1")

        with caplog.at_level(logging.INFO, logger="practice.context"):
            logger.info("loaded")

        assert caplog.records[-1].extra_data == {"client_id": "C1"}

    def test_log_performance(self, caplog):
        @log_performance("sample_op")
        def sample():
            return 42

        with caplog.at_level(logging.INFO):
            assert sample() == 42

        assert any(r.getMessage() == "sample_op completed" for r in caplog.records)

    def test_log_performance_reraises(self):
        @log_performance()
        def broken():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            broken()

    def test_configure_logging_writes_json_file(self, tmp_path):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        log_file = tmp_path / "logs" / "engine.log"
        try:
            configure_logging(level="INFO", log_file=log_file)
            logging.getLogger("practice.file").info("written")
            for handler in root.handlers:
                handler.flush()
        finally:
            for handler in root.handlers:
                if handler not in saved_handlers:
                    handler.close()
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

        line = log_file.read_text().strip().splitlines()[-1]
        assert json.loads(line)["message"] == "written"
