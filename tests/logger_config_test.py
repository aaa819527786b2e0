import io
import logging

import pytest
from pydantic import ValidationError

from ormtour import DatabaseConfig, get_logger, setup_logger
from ormtour.config import DEFAULT_DATABASE_URL
from ormtour.logger import HumanFormatter, resolve_level


class TestLogger:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("off", logging.CRITICAL + 10),
            ("fatal", logging.CRITICAL),
            ("error", logging.ERROR),
            ("warn", logging.WARNING),
            ("INFO", logging.INFO),
            ("debug", logging.DEBUG),
            ("warning", logging.WARNING),
            (logging.ERROR, logging.ERROR),
        ],
    )
    def test_resolve_level(self, name, expected):
        assert resolve_level(name) == expected

    def test_unknown_level(self):
        with pytest.raises(ValueError, match="Unknown log level"):
            resolve_level("chatty")

    def test_setup_replaces_handler(self):
        first, second = io.StringIO(), io.StringIO()
        setup_logger(first, "info")
        logger = setup_logger(second, "info")

        get_logger("repository").info("Saved Zoo 1")

        assert len(logger.handlers) == 1
        assert first.getvalue() == ""
        assert "[INFO]  ormtour.repository: Saved Zoo 1" in second.getvalue()

    def test_level_filters_records(self):
        stream = io.StringIO()
        setup_logger(stream, "warn")

        get_logger("sql").debug("SELECT 1")
        get_logger("repository").warning("Zoo not saved")

        assert "SELECT 1" not in stream.getvalue()
        assert "[WARN]" in stream.getvalue()

    def test_off_silences_everything(self):
        stream = io.StringIO()
        setup_logger(stream, "off")

        get_logger("db_context").critical("unreachable")

        assert stream.getvalue() == ""

    def test_logger_names(self):
        assert get_logger("sql").name == "ormtour.sql"
        assert get_logger("ormtour.sql").name == "ormtour.sql"

    def test_colored_format(self):
        record = logging.LogRecord("ormtour.sql", logging.ERROR, __file__, 1, "boom", None, None)

        assert HumanFormatter(use_color=True).format(record).startswith("\033[91m")
        assert "\033[" not in HumanFormatter().format(record)


class TestDatabaseConfig:
    def test_defaults(self, monkeypatch):
        for name in ("DATABASE_URL", "ORMTOUR_POOL_MIN", "ORMTOUR_POOL_MAX", "ORMTOUR_LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)

        config = DatabaseConfig.from_env()

        assert config.url == DEFAULT_DATABASE_URL
        assert config.pool_options() == {"min_size": 1, "max_size": 10}
        assert config.log_level == "debug"

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "postgresql://zoo@db/zoos")
        monkeypatch.setenv("ORMTOUR_POOL_MIN", "2")
        monkeypatch.setenv("ORMTOUR_POOL_MAX", "4")
        monkeypatch.setenv("ORMTOUR_LOG_LEVEL", "WARN")

        config = DatabaseConfig.from_env()

        assert config.url == "postgresql://zoo@db/zoos"
        assert config.pool_options() == {"min_size": 2, "max_size": 4}
        assert config.log_level == "warn"

    def test_pool_size_is_validated(self):
        with pytest.raises(ValidationError):
            DatabaseConfig(max_size=0)
