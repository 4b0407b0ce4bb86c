import logging

import pytest
from checkout.utils.logging import configure_logging, current_env, get_log_level


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


def test_level_follows_environment(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    monkeypatch.setenv("PROTEAN_ENV", "production")

    assert current_env() == "production"
    assert get_log_level() == "INFO"


def test_log_level_override(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "error")

    assert get_log_level() == "ERROR"


def test_writes_rotating_files(tmp_path, restore_root_logger):
    configure_logging(level="INFO", log_dir=str(tmp_path))

    logging.getLogger("checkout.test").error("boom")

    assert (tmp_path / "checkout.log").exists()
    assert (tmp_path / "checkout_error.log").exists()
    assert logging.getLogger("protean").level == logging.WARNING
