"""Tests for component-based logging setup."""

import logging

import pytest

from refsession.utils.logger import ComponentFilter, SensitiveDataFilter, setup_logging


def _record(name):
    return logging.LogRecord(name, logging.INFO, __file__, 1, "message", None, None)


@pytest.mark.parametrize("name,component", [
    ("refsession.auth.authenticator", "auth"),
    ("refsession.auth.submitter", "auth"),
    ("refsession.api.transport", "api"),
    ("refsession.api.browser_transport", "api"),
    ("main", "main"),
    ("__main__", "main"),
])
def test_component_filter(name, component):
    assert ComponentFilter(component).filter(_record(name))
    others = {"auth", "api", "main"} - {component}
    assert not any(ComponentFilter(other).filter(_record(name)) for other in others)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_writes_component_files(tmp_path, restore_root_logger):
    setup_logging(log_level="DEBUG", log_to_console=False, log_dir=tmp_path)

    logging.getLogger("refsession.auth.authenticator").info("auth line")
    logging.getLogger("refsession.api.transport").info("api line")
    for handler in logging.getLogger().handlers:
        handler.flush()

    auth_log = (tmp_path / "auth.log").read_text(encoding="utf-8")
    api_log = (tmp_path / "api.log").read_text(encoding="utf-8")
    assert "auth line" in auth_log
    assert "api line" not in auth_log
    assert "api line" in api_log


@pytest.mark.parametrize("message,secret", [
    ('Response preview: <html lang="de" data-csrf-token="abc123secret">', "abc123secret"),
    ("<html data-session-token='tok-987'>", "tok-987"),
    ("headers={'X-Session-Token': 'proxy-42'}", "proxy-42"),
])
def test_sensitive_data_filter_masks_tokens(message, secret):
    record = _record("refsession.auth.outcome")
    record.msg = message

    assert SensitiveDataFilter().filter(record) is True
    assert secret not in record.getMessage()
    assert "***" in record.getMessage()


def test_sensitive_data_filter_keeps_other_messages():
    record = _record("refsession.auth.authenticator")
    record.msg = "Step %d: Loading login page"
    record.args = (1,)

    SensitiveDataFilter().filter(record)

    assert record.getMessage() == "Step 1: Loading login page"


def test_setup_logging_redacts_file_output(tmp_path, restore_root_logger):
    setup_logging(log_level="DEBUG", log_to_console=False, log_dir=tmp_path)

    logging.getLogger("refsession.auth.outcome").debug('Response preview: <html data-csrf-token="abc123secret">')
    for handler in logging.getLogger().handlers:
        handler.flush()

    auth_log = (tmp_path / "auth.log").read_text(encoding="utf-8")
    assert "abc123secret" not in auth_log
    assert 'data-csrf-token="***"' in auth_log
