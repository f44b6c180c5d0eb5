"""Tests for environment-based configuration."""

from pathlib import Path

import pytest

from refsession.utils.config import Config


ENV_NAMES = [
    "VM_USERNAME",
    "VM_PASSWORD",
    "BASE_URL",
    "LOGIN_PATH",
    "AUTH_PATH",
    "LOGOUT_PATH",
    "TRANSPORT",
    "HEADLESS_MODE",
    "REQUEST_TIMEOUT_SECONDS",
    "LOGIN_TIMEOUT_SECONDS",
    "COOKIE_DELAY_SECONDS",
    "LOG_LEVEL",
    "LOG_DIR",
    "SESSION_FILE",
]


@pytest.fixture
def env(monkeypatch, tmp_path):
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("VM_USERNAME", "referee")
    monkeypatch.setenv("VM_PASSWORD", "s3cret")
    return monkeypatch


@pytest.fixture
def config(env, tmp_path):
    empty_env_file = tmp_path / ".env"
    empty_env_file.write_text("")
    return Config(env_file=str(empty_env_file))


class TestDefaults:

    def test_endpoints(self, config):
        assert config.base_url == "https://volleymanager.volleyball.ch"
        assert config.login_page_url == "https://volleymanager.volleyball.ch/login"
        assert config.auth_url == (
            "https://volleymanager.volleyball.ch/sportmanager.security/authentication/authenticate"
        )
        assert config.logout_url == "https://volleymanager.volleyball.ch/logout"

    def test_settings(self, config):
        assert config.transport == "requests"
        assert config.headless_mode is True
        assert config.request_timeout_seconds == 30
        assert config.login_timeout_seconds == 60
        assert config.cookie_delay_seconds == 0.1
        assert config.log_level == "INFO"
        assert config.log_dir is None
        assert config.session_file == Path("./volleymanager_session.json")

    def test_validate(self, config):
        assert config.validate() is True


class TestOverrides:

    def test_proxy_base_url_with_prefix(self, env, config):
        env.setenv("BASE_URL", "https://proxy.example.app/api/")

        assert config.auth_url == (
            "https://proxy.example.app/api/sportmanager.security/authentication/authenticate"
        )
        assert config.login_page_url == "https://proxy.example.app/api/login"

    def test_custom_paths(self, env, config):
        env.setenv("BASE_URL", "https://volleymanager.example.ch")
        env.setenv("LOGOUT_PATH", "/sportmanager.security/authentication/logout")

        assert config.logout_url == "https://volleymanager.example.ch/sportmanager.security/authentication/logout"

    @pytest.mark.parametrize("value,expected", [("false", False), ("0", False), ("TRUE", True), ("yes", True)])
    def test_headless_mode(self, env, config, value, expected):
        env.setenv("HEADLESS_MODE", value)

        assert config.headless_mode is expected

    def test_transport_is_lowercased(self, env, config):
        env.setenv("TRANSPORT", "Browser")

        assert config.transport == "browser"


class TestValidation:

    @pytest.mark.parametrize("name", ["VM_USERNAME", "VM_PASSWORD"])
    def test_missing_credentials(self, env, config, name):
        env.delenv(name)

        with pytest.raises(ValueError, match=name):
            config.validate()

    def test_unknown_transport(self, env, config):
        env.setenv("TRANSPORT", "curl")

        with pytest.raises(ValueError, match="TRANSPORT"):
            config.validate()

    def test_non_positive_timeout(self, env, config):
        env.setenv("LOGIN_TIMEOUT_SECONDS", "0")

        with pytest.raises(ValueError, match="LOGIN_TIMEOUT_SECONDS"):
            config.validate()
