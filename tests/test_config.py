"""Tests for configuration loading."""

import pytest

from orchestrator.common.config import (
    DEFAULT_DATA_INDEX_URL,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SONATAFLOW_URL,
    get_settings,
)

ENV_VARS = (
    "ORCHESTRATOR_SONATAFLOW_URL",
    "ORCHESTRATOR_DATA_INDEX_URL",
    "ORCHESTRATOR_REQUEST_TIMEOUT",
    "ORCHESTRATOR_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(tmp_path, monkeypatch):
    """Run every test in an empty directory without ORCHESTRATOR_* variables."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_defaults():
    settings = get_settings()

    assert settings["sonataflow_url"] == DEFAULT_SONATAFLOW_URL
    assert settings["data_index_url"] == DEFAULT_DATA_INDEX_URL
    assert settings["request_timeout"] == DEFAULT_REQUEST_TIMEOUT
    assert settings["log_level"] == "INFO"


def test_toml_file(clean_env):
    (clean_env / "orchestrator.toml").write_text(
        "[orchestrator]\n"
        'sonataflow_url = "http://engine:8080/"\n'
        'data_index_url = "http://index:8180/graphql"\n'
        "request_timeout = 5\n"
        'log_level = "debug"\n'
    )

    settings = get_settings()

    assert settings["sonataflow_url"] == "http://engine:8080"
    assert settings["data_index_url"] == "http://index:8180/graphql"
    assert settings["request_timeout"] == 5.0
    assert settings["log_level"] == "DEBUG"


def test_environment_overrides_file(clean_env, monkeypatch):
    (clean_env / "orchestrator.toml").write_text(
        '[orchestrator]\nsonataflow_url = "http://engine:8080"\n'
    )
    monkeypatch.setenv("ORCHESTRATOR_SONATAFLOW_URL", "http://other:9090")
    monkeypatch.setenv("ORCHESTRATOR_REQUEST_TIMEOUT", "2.5")

    settings = get_settings()

    assert settings["sonataflow_url"] == "http://other:9090"
    assert settings["request_timeout"] == 2.5


@pytest.mark.parametrize("timeout", ["soon", "0", "-1"])
def test_invalid_timeout(monkeypatch, timeout):
    monkeypatch.setenv("ORCHESTRATOR_REQUEST_TIMEOUT", timeout)

    with pytest.raises(ValueError, match="request_timeout"):
        get_settings()


def test_invalid_log_level(monkeypatch):
    monkeypatch.setenv("ORCHESTRATOR_LOG_LEVEL", "LOUD")

    with pytest.raises(ValueError, match="log_level"):
        get_settings()
