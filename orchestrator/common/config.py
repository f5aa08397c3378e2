import os
import tomllib
from pathlib import Path
from typing import TypedDict

CONFIG_FILE = "orchestrator.toml"

# Top-level key under which a process instance stores its workflow data
WORKFLOW_DATA_KEY = "workflowdata"

DEFAULT_SONATAFLOW_URL = "http://localhost:8899"
DEFAULT_DATA_INDEX_URL = "http://localhost:8899/graphql"
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_LOG_LEVEL = "INFO"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class Settings(TypedDict):
    sonataflow_url: str
    data_index_url: str
    request_timeout: float
    log_level: str


def _load_config() -> dict:
    """Load configuration from orchestrator.toml if it exists."""
    config_path = Path.cwd() / CONFIG_FILE
    if config_path.exists():
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    return {}


def get_settings() -> Settings:
    """Build settings from orchestrator.toml, overridden by ORCHESTRATOR_* env vars."""
    section = _load_config().get("orchestrator", {})

    sonataflow_url = os.environ.get(
        "ORCHESTRATOR_SONATAFLOW_URL",
        section.get("sonataflow_url", DEFAULT_SONATAFLOW_URL),
    )
    data_index_url = os.environ.get(
        "ORCHESTRATOR_DATA_INDEX_URL",
        section.get("data_index_url", DEFAULT_DATA_INDEX_URL),
    )
    raw_timeout = os.environ.get(
        "ORCHESTRATOR_REQUEST_TIMEOUT",
        section.get("request_timeout", DEFAULT_REQUEST_TIMEOUT),
    )
    log_level = str(
        os.environ.get(
            "ORCHESTRATOR_LOG_LEVEL", section.get("log_level", DEFAULT_LOG_LEVEL)
        )
    ).upper()

    try:
        request_timeout = float(raw_timeout)
    except (TypeError, ValueError) as e:
        raise ValueError(
            f"Invalid request_timeout: {raw_timeout!r}. Must be a number of seconds"
        ) from e

    if request_timeout <= 0:
        raise ValueError(f"Invalid request_timeout: {request_timeout}. Must be > 0")

    if log_level not in LOG_LEVELS:
        raise ValueError(
            f"Invalid log_level: {log_level}. Must be one of {', '.join(LOG_LEVELS)}"
        )

    return Settings(
        sonataflow_url=str(sonataflow_url).rstrip("/"),
        data_index_url=str(data_index_url),
        request_timeout=request_timeout,
        log_level=log_level,
    )
