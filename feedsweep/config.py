# feedsweep/config.py
"""Runtime settings, read from environment variables (and .env when present)."""
from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError


DEFAULT_DB_PATH = "./data/feedsweep.db"
DEFAULT_USER_AGENT = "feedsweep/0.1 (+https://github.com/feedsweep)"


class ConfigError(ValueError):
    """Raised when an environment variable holds an unusable value."""


class Settings(BaseModel):
    db_path: str = DEFAULT_DB_PATH
    fetch_timeout_s: float = Field(default=30.0, gt=0)
    pacing_delay_s: float = Field(default=2.0, ge=0)
    max_workers: int = Field(default=1, ge=1)
    user_agent: str = DEFAULT_USER_AGENT
    log_level: str = "INFO"


# env var -> Settings field
ENV_VARS = {
    "FEEDSWEEP_DB_PATH": "db_path",
    "FEEDSWEEP_FETCH_TIMEOUT_S": "fetch_timeout_s",
    "FEEDSWEEP_PACING_DELAY_S": "pacing_delay_s",
    "FEEDSWEEP_MAX_WORKERS": "max_workers",
    "FEEDSWEEP_USER_AGENT": "user_agent",
    "FEEDSWEEP_LOG_LEVEL": "log_level",
}


def load_settings(*, dotenv: bool = True, **overrides) -> Settings:
    """
    Build Settings from the environment.

    Keyword overrides win over env vars (CLI flags use this). None overrides are ignored.
    """
    if dotenv:
        load_dotenv()

    values: dict = {}
    for env_name, field in ENV_VARS.items():
        raw = os.environ.get(env_name)
        if raw is not None and raw != "":
            values[field] = raw

    values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return Settings(**values)
    except ValidationError as exc:
        raise ConfigError(f"invalid configuration: {exc}") from exc
