"""Settings loading from the environment and an optional YAML tuning file."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import find_dotenv, load_dotenv

from geomigrate.common.constants import (
    DEFAULT_CONNECT_TIMEOUT_MS,
    DEFAULT_DELAY_SECONDS,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_PAGE_SIZE,
    DEFAULT_TIMEOUT_SECONDS,
    EXIT_SUCCESS,
    GEOCODE_BASE_URL,
    REQUIRED_ENV_VARS,
)
from geomigrate.common.errors import ConfigError
from geomigrate.common.models import UPSERT_KEY_FIELDS
from geomigrate.common.schema import require_non_negative, require_positive, validate_tuning_config

DEFAULT_TUNING: dict[str, dict[str, Any]] = {
    "pagination": {"page_size": DEFAULT_PAGE_SIZE},
    "geocoding": {
        "base_url": GEOCODE_BASE_URL,
        "timeout_seconds": DEFAULT_TIMEOUT_SECONDS,
        "max_attempts": DEFAULT_MAX_ATTEMPTS,
        "delay_seconds": DEFAULT_DELAY_SECONDS,
    },
    "store": {"connect_timeout_ms": DEFAULT_CONNECT_TIMEOUT_MS},
    "writer": {"upsert_key": None},
    "run": {"failure_exit_code": EXIT_SUCCESS},
}


@dataclass(frozen=True)
class Settings:
    mongo_uri: str
    database_name: str
    source_collection: str
    target_collection: str
    api_key: str
    page_size: int = DEFAULT_PAGE_SIZE
    geocode_base_url: str = GEOCODE_BASE_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    delay_seconds: float = DEFAULT_DELAY_SECONDS
    connect_timeout_ms: int = DEFAULT_CONNECT_TIMEOUT_MS
    upsert_key: str | None = None
    failure_exit_code: int = EXIT_SUCCESS


def _deep_merge(base: Any, overlay: Any) -> Any:
    if isinstance(base, dict) and isinstance(overlay, dict):
        merged = dict(base)
        for key, value in overlay.items():
            if key in merged:
                merged[key] = _deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged
    return overlay


def load_tuning(config_path: Path | None) -> dict[str, dict[str, Any]]:
    if config_path is None:
        return DEFAULT_TUNING
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")
    try:
        with config_path.open("r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Config file {config_path} is not valid YAML: {exc}") from exc
    overlay = validate_tuning_config(raw or {})
    return _deep_merge(DEFAULT_TUNING, overlay)


def _required_env(env: Mapping[str, str]) -> dict[str, str]:
    missing = [name for name in REQUIRED_ENV_VARS if not env.get(name)]
    if missing:
        raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")
    return {name: env[name] for name in REQUIRED_ENV_VARS}


def _coerce(value: Any, kind: type, ctx: str) -> Any:
    try:
        return kind(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid value for {ctx}: {value!r}") from exc


def load_settings(
    env: Mapping[str, str] | None = None,
    *,
    config_path: Path | None = None,
    env_file: Path | None = None,
) -> Settings:
    """Build run settings.

    When ``env`` is omitted the process environment is used, after loading
    ``env_file`` (or a ``.env`` in the working directory) without overriding
    variables that are already set.
    """

    if env is None:
        load_dotenv(dotenv_path=env_file or find_dotenv(usecwd=True), override=False)
        env = os.environ
    required = _required_env(env)
    tuning = load_tuning(config_path)

    pagination = tuning["pagination"]
    geocoding = tuning["geocoding"]
    page_size = _coerce(pagination["page_size"], int, "pagination.page_size")
    timeout_seconds = _coerce(geocoding["timeout_seconds"], float, "geocoding.timeout_seconds")
    max_attempts = _coerce(geocoding["max_attempts"], int, "geocoding.max_attempts")
    delay_seconds = _coerce(geocoding["delay_seconds"], float, "geocoding.delay_seconds")
    connect_timeout_ms = _coerce(tuning["store"]["connect_timeout_ms"], int, "store.connect_timeout_ms")
    failure_exit_code = _coerce(tuning["run"]["failure_exit_code"], int, "run.failure_exit_code")

    require_positive(page_size, "pagination.page_size")
    require_positive(timeout_seconds, "geocoding.timeout_seconds")
    require_positive(max_attempts, "geocoding.max_attempts")
    require_non_negative(delay_seconds, "geocoding.delay_seconds")
    require_positive(connect_timeout_ms, "store.connect_timeout_ms")

    upsert_key = tuning["writer"]["upsert_key"]
    if upsert_key is not None:
        upsert_key = str(upsert_key)
        if upsert_key not in UPSERT_KEY_FIELDS:
            raise ConfigError(
                f"writer.upsert_key must be one of {', '.join(UPSERT_KEY_FIELDS)}, got {upsert_key!r}"
            )

    return Settings(
        mongo_uri=required["MONGO_URI"],
        database_name=required["DATABASE_NAME"],
        source_collection=required["SOURCE_COLLECTION_NAME"],
        target_collection=required["TARGET_COLLECTION_NAME"],
        api_key=required["GOOGLE_MAPS_API_KEY"],
        page_size=page_size,
        geocode_base_url=str(geocoding["base_url"]),
        timeout_seconds=timeout_seconds,
        max_attempts=max_attempts,
        delay_seconds=delay_seconds,
        connect_timeout_ms=connect_timeout_ms,
        upsert_key=upsert_key,
        failure_exit_code=failure_exit_code,
    )
