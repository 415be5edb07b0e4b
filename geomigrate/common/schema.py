"""Minimal strict schema checks for the YAML tuning file."""

from __future__ import annotations

from geomigrate.common.errors import ConfigError

TUNING_SECTIONS: dict[str, set[str]] = {
    "pagination": {"page_size"},
    "geocoding": {"base_url", "timeout_seconds", "max_attempts", "delay_seconds"},
    "store": {"connect_timeout_ms"},
    "writer": {"upsert_key"},
    "run": {"failure_exit_code"},
}


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str) -> None:
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def validate_tuning_config(cfg: dict) -> dict:
    if not isinstance(cfg, dict):
        raise ConfigError("Tuning config must be a mapping")
    _assert_no_unknown_keys(cfg, set(TUNING_SECTIONS), "tuning config")
    normalised: dict = {}
    for section, known in TUNING_SECTIONS.items():
        if section not in cfg:
            continue
        # A bare "section:" line loads as None.
        value = cfg[section] if cfg[section] is not None else {}
        if not isinstance(value, dict):
            raise ConfigError(f"Section {section} must be a mapping")
        _assert_no_unknown_keys(value, known, section)
        normalised[section] = value
    return normalised


def require_positive(value: float, ctx: str) -> None:
    if value <= 0:
        raise ConfigError(f"{ctx} must be positive, got {value}")


def require_non_negative(value: float, ctx: str) -> None:
    if value < 0:
        raise ConfigError(f"{ctx} must not be negative, got {value}")
