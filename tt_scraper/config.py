from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import ValidationError

from .config_schema import ScraperConfig
from .errors import ConfigError


def load_config_mapping(path: str | Path) -> dict[str, Any]:
    """
    Read a YAML config file into a plain mapping without validating it.

    Raises ConfigError if the file is missing, unreadable, or not a mapping.
    """
    p = Path(path)

    if not p.exists():
        raise ConfigError(f"Config file not found: {p}")

    try:
        raw_text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to read config file: {p}") from e

    try:
        data = yaml.safe_load(raw_text)
    except Exception as e:  # PyYAML can raise multiple exception types
        raise ConfigError(f"Failed to parse YAML in {p}: {e}") from e

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise ConfigError(f"Top-level YAML in {p} must be a mapping/object")

    return data


def load_config(path: str | Path) -> ScraperConfig:
    """
    Load a YAML config file and validate it into a typed ScraperConfig.

    Raises ConfigError with a readable validation message on failure.
    """
    return build_config(load_config_mapping(path), source=str(path))


def build_config(
    base: Mapping[str, Any] | None = None,
    *,
    source: str = "<options>",
    **overrides: Any,
) -> ScraperConfig:
    """
    Merge keyword overrides (None values skipped) over a base mapping and validate.

    An unknown scrape type surfaces as UnsupportedTypeError, not ConfigError.
    """
    data: dict[str, Any] = dict(base or {})
    for key, value in overrides.items():
        if value is None:
            continue
        data[key] = value

    try:
        return ScraperConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(_format_pydantic_errors(e, source)) from e


def _format_pydantic_errors(err: ValidationError, source: str) -> str:
    lines: list[str] = [f"Invalid configuration in {source}:"]
    for item in err.errors():
        loc = ".".join(str(part) for part in item.get("loc", [])) or "<root>"
        msg = item.get("msg", "invalid value")
        lines.append(f"- {loc}: {msg}")
    return "\n".join(lines)
