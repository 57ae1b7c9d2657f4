"""
Configuration Loader (``licensing_config.loader``).

Responsibility
--------------
Loads the YAML settings file and parses it into an ``EngineSettings``
instance. Callers use ``licensing_config.get_settings()``; this module is
the implementation behind it.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` with a descriptive message; there are
  no silent defaults for malformed values.
* Decimal settings are parsed from their string form, never via float.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Wrong types or out-of-range values  -> ``ValueError``.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from licensing_config.settings import EngineSettings


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


def parse_decimal(value: Any, name: str) -> Decimal:
    """
    Parse an exact decimal from YAML.

    Floats are rejected: quote the value in YAML ("0.05").
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise ValueError(f"{name} must be a quoted decimal string, got {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"{name} is not a decimal: {value!r}") from e


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"'{name}' must be a mapping")
    return section


def parse_settings(
    data: dict[str, Any],
    database_url: str | None = None,
) -> EngineSettings:
    """
    Build EngineSettings from a parsed YAML dict.

    ``database_url`` (usually from the environment) overrides database.url.
    """
    database = _section(data, "database")
    pricing = _section(data, "pricing")
    contracts = _section(data, "contracts")
    logging_section = _section(data, "logging")

    kwargs: dict[str, Any] = {
        "database_url": database_url or database.get("url"),
    }
    for key in ("echo", "pool_size", "max_overflow", "pool_timeout", "pool_recycle"):
        if key in database:
            kwargs[key] = database[key]
    if "recurring_client_bonus" in pricing:
        kwargs["recurring_client_bonus"] = parse_decimal(
            pricing["recurring_client_bonus"], "pricing.recurring_client_bonus"
        )
    if "max_years_supported" in contracts:
        kwargs["max_years_supported"] = contracts["max_years_supported"]
    if "level" in logging_section:
        kwargs["log_level"] = str(logging_section["level"])

    if not isinstance(kwargs.get("echo", False), bool):
        raise ValueError("database.echo must be true or false")

    return EngineSettings(**kwargs)


def load_settings(path: Path, database_url: str | None = None) -> EngineSettings:
    """Load and parse a settings file."""
    return parse_settings(load_yaml_file(path), database_url=database_url)
