"""
licensing_config -- single public entrypoint for engine configuration.

Responsibility:
    Provides the ONLY way to obtain settings at runtime through
    ``get_settings()``. Other components receive an ``EngineSettings``
    instance; they never read files or environment variables themselves.

Environment:
    LICENSING_CONFIG  path of the YAML file (default: defaults.yaml here)
    DATABASE_URL      overrides database.url from the file

Failure modes:
    - ``FileNotFoundError`` -- LICENSING_CONFIG names a missing file.
    - ``ValueError`` -- a setting has the wrong type or is out of range.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from licensing_config.loader import load_settings
from licensing_config.settings import EngineSettings

_logger = logging.getLogger("licensing_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_settings(
    config_path: Path | str | None = None,
    environ: dict[str, str] | None = None,
) -> EngineSettings:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: Explicit settings file. Falls back to LICENSING_CONFIG,
            then to the bundled defaults.
        environ: Environment mapping (defaults to ``os.environ``).
    """
    env = os.environ if environ is None else environ
    path = Path(config_path or env.get("LICENSING_CONFIG") or DEFAULT_CONFIG_PATH)
    settings = load_settings(path, database_url=env.get("DATABASE_URL"))

    _logger.info(
        "LICENSING_CONFIG_LOADED",
        extra={
            "config_path": str(path),
            "dialect": settings.database_url.split(":", 1)[0],
            "max_years_supported": settings.max_years_supported,
            "recurring_client_bonus": str(settings.recurring_client_bonus),
        },
    )
    return settings


__all__ = ["EngineSettings", "get_settings", "DEFAULT_CONFIG_PATH"]
