"""Centralized settings for billshare.

Values are resolved in three layers: built-in defaults, then an optional TOML
file named by ``BILLSHARE_CONFIG``, then individual environment variables.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

SUPPORTED_LANGUAGES = ("en", "it")


@dataclass
class Settings:
    """Runtime configuration for one billshare process."""

    # --- Extraction service ---
    extraction_url: str = "http://localhost:8001"
    extraction_timeout: float = 60.0

    # --- Presentation ---
    language: str = "en"
    currency_symbol: str = "€"

    # --- Random assignment animation (seconds) ---
    random_interval: float = 0.1
    random_duration: float = 2.0
    random_hold: float = 0.5

    # --- Extraction throttling ---
    max_extractions_per_session: int = 5
    min_extraction_interval: float = 30.0
    lockout_duration: float = 300.0
    strike_limit: int = 3

    transient_error_seconds: float = 5.0

    def __post_init__(self) -> None:
        self.extraction_url = self.extraction_url.rstrip("/")
        if self.language not in SUPPORTED_LANGUAGES:
            raise ValueError(f"language: unsupported value {self.language!r}")


_ENV_KEYS: dict[str, str] = {
    "extraction_url": "BILLSHARE_EXTRACTION_URL",
    "extraction_timeout": "BILLSHARE_EXTRACTION_TIMEOUT",
    "language": "BILLSHARE_LANGUAGE",
    "currency_symbol": "BILLSHARE_CURRENCY_SYMBOL",
    "random_interval": "BILLSHARE_RANDOM_INTERVAL",
    "random_duration": "BILLSHARE_RANDOM_DURATION",
    "random_hold": "BILLSHARE_RANDOM_HOLD",
    "max_extractions_per_session": "BILLSHARE_MAX_EXTRACTIONS",
    "min_extraction_interval": "BILLSHARE_MIN_EXTRACTION_INTERVAL",
    "lockout_duration": "BILLSHARE_LOCKOUT_SECONDS",
    "strike_limit": "BILLSHARE_STRIKE_LIMIT",
    "transient_error_seconds": "BILLSHARE_TRANSIENT_ERROR_SECONDS",
}


def _converter(annotation: Any) -> Callable[[Any], Any]:
    # Annotations are strings under `from __future__ import annotations`
    name = annotation if isinstance(annotation, str) else getattr(annotation, "__name__", "str")
    return {"int": int, "float": float}.get(name, str)


def _coerce(key: str, raw: Any, convert: Callable[[Any], Any]) -> Any:
    try:
        return convert(raw)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{key}: invalid value {raw!r}") from e


def _load_toml(config_path: Path) -> dict[str, Any]:
    """Load the ``[billshare]`` table (or the top level) of a TOML file."""
    if not config_path.exists():
        raise FileNotFoundError(f"Settings file not found: {config_path}")
    with config_path.open("rb") as f:
        data = tomllib.load(f)
    table = data.get("billshare", data)
    if not isinstance(table, dict):
        raise ValueError(f"Invalid [billshare] table in {config_path}")
    return table


def load_settings(
    environ: Mapping[str, str] | None = None,
    config_path: Path | None = None,
) -> Settings:
    """Build settings from defaults, an optional TOML file and the environment.

    Args:
        environ: Environment mapping. Defaults to ``os.environ``.
        config_path: TOML file. Defaults to ``$BILLSHARE_CONFIG`` when set.

    Returns:
        A fully validated Settings instance.
    """
    if environ is None:
        environ = os.environ
    if config_path is None and environ.get("BILLSHARE_CONFIG"):
        config_path = Path(environ["BILLSHARE_CONFIG"]).expanduser()

    converters = {f.name: _converter(f.type) for f in fields(Settings)}
    values: dict[str, Any] = {}

    if config_path is not None:
        for key, raw in _load_toml(config_path).items():
            if key not in converters:
                raise ValueError(f"Unknown settings key: {key}")
            values[key] = _coerce(key, raw, converters[key])

    for key, env_name in _ENV_KEYS.items():
        raw_env = environ.get(env_name)
        if raw_env is None or raw_env.strip() == "":
            continue
        values[key] = _coerce(key, raw_env.strip(), converters[key])

    return Settings(**values)


# Module-level singleton
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the singleton Settings instance."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next get_settings() reloads them."""
    global _settings
    _settings = None
