"""
Central configuration loader for tiersource.

Reads ``config/config.yaml`` and ``.env``, merges environment-variable
overrides (``TIERSOURCE_`` prefix), and exposes a typed :class:`Settings`
singleton via :func:`get_settings`.
"""

import logging
import math
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from tiersource.diagnostics import SINKS
from tiersource.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Resolve project root (directory containing ``config/``)
# ---------------------------------------------------------------------------

_THIS_DIR = Path(__file__).resolve().parent          # tiersource/
_PROJECT_ROOT = _THIS_DIR.parent                     # repo root


def _project_path(*parts: str) -> Path:
    """Build an absolute path relative to the project root."""
    return _PROJECT_ROOT.joinpath(*parts)


# ---------------------------------------------------------------------------
# Nested settings dataclasses
# ---------------------------------------------------------------------------


@dataclass
class ResolverSettings:
    network_payload_prefix: str = "Server Response #"
    stale_after_seconds: Optional[float] = None


@dataclass
class DiagnosticsSettings:
    sink: str = "stdout"


@dataclass
class LoggingSettings:
    level: str = "INFO"
    format: str = "%(levelname)s %(name)s: %(message)s"


@dataclass
class Settings:
    """Top-level settings container."""
    resolver: ResolverSettings = field(default_factory=ResolverSettings)
    diagnostics: DiagnosticsSettings = field(default_factory=DiagnosticsSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)


# ---------------------------------------------------------------------------
# YAML loader
# ---------------------------------------------------------------------------

def _load_yaml(path: Path) -> Dict[str, Any]:
    """Read and parse a YAML file.  Returns ``{}`` if the file is missing."""
    if not path.exists():
        logger.warning("Config file not found: %s", path)
        return {}
    with open(path, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    return data if isinstance(data, dict) else {}


def _apply_dict(target: object, data: Dict[str, Any]) -> None:
    """Apply *data* values onto a dataclass instance, skipping unknown keys."""
    for key, value in data.items():
        if not hasattr(target, key):
            continue
        setattr(target, key, value)


# ---------------------------------------------------------------------------
# Env-var overrides  (TIERSOURCE_SECTION_KEY  e.g. TIERSOURCE_DIAGNOSTICS_SINK)
# ---------------------------------------------------------------------------

_SECTIONS = ["resolver", "diagnostics", "logging"]


def _env_overrides() -> Dict[str, Dict[str, str]]:
    """Collect ``TIERSOURCE_<SECTION>_<KEY>`` variables into per-section dicts.

    Values stay strings; :func:`validate_settings` parses the numeric ones.
    """
    overrides: Dict[str, Dict[str, str]] = {}
    for section_name in _SECTIONS:
        prefix = f"TIERSOURCE_{section_name.upper()}_"
        for env_key, env_val in os.environ.items():
            if env_key.startswith(prefix):
                key = env_key[len(prefix):].lower()
                overrides.setdefault(section_name, {})[key] = env_val
                logger.debug("Env override found: %s=%s", env_key, env_val)
    return overrides


MAX_STALE_AFTER_SECONDS = 100 * 365 * 86400.0


def _coerce_stale_after(value: Any) -> Optional[float]:
    """Normalise ``resolver.stale_after_seconds`` to a bounded float or ``None``.

    YAML reads forms such as ``1.0e12`` as strings, so strings are parsed
    here.  The upper bound keeps ``now + timedelta(seconds=value)`` inside
    the ``datetime`` range.

    Raises:
        ConfigurationError: If the value is not a finite number in
            ``(0, MAX_STALE_AFTER_SECONDS]``.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ConfigurationError(
            f"resolver.stale_after_seconds must be a number, got {value!r}"
        )
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(
            f"resolver.stale_after_seconds must be a number, got {value!r}"
        ) from None
    if not math.isfinite(seconds) or not 0 < seconds <= MAX_STALE_AFTER_SECONDS:
        raise ConfigurationError(
            "resolver.stale_after_seconds must be positive and at most "
            f"{MAX_STALE_AFTER_SECONDS:.0f}, got {value!r}"
        )
    return seconds


def validate_settings(settings: Settings) -> None:
    """Normalise and check values the resolver depends on, in place.

    Raises:
        ConfigurationError: If a value is out of range.
    """
    settings.resolver.stale_after_seconds = _coerce_stale_after(
        settings.resolver.stale_after_seconds
    )
    if settings.diagnostics.sink not in SINKS:
        raise ConfigurationError(
            f"diagnostics.sink must be one of {sorted(SINKS)}, "
            f"got {settings.diagnostics.sink!r}"
        )


def _build_settings(raw: Dict[str, Any]) -> Settings:
    """Layer defaults, YAML sections and env overrides, then validate."""
    settings = Settings()
    for layer in (raw, _env_overrides()):
        for section_name in _SECTIONS:
            section_data = layer.get(section_name)
            if isinstance(section_data, dict):
                _apply_dict(getattr(settings, section_name), section_data)
    validate_settings(settings)
    return settings


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------

_settings: Optional[Settings] = None
_lock = threading.Lock()


def get_settings(
    *,
    yaml_path: Optional[Path] = None,
    env_path: Optional[Path] = None,
    _force_reload: bool = False,
) -> Settings:
    """Return the application-wide :class:`Settings` singleton.

    On first call (or when ``_force_reload=True``) the function:

    1. Calls ``load_dotenv()`` to populate env vars from ``.env``.
    2. Reads ``config/config.yaml``.
    3. Applies ``TIERSOURCE_*`` environment-variable overrides.
    4. Validates the result.

    Args:
        yaml_path: Override the YAML config file path (testing).
        env_path: Override the ``.env`` file path (testing).
        _force_reload: Re-read everything even if already loaded.

    Returns:
        The global ``Settings`` instance.

    Raises:
        ConfigurationError: If a loaded value is out of range.
    """
    global _settings

    if _settings is not None and not _force_reload:
        return _settings

    with _lock:
        # Double-check after acquiring lock
        if _settings is not None and not _force_reload:
            return _settings

        dotenv_path = env_path or _project_path(".env")
        load_dotenv(dotenv_path, override=True)

        config_path = yaml_path or _project_path("config", "config.yaml")
        _settings = _build_settings(_load_yaml(config_path))
        logger.info("Settings loaded from %s", config_path)
        return _settings


def reset_settings() -> None:
    """Clear the cached singleton (for testing)."""
    global _settings
    with _lock:
        _settings = None
