# === NAVMAP v1 ===
# {
#   "module": "AcodeKit.PluginScaffold.settings",
#   "purpose": "Define configuration models, environment overrides, and YAML loading for the scaffolder",
#   "sections": [
#     {"id": "paths", "name": "Data Directories", "anchor": "PTH", "kind": "constants"},
#     {"id": "models", "name": "Configuration Models", "anchor": "MOD", "kind": "pydantic"},
#     {"id": "env", "name": "Environment Overrides", "anchor": "ENV", "kind": "settings"},
#     {"id": "loading", "name": "Loading & Caching", "anchor": "LOD", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""Configuration models for the plugin scaffolder.

Settings are grouped by concern (HTTP transport, archive extraction, logging)
and aggregated into :class:`ScaffoldConfiguration`.  Values come from model
defaults, an optional YAML file, and ``ACODE_KIT_*`` environment variables, in
that order of precedence.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import threading
from pathlib import Path
from typing import Dict, List, Mapping, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import UserConfigError

__all__ = [
    "DATA_ROOT",
    "LOG_DIR",
    "HttpConfiguration",
    "ExtractionConfiguration",
    "LoggingConfiguration",
    "ScaffoldConfiguration",
    "EnvironmentOverrides",
    "get_default_config",
    "invalidate_default_config_cache",
    "load_raw_yaml",
    "load_config",
]

# --- Data directories ----------------------------------------------------------

DATA_ROOT = Path(os.environ.get("ACODE_KIT_HOME") or Path.home() / ".data") / "acode-plugin-kit"
LOG_DIR = DATA_ROOT / "logs"

# --- Configuration models ------------------------------------------------------


class HttpConfiguration(BaseModel):
    """HTTP transport settings for the template download."""

    timeout_sec: float = Field(default=60.0, gt=0.0, le=600.0)
    connect_timeout_sec: float = Field(default=10.0, gt=0.0, le=120.0)
    max_redirects: int = Field(default=10, ge=0, le=30)
    http2_enabled: bool = False
    user_agent: str = Field(
        default="acode-plugin-kit/1.0 (+https://github.com/Acode-Foundation)",
        min_length=1,
    )

    model_config = {"validate_assignment": True, "extra": "forbid"}

    def request_headers(self, *, correlation_id: Optional[str] = None) -> Dict[str, str]:
        """Return headers attached to every outbound request."""

        headers = {"User-Agent": self.user_agent, "Accept": "application/zip, */*"}
        if correlation_id:
            headers["X-Request-ID"] = correlation_id
        return headers


class ExtractionConfiguration(BaseModel):
    """Archive extraction budgets and staging behaviour."""

    staged_extraction: bool = Field(
        default=True,
        description="Extract into a temporary sibling directory and rename it into place on success",
    )
    max_entries: int = Field(default=20_000, ge=1, le=1_000_000)
    max_uncompressed_bytes: int = Field(
        default=512 * 1024 * 1024,
        ge=1,
        description="Upper bound on the sum of declared uncompressed entry sizes",
    )

    model_config = {"validate_assignment": True, "extra": "forbid"}


class LoggingConfiguration(BaseModel):
    """Logging-related configuration."""

    level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    max_log_size_mb: int = Field(default=10, gt=0)
    backup_count: int = Field(default=3, ge=0, le=50)
    log_dir: Optional[Path] = None

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        """Normalise logging levels and ensure they match the supported set."""

        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR"}
        upper = value.upper()
        if upper not in valid_levels:
            raise ValueError(f"level must be one of {sorted(valid_levels)}")
        return upper

    model_config = {"validate_assignment": True, "extra": "forbid"}


class ScaffoldConfiguration(BaseModel):
    """Top-level configuration aggregating every section."""

    http: HttpConfiguration = Field(default_factory=HttpConfiguration)
    extraction: ExtractionConfiguration = Field(default_factory=ExtractionConfiguration)
    logging: LoggingConfiguration = Field(default_factory=LoggingConfiguration)

    model_config = {"validate_assignment": True, "extra": "forbid"}

    def config_hash(self) -> str:
        """Compute a short deterministic hash of the configuration for log records."""

        payload = json.dumps(self.model_dump(mode="json"), sort_keys=True, default=str)
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


# --- Environment overrides -----------------------------------------------------


class EnvironmentOverrides(BaseSettings):
    """Pydantic settings model exposing environment-derived overrides."""

    timeout_sec: Optional[float] = None
    connect_timeout_sec: Optional[float] = None
    log_level: Optional[str] = None
    log_dir: Optional[Path] = None
    staged_extraction: Optional[bool] = None
    max_uncompressed_bytes: Optional[int] = None

    model_config = SettingsConfigDict(env_prefix="ACODE_KIT_", case_sensitive=False, extra="ignore")


def _apply_env_overrides(config: ScaffoldConfiguration) -> None:
    """Mutate ``config`` in-place using values from :class:`EnvironmentOverrides`."""

    env = EnvironmentOverrides()
    logger = logging.getLogger("AcodeKit.PluginScaffold")

    if env.timeout_sec is not None:
        config.http.timeout_sec = env.timeout_sec
        logger.info("Config overridden: timeout_sec=%s", env.timeout_sec, extra={"stage": "config"})
    if env.connect_timeout_sec is not None:
        config.http.connect_timeout_sec = env.connect_timeout_sec
        logger.info(
            "Config overridden: connect_timeout_sec=%s",
            env.connect_timeout_sec,
            extra={"stage": "config"},
        )
    if env.log_level is not None:
        config.logging.level = env.log_level
        logger.info("Config overridden: log_level=%s", env.log_level, extra={"stage": "config"})
    if env.log_dir is not None:
        config.logging.log_dir = env.log_dir
    if env.staged_extraction is not None:
        config.extraction.staged_extraction = env.staged_extraction
        logger.info(
            "Config overridden: staged_extraction=%s",
            env.staged_extraction,
            extra={"stage": "config"},
        )
    if env.max_uncompressed_bytes is not None:
        config.extraction.max_uncompressed_bytes = env.max_uncompressed_bytes
        logger.info(
            "Config overridden: max_uncompressed_bytes=%s",
            env.max_uncompressed_bytes,
            extra={"stage": "config"},
        )


# --- Loading & caching ---------------------------------------------------------

_DEFAULT_CONFIG_LOCK = threading.RLock()
_DEFAULT_CONFIG_CACHE: Optional[ScaffoldConfiguration] = None


def get_default_config(*, copy: bool = False) -> ScaffoldConfiguration:
    """Return a memoised configuration built from defaults and the environment."""

    global _DEFAULT_CONFIG_CACHE  # noqa: PLW0603

    with _DEFAULT_CONFIG_LOCK:
        if _DEFAULT_CONFIG_CACHE is None:
            config = ScaffoldConfiguration()
            _apply_env_overrides(config)
            _DEFAULT_CONFIG_CACHE = config
        cached = _DEFAULT_CONFIG_CACHE
    if copy:
        return cached.model_copy(deep=True)
    return cached


def invalidate_default_config_cache() -> None:
    """Invalidate the cached default configuration."""

    global _DEFAULT_CONFIG_CACHE  # noqa: PLW0603

    with _DEFAULT_CONFIG_LOCK:
        _DEFAULT_CONFIG_CACHE = None


def normalize_config_path(config_path: Path) -> Path:
    """Return a user-supplied configuration path with ``~`` and symlinks resolved."""

    expanded = Path(config_path).expanduser()
    try:
        return expanded.resolve(strict=False)
    except (OSError, RuntimeError):  # pragma: no cover - only triggered on rare filesystems
        return expanded


def load_raw_yaml(config_path: Path) -> Mapping[str, object]:
    """Read a YAML configuration file and return its top-level mapping."""

    normalized_path = normalize_config_path(config_path)
    if not normalized_path.exists():
        raise UserConfigError(f"Configuration file not found: {normalized_path}")

    try:
        with normalized_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise UserConfigError(
            f"Configuration file '{normalized_path}' contains invalid YAML"
        ) from exc

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise UserConfigError("Configuration file must contain a mapping at the root")
    return data


def load_config(config_path: Optional[Path] = None) -> ScaffoldConfiguration:
    """Load, validate, and apply environment overrides to a configuration."""

    if config_path is None:
        return get_default_config(copy=True)

    raw = load_raw_yaml(config_path)
    try:
        config = ScaffoldConfiguration.model_validate(raw)
    except ValidationError as exc:
        messages: List[str] = []
        for error in exc.errors():
            location = " -> ".join(str(part) for part in error["loc"])
            messages.append(f"{location}: {error['msg']}")
        raise UserConfigError(
            "Configuration validation failed:\n  " + "\n  ".join(messages)
        ) from exc

    _apply_env_overrides(config)
    return config
