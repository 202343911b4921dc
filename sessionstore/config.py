"""Store configuration loaded from an optional JSON file."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from sessionstore.errors import ConfigError

logger = logging.getLogger(__name__)


class CookieConfig(BaseModel):
    """Settings for the outgoing session cookie."""

    max_age_days: int | None = Field(default=30, ge=1)  # None: expire with the session
    secure: bool = False


class CleanupConfig(BaseModel):
    """Settings for active removal of expired sessions."""

    enabled: bool = True
    interval_seconds: int = Field(default=300, ge=1)
    on_create: bool = False


class PersistenceConfig(BaseModel):
    """Settings for whole-store snapshots."""

    snapshot_path: str = ""
    save_on_cleanup: bool = False


class StoreConfig(BaseModel):
    """Top-level configuration for one session manager."""

    log_level: str = "INFO"
    log_dir: str = ""  # empty: console only
    cookie_name: str = Field(default="sid", min_length=1)
    id_bytes: int = Field(default=30, ge=1)
    default_ttl_minutes: int = Field(default=1440, ge=1)
    cookie: CookieConfig = Field(default_factory=CookieConfig)
    cleanup: CleanupConfig = Field(default_factory=CleanupConfig)
    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)

    @property
    def snapshot_file(self) -> Path | None:
        """Expanded snapshot path, or None when persistence is disabled."""
        raw = self.persistence.snapshot_path.strip()
        if not raw:
            return None
        return Path(raw).expanduser()

    @property
    def log_directory(self) -> Path | None:
        """Expanded directory for the rotating log file, or None for console only."""
        raw = self.log_dir.strip()
        return Path(raw).expanduser() if raw else None


def deep_merge_config(
    user: dict[str, object],
    defaults: dict[str, object],
) -> dict[str, object]:
    """Recursively fill keys missing from *user* with *defaults*, preserving user values."""
    result: dict[str, object] = dict(user)
    for key, default_val in defaults.items():
        if key not in result:
            result[key] = default_val
        elif isinstance(default_val, dict) and isinstance(result[key], dict):
            result[key] = deep_merge_config(
                result[key],  # type: ignore[arg-type]
                default_val,
            )
    return result


def load_config(config_path: Path | None = None) -> StoreConfig:
    """Load a ``StoreConfig`` from *config_path*, falling back to defaults.

    A missing file is not an error. An unreadable file, invalid JSON, or values
    that fail validation raise ``ConfigError``.
    """
    if config_path is None or not config_path.exists():
        logger.debug("No config file, using defaults")
        return StoreConfig()

    try:
        user_data = json.loads(config_path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, RecursionError, OSError) as exc:
        msg = f"Failed to read config {config_path}: {exc}"
        raise ConfigError(msg) from exc

    if not isinstance(user_data, dict):
        msg = f"Config {config_path} must contain a JSON object"
        raise ConfigError(msg)

    defaults = StoreConfig().model_dump(mode="json")
    merged = deep_merge_config(user_data, defaults)
    filled = sorted(key for key in defaults if key not in user_data)
    if filled:
        logger.debug("Config %s: defaults used for %s", config_path, ", ".join(filled))
    try:
        config = StoreConfig.model_validate(merged)
    except ValidationError as exc:
        msg = f"Invalid config {config_path}: {exc}"
        raise ConfigError(msg) from exc

    logger.info("Config loaded from %s (cookie=%s)", config_path, config.cookie_name)
    return config
