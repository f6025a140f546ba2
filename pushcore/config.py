"""Process configuration loaded from PUSHCORE_* environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

import msgspec

from pushcore.push.config import PushConfig
from pushcore.push.errors import PushConfigError
from pushcore.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)


@dataclass(frozen=True)
class Settings:
  """Typed settings for the push dispatch service."""

  debug: bool
  log_dir: str
  log_max_bytes: int
  log_backup_count: int
  pg_dsn: str | None
  pg_connect_timeout: int
  push_config: str | None
  push_config_path: str | None


def _parse_bool(raw: str | None) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None:
    return False

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  debug = _parse_bool(os.getenv("PUSHCORE_DEBUG"))

  log_max_bytes = int(os.getenv("PUSHCORE_LOG_MAX_BYTES", "5242880"))  # 5MB default
  if log_max_bytes <= 0:
    raise ValueError("PUSHCORE_LOG_MAX_BYTES must be a positive integer.")

  log_backup_count = int(os.getenv("PUSHCORE_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("PUSHCORE_LOG_BACKUP_COUNT must be zero or a positive integer.")

  pg_connect_timeout = int(os.getenv("PUSHCORE_PG_CONNECT_TIMEOUT", "5"))
  if pg_connect_timeout <= 0:
    raise ValueError("PUSHCORE_PG_CONNECT_TIMEOUT must be a positive integer.")

  return Settings(
    debug=debug,
    log_dir=(os.getenv("PUSHCORE_LOG_DIR") or "./logs").strip(),
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    pg_dsn=_optional_str(os.getenv("PUSHCORE_PG_DSN")) or _optional_str(os.getenv("DATABASE_URL")),
    pg_connect_timeout=pg_connect_timeout,
    push_config=_optional_str(os.getenv("PUSHCORE_PUSH_CONFIG")),
    push_config_path=_optional_str(os.getenv("PUSHCORE_PUSH_CONFIG_PATH")),
  )


def load_push_config(settings: Settings) -> PushConfig:
  """Decode the push JSON configuration; a missing config means push is disabled."""
  # Inline JSON wins over the file path so deployments can override a baked-in file.
  if settings.push_config is not None:
    raw = settings.push_config.encode("utf-8")
  elif settings.push_config_path is not None:
    try:
      raw = Path(settings.push_config_path).read_bytes()
    except OSError as exc:
      raise PushConfigError(f"Failed to read push config at {settings.push_config_path}: {exc}") from exc
  else:
    return PushConfig()

  return decode_push_config(raw)


def decode_push_config(raw: bytes | str) -> PushConfig:
  """Decode a push config JSON document."""
  try:
    return msgspec.json.decode(raw, type=PushConfig)
  except msgspec.DecodeError as exc:
    raise PushConfigError(f"Failed to parse push config: {exc}") from exc
