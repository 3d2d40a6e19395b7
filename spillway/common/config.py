from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

ENV_FILE = Path(".env")

# Files larger than ~4.4 GiB are split into parts, below the 5 GiB object limit.
DEFAULT_SEGMENT_THRESHOLD_BYTES = 4_768_709_000
DEFAULT_WRITE_BUFFER_BYTES = 64 * 1024


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y", "on"}


def _as_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    return int(value.strip().replace("_", ""))


@dataclass
class Settings:
    SPILL_DIR: str = tempfile.gettempdir()
    SEGMENT_THRESHOLD_BYTES: int = DEFAULT_SEGMENT_THRESHOLD_BYTES
    WRITE_BUFFER_BYTES: int = DEFAULT_WRITE_BUFFER_BYTES
    S3_BUCKET: str | None = None
    S3_ENDPOINT_URL: str | None = None
    S3_REGION: str | None = None
    S3_ACCESS_KEY_ID: str | None = None
    S3_SECRET_ACCESS_KEY: str | None = None
    S3_USE_SSL: bool = True
    S3_ADDRESSING_STYLE: str = "path"
    ENABLE_METRICS: bool = True
    LOG_LEVEL: str = "INFO"

    def __post_init__(self) -> None:
        if self.SEGMENT_THRESHOLD_BYTES <= 0:
            raise ValueError("SEGMENT_THRESHOLD_BYTES must be a positive integer.")
        if self.WRITE_BUFFER_BYTES <= 0:
            raise ValueError("WRITE_BUFFER_BYTES must be a positive integer.")
        if not self.SPILL_DIR:
            raise ValueError("SPILL_DIR must not be empty.")

    @classmethod
    def from_environment(cls) -> "Settings":
        _load_env_file()
        return cls(
            SPILL_DIR=os.environ.get("SPILL_DIR") or cls.SPILL_DIR,
            SEGMENT_THRESHOLD_BYTES=_as_int(
                os.environ.get("SEGMENT_THRESHOLD_BYTES"),
                cls.SEGMENT_THRESHOLD_BYTES,
            ),
            WRITE_BUFFER_BYTES=_as_int(
                os.environ.get("WRITE_BUFFER_BYTES"), cls.WRITE_BUFFER_BYTES
            ),
            S3_BUCKET=os.environ.get("S3_BUCKET"),
            S3_ENDPOINT_URL=os.environ.get("S3_ENDPOINT_URL"),
            S3_REGION=os.environ.get("S3_REGION"),
            S3_ACCESS_KEY_ID=os.environ.get("S3_ACCESS_KEY_ID"),
            S3_SECRET_ACCESS_KEY=os.environ.get("S3_SECRET_ACCESS_KEY"),
            S3_USE_SSL=_as_bool(os.environ.get("S3_USE_SSL"), cls.S3_USE_SSL),
            S3_ADDRESSING_STYLE=os.environ.get(
                "S3_ADDRESSING_STYLE", cls.S3_ADDRESSING_STYLE
            ),
            ENABLE_METRICS=_as_bool(
                os.environ.get("ENABLE_METRICS"), cls.ENABLE_METRICS
            ),
            LOG_LEVEL=os.environ.get("LOG_LEVEL", cls.LOG_LEVEL).upper(),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_environment()
