"""
Configuration, read from the environment (and a .env file if present).

    EDUENROLL_BACKEND_URL       required  base URL of the hosted backend
    EDUENROLL_ANON_KEY          required  public anon/API key
    EDUENROLL_REQUEST_TIMEOUT   optional  seconds for table calls; unset → library default
    EDUENROLL_LOG_LEVEL         optional  INFO (any standard logging level name)
    EDUENROLL_LOG_DIR           optional  <repo>/logs
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).parent.parent


@dataclass(frozen=True)
class Settings:
    backend_url: str
    anon_key: str
    request_timeout: float | None
    log_level: str
    log_dir: Path


def _get_env(name: str, default: str | None = None) -> str:
    val = os.getenv(name, default)
    if val is None or val.strip() == "":
        raise RuntimeError(f"Missing required environment variable: {name}")
    return val.strip()


def _optional_float(name: str, default: float | None) -> float | None:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be a number, got {raw!r}") from None


def _log_level(name: str, default: str) -> str:
    level = os.getenv(name, "").strip().upper() or default
    if level not in logging.getLevelNamesMapping():
        raise RuntimeError(f"{name} must be a logging level name, got {level!r}")
    return level


def load_settings() -> Settings:
    load_dotenv()
    return Settings(
        backend_url=_get_env("EDUENROLL_BACKEND_URL").rstrip("/"),
        anon_key=_get_env("EDUENROLL_ANON_KEY"),
        request_timeout=_optional_float("EDUENROLL_REQUEST_TIMEOUT", None),
        log_level=_log_level("EDUENROLL_LOG_LEVEL", "INFO"),
        log_dir=Path(os.getenv("EDUENROLL_LOG_DIR") or ROOT_DIR / "logs"),
    )
