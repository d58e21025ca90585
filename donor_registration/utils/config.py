"""Application settings loaded from the environment and an optional .env file."""
import os
from dataclasses import dataclass
from threading import Lock
from typing import Optional

from dotenv import find_dotenv, load_dotenv


DEFAULT_DATA_FILE = "data/donor_registration.json"
DEFAULT_OPENAI_MODEL = "gpt-5-mini-2025-08-07"
DEFAULT_PONTE_API_URL = "https://api.ponte.id/send-message"

_settings: Optional["Settings"] = None
_SETTINGS_LOCK = Lock()


@dataclass(frozen=True)
class Settings:
    """Runtime configuration."""

    data_file: str = DEFAULT_DATA_FILE
    txn_max_attempts: int = 5
    lock_timeout: float = 5.0
    admin_username: str = "admin"
    admin_password: str = ""
    openai_api_key: Optional[str] = None
    openai_model: str = DEFAULT_OPENAI_MODEL
    openai_timeout: float = 15.0
    ponte_api_url: str = DEFAULT_PONTE_API_URL
    ponte_api_key: Optional[str] = None
    ponte_device_id: Optional[str] = None
    ponte_timeout: float = 10.0
    log_level: str = "INFO"

    @property
    def whatsapp_enabled(self) -> bool:
        return bool(self.ponte_api_key and self.ponte_device_id)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got: {raw!r}") from e


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got: {raw!r}") from e


def load_settings() -> Settings:
    """
    Build settings from the process environment.

    Values in a .env file (searched from the working directory up) are
    loaded first but never override variables already in the environment.

    Raises:
        ValueError: If a numeric variable cannot be parsed
    """
    load_dotenv(find_dotenv(usecwd=True), override=False)

    max_attempts = _env_int("DONOR_TXN_MAX_ATTEMPTS", 5)
    if max_attempts < 1:
        raise ValueError("DONOR_TXN_MAX_ATTEMPTS must be at least 1")

    return Settings(
        data_file=os.getenv("DONOR_DATA_FILE", DEFAULT_DATA_FILE),
        txn_max_attempts=max_attempts,
        lock_timeout=_env_float("DONOR_LOCK_TIMEOUT", 5.0),
        admin_username=os.getenv("ADMIN_USERNAME", "admin"),
        admin_password=os.getenv("ADMIN_PASSWORD", ""),
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        openai_model=os.getenv("OPENAI_MODEL", DEFAULT_OPENAI_MODEL),
        openai_timeout=_env_float("OPENAI_TIMEOUT", 15.0),
        ponte_api_url=os.getenv("PONTE_API_URL", DEFAULT_PONTE_API_URL),
        ponte_api_key=os.getenv("PONTE_API_KEY") or None,
        ponte_device_id=os.getenv("PONTE_DEVICE_ID") or None,
        ponte_timeout=_env_float("PONTE_TIMEOUT", 10.0),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def get_settings() -> Settings:
    """Return cached settings, loading them on first use."""
    global _settings

    if _settings is not None:
        return _settings

    with _SETTINGS_LOCK:
        if _settings is None:
            _settings = load_settings()
        return _settings


def reset_settings_cache() -> None:
    """Forget cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
