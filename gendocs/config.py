import os
import secrets
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .errors import ConfigurationError
from .logging import get_logger

log = get_logger("config")

BASE_DIR = Path(__file__).resolve().parent.parent

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_TIMEOUT_MS = 60_000
DEFAULT_PORT = 5055


@dataclass(frozen=True)
class Settings:
    api_key: str
    model: str = DEFAULT_MODEL
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    storage_dir: Path = BASE_DIR / "storage"
    secret_key: str = ""
    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT


def _int_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from the environment.

    The Gemini key is read from GEMINI_API_KEY, falling back to API_KEY.
    A missing key raises ConfigurationError; the app must not start without it.
    """
    env = os.environ if env is None else env

    api_key = (env.get("GEMINI_API_KEY") or env.get("API_KEY") or "").strip()
    if not api_key:
        raise ConfigurationError("Missing GEMINI_API_KEY (or API_KEY) in environment.")

    storage_dir = (env.get("GENDOCS_STORAGE_DIR") or "").strip()
    secret_key = (env.get("SECRET_KEY") or "").strip()
    if not secret_key:
        log.debug("SECRET_KEY not set; using a per-process random key")
        secret_key = secrets.token_hex(32)

    settings = Settings(
        api_key=api_key,
        model=(env.get("GEMINI_MODEL") or DEFAULT_MODEL).strip(),
        timeout_ms=_int_env(env, "GEMINI_TIMEOUT_MS", DEFAULT_TIMEOUT_MS),
        storage_dir=Path(storage_dir) if storage_dir else BASE_DIR / "storage",
        secret_key=secret_key,
        host=(env.get("HOST") or "127.0.0.1").strip(),
        port=_int_env(env, "PORT", DEFAULT_PORT),
    )
    log.info("Settings loaded (model=%s, storage=%s)", settings.model, settings.storage_dir)
    return settings
