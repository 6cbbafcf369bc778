"""Environment-driven settings and API key storage."""

import os
import sys
from pathlib import Path

from .errors import ConfigurationError

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_CHAT_ASSISTANT_ID = "asst_CCu0BHjv7F57ES9RmPbHEaYT"
DEFAULT_NEGOTIATOR_ASSISTANT_ID = "asst_JQE3K3UtYHAsAbS5DEwOg1h8"
API_KEY_PREFIX = "sk-"


def get_credentials_path() -> Path:
    """Return the path of the file holding the stored API key."""
    env = os.environ.get("COOPBRAIN_CREDENTIALS_PATH")
    if env:
        return Path(env)

    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "coopbrain" / "api_key"
    elif sys.platform == "win32":
        return Path(os.environ.get("APPDATA", "")) / "coopbrain" / "api_key"
    else:  # Linux
        return Path.home() / ".config" / "coopbrain" / "api_key"


def get_base_url() -> str:
    """Return the assistant gateway base URL."""
    return os.environ.get("OPENAI_BASE_URL") or DEFAULT_BASE_URL


def get_chat_assistant_id() -> str:
    return os.environ.get("COOPBRAIN_CHAT_ASSISTANT_ID") or DEFAULT_CHAT_ASSISTANT_ID


def get_negotiator_assistant_id() -> str:
    return os.environ.get("COOPBRAIN_NEGOTIATOR_ASSISTANT_ID") or DEFAULT_NEGOTIATOR_ASSISTANT_ID


# ── API key storage ──────────────────────────────────────────────


def load_api_key() -> str | None:
    """Return the API key from the environment, then from the credential file."""
    env = os.environ.get("OPENAI_API_KEY")
    if env:
        return env

    path = get_credentials_path()
    try:
        key = path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        return None
    return key or None


def save_api_key(key: str) -> Path:
    """Validate and store an API key. Returns the file it was written to."""
    key = key.strip()
    if not key:
        raise ConfigurationError("Please enter a valid API key")
    if not key.startswith(API_KEY_PREFIX):
        raise ConfigurationError(f"Invalid API key: it must start with '{API_KEY_PREFIX}'")

    path = get_credentials_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        if sys.platform != "win32":
            # O_CREAT leaves the mode of an existing file untouched
            os.fchmod(fd, 0o600)
        f.write(key)
    return path


def remove_api_key() -> bool:
    """Delete the stored API key. Returns False if none was stored."""
    path = get_credentials_path()
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True
