"""RecoverDash Backend Configuration."""
import os
import platform
from pathlib import Path


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_list(name: str, default: tuple[str, ...] = ()) -> tuple[str, ...]:
    value = os.getenv(name)
    if value is None:
        return default
    return tuple(token.strip() for token in value.split(",") if token.strip())


_EDITOR_DIRS = {
    "cursor": "Cursor",
    "code": "Code",
}


def default_history_dir(editor: str = "cursor", system: str | None = None) -> Path:
    """Return the editor's local history folder for the current OS."""
    app_dir = _EDITOR_DIRS.get((editor or "").strip().lower(), "Cursor")
    system_name = (system or platform.system()).lower()
    if system_name == "windows":
        app_data = os.getenv("APPDATA", "")
        return Path(app_data) / app_dir / "User" / "History"
    if system_name == "darwin":
        return Path.home() / "Library" / "Application Support" / app_dir / "User" / "History"
    return Path.home() / ".config" / app_dir / "User" / "History"


# Local history store
EDITOR = os.getenv("RECOVERDASH_EDITOR", "cursor")
_history_override = os.getenv("RECOVERDASH_HISTORY_DIR", "").strip()
HISTORY_DIR = Path(_history_override).expanduser() if _history_override else default_history_dir(EDITOR)
INCLUDE_EMPTY_VERSIONS = _env_bool("RECOVERDASH_INCLUDE_EMPTY_VERSIONS", False)

# Extra folder names ignored when inferring project names
PROJECT_SKIP_FOLDERS = _env_list("RECOVERDASH_PROJECT_SKIP_FOLDERS")

# Content preview
CONTENT_PREVIEW_BYTES = _env_int("RECOVERDASH_CONTENT_PREVIEW_BYTES", 1000)

# Watch the history store and invalidate the index on change
WATCH_ENABLED = _env_bool("RECOVERDASH_WATCH_ENABLED", True)

# Observability
OTEL_ENABLED = _env_bool("RECOVERDASH_OTEL_ENABLED", False)
OTEL_ENDPOINT = os.getenv("RECOVERDASH_OTEL_ENDPOINT", "http://localhost:4318")
OTEL_SERVICE_NAME = os.getenv("RECOVERDASH_OTEL_SERVICE_NAME", "recoverdash-backend")
PROM_PORT = _env_int("RECOVERDASH_PROM_PORT", 9465)

# Server settings
HOST = os.getenv("RECOVERDASH_HOST", "127.0.0.1")
PORT = _env_int("RECOVERDASH_PORT", 8010)

# CORS
FRONTEND_ORIGIN = os.getenv("RECOVERDASH_FRONTEND_ORIGIN", "http://localhost:3000")
