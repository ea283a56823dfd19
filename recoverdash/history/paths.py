"""Resource URI decoding and project-name inference.

The editor records the tracked file as a URI (``file:///c%3A/Users/...``).
Everything here is pure string work so it behaves the same whichever OS the
index is built on; ``windows`` switches between the two path flavours.
"""
from __future__ import annotations

import os
import re
from typing import Any, Iterable
from urllib.parse import unquote

from recoverdash.history.types import UNKNOWN_PROJECT

# Generic container folders that never name a project. Hand-picked, not
# authoritative; extend through RECOVERDASH_PROJECT_SKIP_FOLDERS.
DEFAULT_SKIP_FOLDERS: frozenset[str] = frozenset(
    {
        "users",
        "user",
        "home",
        "documents",
        "desktop",
        "downloads",
        "study",
        "projects",
        "code",
        "dev",
        "src",
    }
)

# The segment after one of these is the account name.
_USER_CONTAINERS = frozenset({"users", "home"})

_SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")
_DRIVE_PATTERN = re.compile(r"^[A-Za-z]:$")
_WINDOWS_DRIVE_PREFIX = re.compile(r"^/?([A-Za-z]):")


def build_skip_folders(extra: Iterable[str] = ()) -> frozenset[str]:
    return DEFAULT_SKIP_FOLDERS | {token.strip().lower() for token in extra if token and token.strip()}


def _strip_scheme(resource: str) -> str:
    match = _SCHEME_PATTERN.match(resource)
    if not match:
        return resource
    scheme = match.group(0).lower()
    rest = resource[match.end():]
    if scheme == "file://":
        # file:///path has an empty authority; file://server/share is UNC.
        if rest.startswith("/"):
            return rest
        return f"//{rest}"
    # Remote schemes (vscode-remote://ssh-remote+host/path) keep only the path.
    slash = rest.find("/")
    return rest[slash:] if slash >= 0 else ""


def decode_resource(resource: Any, *, windows: bool | None = None) -> str:
    """Decode a manifest ``resource`` reference into an absolute path string.

    Never raises. Non-string input is stringified and undecodable
    percent-escapes are replaced, so the result may be unusable but the scan
    carries on.
    """
    if windows is None:
        windows = os.name == "nt"
    text = resource if isinstance(resource, str) else str(resource or "")
    decoded = unquote(_strip_scheme(text.strip()), errors="replace")

    if not windows:
        if decoded and not decoded.startswith("/"):
            decoded = f"/{decoded}"
        return decoded

    drive = _WINDOWS_DRIVE_PREFIX.match(decoded)
    if drive:
        decoded = f"{drive.group(1).upper()}:{decoded[drive.end():]}"
    return decoded.replace("/", "\\")


def _segments(path: str) -> list[str]:
    parts = path.replace("\\", "/").split("/")
    return [part for part in parts if part and not _DRIVE_PATTERN.match(part)]


def infer_project_name(path: str, skip_folders: Iterable[str] = DEFAULT_SKIP_FOLDERS) -> str:
    """Best-guess workspace folder name for an absolute path.

    Returns the first segment that is not a generic container folder. This is
    a heuristic and will misclassify some layouts.
    """
    skip = skip_folders if isinstance(skip_folders, (set, frozenset)) else frozenset(skip_folders)
    parts = _segments(path or "")

    after_user_container = False
    for part in parts:
        lowered = part.lower()
        if after_user_container:
            after_user_container = False
            continue
        if lowered in skip:
            after_user_container = lowered in _USER_CONTAINERS
            continue
        return part

    return parts[-2] if len(parts) >= 2 else UNKNOWN_PROJECT


def relative_to_project(original_path: str, project_name: str) -> str:
    """Path of ``original_path`` below its project folder, ``/``-separated.

    Falls back to the basename when the project segment is missing or is the
    last segment.
    """
    parts = (original_path or "").replace("\\", "/").split("/")
    target = (project_name or "").lower()
    for index, part in enumerate(parts):
        if part.lower() == target and index < len(parts) - 1:
            return "/".join(parts[index + 1:])
    return parts[-1] if parts else ""
