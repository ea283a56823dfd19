"""Domain types for the local history index."""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Iterable

from recoverdash.date_utils import datetime_to_epoch_ms

MANIFEST_FILENAME = "entries.json"
UNKNOWN_PROJECT = "Unknown Project"


class SkipReason(str, Enum):
    """Why a whole snapshot folder was left out of the index."""

    MISSING_MANIFEST = "missing_manifest"
    UNPARSEABLE_MANIFEST = "unparseable_manifest"
    MISSING_RESOURCE = "missing_resource"
    NO_ENTRIES = "no_entries"
    UNREADABLE = "unreadable"


class EntrySkipReason(str, Enum):
    """Why a single manifest entry produced no version."""

    MISSING_FIELDS = "missing_fields"
    MISSING_ARTIFACT = "missing_artifact"
    DEGENERATE_SIZE = "degenerate_size"


class SkipFolder(Exception):
    """Raised by the folder reader when a folder contributes nothing.

    Always recoverable: the index builder records the reason and moves on to
    the next folder.
    """

    def __init__(
        self,
        reason: SkipReason,
        folder: Path,
        detail: str = "",
        skipped_entries: Counter | None = None,
    ) -> None:
        self.reason = reason
        self.folder = folder
        self.detail = detail
        self.skipped_entries = skipped_entries if skipped_entries is not None else Counter()
        message = f"{folder.name}: {reason.value}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


@dataclass(frozen=True)
class VersionRecord:
    source: Path
    timestamp: datetime
    folder_id: str
    size_bytes: int = 0

    @property
    def timestamp_ms(self) -> int:
        return datetime_to_epoch_ms(self.timestamp)


def sort_newest_first(versions: Iterable[VersionRecord]) -> list[VersionRecord]:
    """Stable descending sort by capture time."""
    return sorted(versions, key=lambda version: version.timestamp, reverse=True)


@dataclass(frozen=True)
class RecoverableFile:
    """One tracked path and its versions, newest first.

    Frozen so files handed out by the cache cannot be edited in place;
    `merged` returns a new instance instead.
    """

    original_path: str
    versions: tuple[VersionRecord, ...]
    latest_timestamp: datetime = field(init=False)

    def __post_init__(self) -> None:
        if not self.versions:
            raise ValueError(f"RecoverableFile needs at least one version: {self.original_path}")
        versions = tuple(sort_newest_first(self.versions))
        object.__setattr__(self, "versions", versions)
        object.__setattr__(self, "latest_timestamp", versions[0].timestamp)

    def merged(self, versions: Iterable[VersionRecord]) -> "RecoverableFile":
        """Fold in versions from another folder tracking the same path."""
        extra = tuple(versions)
        if not extra:
            return self
        return RecoverableFile(original_path=self.original_path, versions=self.versions + extra)

    @property
    def folder_ids(self) -> list[str]:
        seen: dict[str, None] = {}
        for version in self.versions:
            seen.setdefault(version.folder_id, None)
        return list(seen)


@dataclass
class Project:
    name: str
    files: dict[str, RecoverableFile] = field(default_factory=dict)

    @property
    def version_count(self) -> int:
        return sum(len(item.versions) for item in self.files.values())

    @property
    def latest_timestamp(self) -> datetime | None:
        if not self.files:
            return None
        return max(item.latest_timestamp for item in self.files.values())


@dataclass
class ScanReport:
    status: str = "ok"  # "ok" | "empty" | "root_unavailable"
    history_root: str = ""
    folders_scanned: int = 0
    folders_indexed: int = 0
    skipped_folders: Counter = field(default_factory=Counter)
    skipped_entries: Counter = field(default_factory=Counter)
    error: str = ""
    duration_ms: float = 0.0
    built_at: datetime | None = None


@dataclass
class HistoryIndex:
    projects: dict[str, Project] = field(default_factory=dict)
    report: ScanReport = field(default_factory=ScanReport)

    @property
    def file_count(self) -> int:
        return sum(len(project.files) for project in self.projects.values())

    @property
    def version_count(self) -> int:
        return sum(project.version_count for project in self.projects.values())

    def signature(self) -> list[tuple[str, str, tuple[tuple[str, int], ...]]]:
        """Flatten projects, files and version order for structural comparison."""
        rows = []
        for name in sorted(self.projects):
            for path in sorted(self.projects[name].files):
                item = self.projects[name].files[path]
                rows.append((name, path, tuple((str(v.source), v.timestamp_ms) for v in item.versions)))
        return rows


@dataclass
class ContentReadResult:
    text: str
    kind: str  # "text" | "binary" | "error"
    encoding: str = ""
    size_bytes: int = 0
