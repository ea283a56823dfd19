"""In-memory cache over the history index."""
from __future__ import annotations

import logging
import threading
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Iterable, Mapping

from recoverdash.history.index_builder import build_history_index
from recoverdash.history.paths import DEFAULT_SKIP_FOLDERS, build_skip_folders
from recoverdash.history.types import HistoryIndex, RecoverableFile, ScanReport, VersionRecord

logger = logging.getLogger("recoverdash.cache")

IndexBuilder = Callable[..., HistoryIndex]

_EMPTY_FILES: Mapping[str, RecoverableFile] = MappingProxyType({})


class HistoryIndexCache:
    """Owns the current HistoryIndex and rebuilds it lazily.

    States: ``uninitialized`` -> ``built`` -> ``stale`` -> ``built``. A query in
    ``uninitialized`` or ``stale`` rebuilds synchronously. Rebuilding swaps in a
    new index object, so mappings handed out earlier are never mutated.
    """

    def __init__(
        self,
        history_root: Path,
        include_empty: bool = False,
        skip_folders: Iterable[str] = DEFAULT_SKIP_FOLDERS,
        builder: IndexBuilder = build_history_index,
    ):
        self._history_root = Path(history_root)
        self._include_empty = include_empty
        self._skip_folders = build_skip_folders(skip_folders)
        self._builder = builder
        self._lock = threading.Lock()
        self._index: HistoryIndex | None = None
        self._stale = False
        self._build_count = 0

    @property
    def history_root(self) -> Path:
        return self._history_root

    def history_exists(self) -> bool:
        return self._history_root.is_dir()

    @property
    def include_empty(self) -> bool:
        return self._include_empty

    @include_empty.setter
    def include_empty(self, value: bool) -> None:
        with self._lock:
            if bool(value) == self._include_empty:
                return
            self._include_empty = bool(value)
            if self._index is not None:
                self._stale = True

    @property
    def state(self) -> str:
        if self._index is None:
            return "uninitialized"
        return "stale" if self._stale else "built"

    @property
    def build_count(self) -> int:
        return self._build_count

    def _build_locked(self) -> HistoryIndex:
        index = self._builder(
            self._history_root,
            include_empty=self._include_empty,
            skip_folders=self._skip_folders,
        )
        self._index = index
        self._stale = False
        self._build_count += 1
        return index

    def _current(self) -> HistoryIndex:
        with self._lock:
            if self._index is None or self._stale:
                logger.info(f"Building history index ({self.state}) from {self._history_root}")
                return self._build_locked()
            return self._index

    def rebuild(self) -> HistoryIndex:
        """Build now, regardless of state."""
        with self._lock:
            return self._build_locked()

    def invalidate(self) -> None:
        """Mark the index stale; the next query rebuilds it."""
        with self._lock:
            if self._index is not None and not self._stale:
                logger.info("History index invalidated")
            self._stale = True

    def index(self) -> HistoryIndex:
        return self._current()

    def list_projects(self) -> list[str]:
        return sorted(self._current().projects)

    def files_for(self, project_name: str) -> Mapping[str, RecoverableFile]:
        project = self._current().projects.get(project_name)
        if project is None:
            return _EMPTY_FILES
        return MappingProxyType(project.files)

    def file_versions(self, project_name: str, original_path: str) -> list[VersionRecord]:
        item = self.files_for(project_name).get(original_path)
        if item is None:
            return []
        return list(item.versions)

    def last_report(self) -> ScanReport | None:
        index = self._index
        return index.report if index is not None else None

    def status(self) -> dict:
        report = self.last_report()
        return {
            "state": self.state,
            "historyRoot": str(self._history_root),
            "historyExists": self.history_exists(),
            "includeEmpty": self._include_empty,
            "buildCount": self._build_count,
            "lastScanStatus": report.status if report else "",
        }
