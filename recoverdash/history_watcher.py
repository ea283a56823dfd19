"""History store watcher using watchfiles.

Monitors the editor's local history folder and marks the index stale when
snapshot folders or manifests change. It never rebuilds; the next query does.
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from watchfiles import Change, awatch

from recoverdash.history.cache import HistoryIndexCache
from recoverdash.history.types import MANIFEST_FILENAME

logger = logging.getLogger("recoverdash.watcher")


class HistoryWatcher:
    """Background watcher that invalidates the history index on change.

    Uses `watchfiles` (Rust-accelerated) for efficient watching.
    """

    def __init__(self):
        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._running = False

    async def start(self, cache: HistoryIndexCache) -> None:
        """Start watching the cache's history root in a background task."""
        if self._running:
            logger.warning("History watcher already running")
            return

        self._running = True
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._watch_loop(cache, self._stop_event))
        logger.info(f"History watcher started for {cache.history_root}")

    async def stop(self) -> None:
        """Stop the history watcher."""
        self._running = False
        if self._stop_event:
            self._stop_event.set()
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self._stop_event = None
        logger.info("History watcher stopped")

    @property
    def is_running(self) -> bool:
        return self._running

    async def _watch_loop(self, cache: HistoryIndexCache, stop_event: asyncio.Event) -> None:
        """Main watching loop."""
        history_root = cache.history_root
        if not history_root.is_dir():
            logger.warning(f"History root {history_root} does not exist, watcher has nothing to monitor")
            self._running = False
            return

        logger.info(f"Watching history root: {history_root}")

        try:
            async for changes in awatch(history_root, stop_event=stop_event):
                if not self._running:
                    break

                relevant = self._classify_changes(changes, history_root)
                if relevant:
                    logger.info(f"Detected {len(relevant)} history changes, invalidating index")
                    await self._invalidate(cache)
        except asyncio.CancelledError:
            logger.info("History watcher task cancelled")
        except Exception as e:
            logger.error(f"History watcher error: {e}")
        finally:
            self._running = False

    async def _invalidate(self, cache: HistoryIndexCache) -> None:
        # The cache lock is held for a whole rebuild; wait for it off the loop.
        await asyncio.to_thread(cache.invalidate)

    def _classify_changes(
        self,
        changes: set[tuple[Change, str]],
        history_root: Path,
    ) -> list[tuple[str, Path]]:
        """Classify raw watchfiles changes into (change_type, path) pairs.

        Manifests, snapshot folders and deletions affect the index; a new
        artifact is always accompanied by a manifest update.
        """
        result = []
        for change_type, path_str in changes:
            path = Path(path_str)

            is_manifest = path.name == MANIFEST_FILENAME
            is_folder = path.parent == history_root
            if not (is_manifest or is_folder or change_type == Change.deleted):
                continue

            if change_type == Change.deleted:
                result.append(("deleted", path))
            elif change_type in (Change.modified, Change.added):
                result.append(("modified", path))

        return result


# Singleton instance
history_watcher = HistoryWatcher()
