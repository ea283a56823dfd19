"""Build the project -> file -> versions index from a history store."""
from __future__ import annotations

import logging
import os
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable

from recoverdash.history.paths import DEFAULT_SKIP_FOLDERS, decode_resource, infer_project_name
from recoverdash.history.snapshot_folder import read_snapshot_folder
from recoverdash.history.types import (
    HistoryIndex,
    Project,
    RecoverableFile,
    ScanReport,
    SkipFolder,
    SkipReason,
)
from recoverdash.observability import record_folder_skip, record_history_scan, start_span

logger = logging.getLogger("recoverdash.history")


def _list_folders(history_root: Path) -> list[Path]:
    """Immediate subdirectories, sorted by name so merges are reproducible."""
    folders: list[Path] = []
    with os.scandir(history_root) as entries:
        for entry in entries:
            try:
                if entry.is_dir():
                    folders.append(Path(entry.path))
            except OSError:
                continue
    folders.sort(key=lambda folder: folder.name)
    return folders


def build_history_index(
    history_root: Path,
    include_empty: bool = False,
    skip_folders: Iterable[str] = DEFAULT_SKIP_FOLDERS,
    *,
    windows: bool | None = None,
) -> HistoryIndex:
    """Scan every snapshot folder under ``history_root``.

    Never raises for missing or malformed data: unusable folders are counted in
    the report and a missing or unreadable root gives an empty index with
    ``report.status == "root_unavailable"``.
    """
    started = time.perf_counter()
    skip = frozenset(skip_folders)
    report = ScanReport(history_root=str(history_root))
    projects: dict[str, Project] = {}

    with start_span("history.build_index", {"history_root": str(history_root)}):
        try:
            folders = _list_folders(history_root)
        except OSError as exc:
            logger.warning(f"History root unavailable: {history_root} ({exc})")
            report.status = "root_unavailable"
            report.error = str(exc)
            folders = []

        for folder in folders:
            report.folders_scanned += 1
            try:
                result = read_snapshot_folder(folder, include_empty=include_empty)
            except SkipFolder as exc:
                logger.debug(f"Skipping snapshot folder {exc}")
                report.skipped_folders[exc.reason.value] += 1
                report.skipped_entries.update(exc.skipped_entries)
                record_folder_skip(exc.reason.value)
                continue
            except OSError as exc:
                logger.debug(f"Skipping unreadable snapshot folder {folder.name}: {exc}")
                report.skipped_folders[SkipReason.UNREADABLE.value] += 1
                record_folder_skip(SkipReason.UNREADABLE.value)
                continue

            report.skipped_entries.update(result.skipped_entries)
            original_path = decode_resource(result.resource, windows=windows)
            project_name = infer_project_name(original_path, skip)

            project = projects.get(project_name)
            if project is None:
                project = Project(name=project_name)
                projects[project_name] = project

            existing = project.files.get(original_path)
            if existing is None:
                project.files[original_path] = RecoverableFile(
                    original_path=original_path,
                    versions=tuple(result.versions),
                )
            else:
                project.files[original_path] = existing.merged(result.versions)
            report.folders_indexed += 1

    if report.status != "root_unavailable" and not projects:
        report.status = "empty"
    report.duration_ms = round((time.perf_counter() - started) * 1000, 3)
    report.built_at = datetime.now(timezone.utc)
    record_history_scan(report.status, report.duration_ms, folder_count=report.folders_scanned)

    index = HistoryIndex(projects=projects, report=report)
    logger.info(
        f"Indexed {index.file_count} files ({index.version_count} versions) in "
        f"{len(projects)} projects from {report.folders_indexed}/{report.folders_scanned} folders"
    )
    return index


def summarize_skips(report: ScanReport) -> dict[str, dict[str, int]]:
    return {
        "folders": dict(sorted(report.skipped_folders.items())),
        "entries": dict(sorted(report.skipped_entries.items())),
    }

