"""Read one snapshot folder of the editor's local history store."""
from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from recoverdash.date_utils import coerce_epoch_ms, epoch_ms_to_datetime
from recoverdash.history.types import (
    MANIFEST_FILENAME,
    EntrySkipReason,
    SkipFolder,
    SkipReason,
    VersionRecord,
    sort_newest_first,
)

logger = logging.getLogger("recoverdash.history")

# Saves of an empty buffer leave a 0 or 1 byte artifact (a lone newline).
DEGENERATE_SIZE_BYTES = 1


@dataclass
class FolderReadResult:
    folder_id: str
    resource: str
    versions: list[VersionRecord]
    skipped_entries: Counter = field(default_factory=Counter)


def _load_manifest(folder: Path) -> dict[str, Any]:
    manifest = folder / MANIFEST_FILENAME
    if not manifest.is_file():
        raise SkipFolder(SkipReason.MISSING_MANIFEST, folder)
    try:
        raw = manifest.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise SkipFolder(SkipReason.UNPARSEABLE_MANIFEST, folder, str(exc)) from exc
    except OSError as exc:
        raise SkipFolder(SkipReason.UNREADABLE, folder, str(exc)) from exc
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SkipFolder(SkipReason.UNPARSEABLE_MANIFEST, folder, str(exc)) from exc
    if not isinstance(data, dict):
        raise SkipFolder(SkipReason.UNPARSEABLE_MANIFEST, folder, "manifest is not an object")
    return data


def _is_plain_name(entry_id: str) -> bool:
    """Artifacts live directly inside their snapshot folder."""
    if entry_id in (".", "..") or "/" in entry_id or "\\" in entry_id:
        return False
    return Path(entry_id).name == entry_id


def _entry_to_version(
    entry: Any,
    folder: Path,
    include_empty: bool,
) -> VersionRecord | EntrySkipReason:
    if not isinstance(entry, dict):
        return EntrySkipReason.MISSING_FIELDS
    entry_id = entry.get("id")
    millis = coerce_epoch_ms(entry.get("timestamp"))
    if not isinstance(entry_id, str) or not entry_id.strip() or millis is None:
        return EntrySkipReason.MISSING_FIELDS

    if not _is_plain_name(entry_id):
        return EntrySkipReason.MISSING_FIELDS

    source = folder / entry_id
    try:
        if not source.is_file():
            return EntrySkipReason.MISSING_ARTIFACT
        size = source.stat().st_size
    except OSError:
        return EntrySkipReason.MISSING_ARTIFACT

    if not include_empty and size <= DEGENERATE_SIZE_BYTES:
        return EntrySkipReason.DEGENERATE_SIZE

    return VersionRecord(
        source=source,
        timestamp=epoch_ms_to_datetime(millis),
        folder_id=folder.name,
        size_bytes=size,
    )


def read_snapshot_folder(folder: Path, include_empty: bool = False) -> FolderReadResult:
    """Parse a folder's manifest into versions, newest first.

    Raises:
        SkipFolder: the folder has no usable manifest, no resource reference,
            or none of its entries survived filtering.
    """
    data = _load_manifest(folder)

    resource = data.get("resource")
    if not isinstance(resource, str) or not resource.strip():
        raise SkipFolder(SkipReason.MISSING_RESOURCE, folder)

    entries = data.get("entries")
    if not isinstance(entries, list):
        entries = []

    versions: list[VersionRecord] = []
    skipped: Counter = Counter()
    for entry in entries:
        outcome = _entry_to_version(entry, folder, include_empty)
        if isinstance(outcome, EntrySkipReason):
            skipped[outcome.value] += 1
            continue
        versions.append(outcome)

    if not versions:
        detail = ", ".join(f"{reason}={count}" for reason, count in sorted(skipped.items()))
        raise SkipFolder(SkipReason.NO_ENTRIES, folder, detail, skipped_entries=skipped)

    if skipped:
        logger.debug("Folder %s: kept %d entries, skipped %s", folder.name, len(versions), dict(skipped))

    return FolderReadResult(
        folder_id=folder.name,
        resource=resource,
        versions=sort_newest_first(versions),
        skipped_entries=skipped,
    )
