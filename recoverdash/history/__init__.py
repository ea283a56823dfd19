"""Local history scanning, indexing and content access."""

from recoverdash.history.cache import HistoryIndexCache
from recoverdash.history.content import read_version, read_version_content
from recoverdash.history.index_builder import build_history_index
from recoverdash.history.paths import decode_resource, infer_project_name, relative_to_project
from recoverdash.history.snapshot_folder import read_snapshot_folder
from recoverdash.history.types import (
    ContentReadResult,
    EntrySkipReason,
    HistoryIndex,
    Project,
    RecoverableFile,
    ScanReport,
    SkipFolder,
    SkipReason,
    VersionRecord,
)

__all__ = [
    "HistoryIndexCache",
    "read_version",
    "read_version_content",
    "build_history_index",
    "decode_resource",
    "infer_project_name",
    "relative_to_project",
    "read_snapshot_folder",
    "ContentReadResult",
    "EntrySkipReason",
    "HistoryIndex",
    "Project",
    "RecoverableFile",
    "ScanReport",
    "SkipFolder",
    "SkipReason",
    "VersionRecord",
]
