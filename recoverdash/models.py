"""Pydantic models for the RecoverDash API payloads."""
from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Generic, TypeVar

from recoverdash.date_utils import to_iso
from recoverdash.history.index_builder import summarize_skips
from recoverdash.history.paths import relative_to_project
from recoverdash.history.types import ContentReadResult, Project, RecoverableFile, ScanReport, VersionRecord

T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    items: list[T]
    total: int
    offset: int
    limit: int


# ── History models ──────────────────────────────────────────────────

class HistoryVersion(BaseModel):
    index: int
    source: str
    folderId: str
    timestamp: str
    timestampMs: int
    sizeBytes: int = 0

    @classmethod
    def from_record(cls, index: int, record: VersionRecord) -> "HistoryVersion":
        return cls(
            index=index,
            source=str(record.source),
            folderId=record.folder_id,
            timestamp=to_iso(record.timestamp),
            timestampMs=record.timestamp_ms,
            sizeBytes=record.size_bytes,
        )


class RecoverableFileSummary(BaseModel):
    originalPath: str
    relativePath: str
    fileName: str
    projectName: str
    latestTimestamp: str
    versionCount: int
    folderIds: list[str] = Field(default_factory=list)

    @classmethod
    def from_file(cls, project_name: str, item: RecoverableFile) -> "RecoverableFileSummary":
        relative = relative_to_project(item.original_path, project_name)
        return cls(
            originalPath=item.original_path,
            relativePath=relative,
            fileName=relative.rsplit("/", 1)[-1],
            projectName=project_name,
            latestTimestamp=to_iso(item.latest_timestamp),
            versionCount=len(item.versions),
            folderIds=item.folder_ids,
        )


class RecoverableFileDetail(RecoverableFileSummary):
    versions: list[HistoryVersion] = Field(default_factory=list)

    @classmethod
    def from_file(cls, project_name: str, item: RecoverableFile) -> "RecoverableFileDetail":
        summary = RecoverableFileSummary.from_file(project_name, item)
        return cls(
            **summary.model_dump(),
            versions=[HistoryVersion.from_record(i, record) for i, record in enumerate(item.versions)],
        )


class HistoryProjectSummary(BaseModel):
    name: str
    fileCount: int = 0
    versionCount: int = 0
    latestTimestamp: str = ""

    @classmethod
    def from_project(cls, project: Project) -> "HistoryProjectSummary":
        return cls(
            name=project.name,
            fileCount=len(project.files),
            versionCount=project.version_count,
            latestTimestamp=to_iso(project.latest_timestamp),
        )


class VersionContent(BaseModel):
    originalPath: str
    version: HistoryVersion
    kind: str = "text"  # "text" | "binary" | "error"
    encoding: str = ""
    sizeBytes: int = 0
    content: str = ""

    @classmethod
    def from_result(cls, original_path: str, version: HistoryVersion, result: ContentReadResult) -> "VersionContent":
        return cls(
            originalPath=original_path,
            version=version,
            kind=result.kind,
            encoding=result.encoding,
            sizeBytes=result.size_bytes,
            content=result.text,
        )


class ScanReportModel(BaseModel):
    status: str = "ok"
    historyRoot: str = ""
    foldersScanned: int = 0
    foldersIndexed: int = 0
    skippedFolders: dict[str, int] = Field(default_factory=dict)
    skippedEntries: dict[str, int] = Field(default_factory=dict)
    error: str = ""
    durationMs: float = 0.0
    builtAt: str = ""

    @classmethod
    def from_report(cls, report: ScanReport) -> "ScanReportModel":
        skips = summarize_skips(report)
        return cls(
            status=report.status,
            historyRoot=report.history_root,
            foldersScanned=report.folders_scanned,
            foldersIndexed=report.folders_indexed,
            skippedFolders=skips["folders"],
            skippedEntries=skips["entries"],
            error=report.error,
            durationMs=report.duration_ms,
            builtAt=to_iso(report.built_at),
        )


class IncludeEmptyRequest(BaseModel):
    includeEmpty: bool = False
