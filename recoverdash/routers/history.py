"""Local history browsing API router."""
from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, Request

from recoverdash import config
from recoverdash.history.cache import HistoryIndexCache
from recoverdash.history.content import read_version_content
from recoverdash.models import (
    HistoryProjectSummary,
    HistoryVersion,
    PaginatedResponse,
    RecoverableFileDetail,
    RecoverableFileSummary,
    ScanReportModel,
    VersionContent,
)


history_router = APIRouter(prefix="/api/history", tags=["history"])


def get_history_cache(request: Request) -> HistoryIndexCache:
    cache = getattr(request.app.state, "history_cache", None)
    if cache is None:
        raise HTTPException(status_code=503, detail="History index not initialized")
    return cache


def _get_file(cache: HistoryIndexCache, project_name: str, path: str):
    if not path.strip():
        raise HTTPException(status_code=400, detail="File path cannot be empty")
    item = cache.files_for(project_name).get(path)
    if item is None:
        raise HTTPException(status_code=404, detail=f"No history for {path} in project {project_name}")
    return item


@history_router.get("/status")
def get_history_status(request: Request):
    """History store location, cache state and the last scan report."""
    cache = get_history_cache(request)
    report = cache.last_report()
    return {
        **cache.status(),
        "lastScan": ScanReportModel.from_report(report).model_dump() if report else None,
    }


@history_router.get("/projects", response_model=list[HistoryProjectSummary])
def list_history_projects(request: Request):
    """List inferred projects, sorted by name."""
    cache = get_history_cache(request)
    index = cache.index()
    return [HistoryProjectSummary.from_project(index.projects[name]) for name in sorted(index.projects)]


@history_router.get("/projects/{project_name}/files", response_model=PaginatedResponse[RecoverableFileSummary])
def list_history_files(
    request: Request,
    project_name: str,
    search: str = Query("", description="Substring filter on the original path"),
    offset: int = Query(0, ge=0),
    limit: int = Query(200, ge=1, le=1000),
):
    """Files of one project, most recently saved first."""
    cache = get_history_cache(request)
    files = cache.files_for(project_name)
    needle = search.strip().lower()
    items = [
        item for path, item in files.items()
        if not needle or needle in path.lower()
    ]
    items.sort(key=lambda item: (item.latest_timestamp, item.original_path), reverse=True)
    page = items[offset:offset + limit]
    return PaginatedResponse[RecoverableFileSummary](
        items=[RecoverableFileSummary.from_file(project_name, item) for item in page],
        total=len(items),
        offset=offset,
        limit=limit,
    )


@history_router.get("/projects/{project_name}/versions", response_model=RecoverableFileDetail)
def get_history_file_versions(
    request: Request,
    project_name: str,
    path: str = Query(..., description="Original absolute path of the file"),
):
    """All versions of one file, newest first."""
    cache = get_history_cache(request)
    item = _get_file(cache, project_name, path)
    return RecoverableFileDetail.from_file(project_name, item)


@history_router.get("/projects/{project_name}/versions/{version_index}/content", response_model=VersionContent)
def get_history_version_content(
    request: Request,
    project_name: str,
    version_index: int,
    path: str = Query(..., description="Original absolute path of the file"),
):
    """Decoded content of one version; index 0 is the newest."""
    cache = get_history_cache(request)
    item = _get_file(cache, project_name, path)
    if version_index < 0 or version_index >= len(item.versions):
        raise HTTPException(
            status_code=404,
            detail=f"Version index {version_index} out of range (0-{len(item.versions) - 1})",
        )
    record = item.versions[version_index]
    result = read_version_content(record, preview_bytes=config.CONTENT_PREVIEW_BYTES)
    return VersionContent.from_result(
        item.original_path,
        HistoryVersion.from_record(version_index, record),
        result,
    )
