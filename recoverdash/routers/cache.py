"""History index cache control API."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Request

from recoverdash.history_watcher import history_watcher
from recoverdash.models import IncludeEmptyRequest, ScanReportModel
from recoverdash.routers.history import get_history_cache

logger = logging.getLogger("recoverdash.cache")

cache_router = APIRouter(prefix="/api/cache", tags=["cache"])


@cache_router.get("/status")
def get_cache_status(request: Request):
    """Return cache + watcher status."""
    cache = get_history_cache(request)
    report = cache.last_report()
    return {
        "status": "active",
        "watcher": "running" if history_watcher.is_running else "stopped",
        **cache.status(),
        "lastScan": ScanReportModel.from_report(report).model_dump() if report else None,
    }


@cache_router.post("/invalidate")
def invalidate_cache(request: Request):
    """Mark the index stale; the next query rebuilds it."""
    cache = get_history_cache(request)
    cache.invalidate()
    return {"status": "ok", "state": cache.state}


@cache_router.post("/rebuild")
def rebuild_cache(request: Request):
    """Rebuild the index now and return the scan report."""
    cache = get_history_cache(request)
    index = cache.rebuild()
    logger.info(f"Index rebuilt on request: {index.file_count} files")
    return {
        "status": "ok",
        "state": cache.state,
        "projectCount": len(index.projects),
        "fileCount": index.file_count,
        "versionCount": index.version_count,
        "report": ScanReportModel.from_report(index.report).model_dump(),
    }


@cache_router.put("/include-empty")
def set_include_empty(request: Request, body: IncludeEmptyRequest):
    """Toggle whether degenerate (size <= 1 byte) snapshots are indexed."""
    cache = get_history_cache(request)
    cache.include_empty = body.includeEmpty
    return {"status": "ok", "includeEmpty": cache.include_empty, "state": cache.state}
