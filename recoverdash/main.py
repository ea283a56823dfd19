"""RecoverDash FastAPI backend entry point."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from recoverdash import config
from recoverdash.history.cache import HistoryIndexCache
from recoverdash.history_watcher import history_watcher
from recoverdash.observability import initialize as initialize_observability, shutdown as shutdown_observability
from recoverdash.routers.cache import cache_router
from recoverdash.routers.history import history_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("recoverdash")


def create_history_cache() -> HistoryIndexCache:
    return HistoryIndexCache(
        config.HISTORY_DIR,
        include_empty=config.INCLUDE_EMPTY_VERSIONS,
        skip_folders=config.PROJECT_SKIP_FOLDERS,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    logger.info("RecoverDash backend starting up")
    initialize_observability(app)

    cache = create_history_cache()
    app.state.history_cache = cache
    if not cache.history_exists():
        logger.warning(f"No local history found at {cache.history_root}")

    # The index is built lazily on the first query.
    if config.WATCH_ENABLED:
        await history_watcher.start(cache)

    yield

    logger.info("RecoverDash backend shutting down")
    await history_watcher.stop()
    shutdown_observability(app)


app = FastAPI(
    title="RecoverDash API",
    description="Browse and recover files from the editor's local history",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS for a local frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        config.FRONTEND_ORIGIN,
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(history_router)
app.include_router(cache_router)


@app.get("/api/health")
def health():
    """Health check endpoint."""
    cache = getattr(app.state, "history_cache", None)
    return {
        "status": "ok",
        "history": cache.state if cache is not None else "detached",
        "watcher": "running" if history_watcher.is_running else "stopped",
    }


def run() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    run()
