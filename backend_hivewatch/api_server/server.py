"""
FastAPI server: read-only API over engine snapshots.

Exposes GET /snapshots and GET /snapshots/{subsystem} returning the latest
published data with its version and stale flag. Never computes anything;
the engine runs in the app lifespan on the same event loop.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Callable

from fastapi import Depends, FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from backend_hivewatch.agent_worker import HiveWatchEngine
from backend_hivewatch.hivewatch_logging import get_logger
from backend_hivewatch.snapshot import Snapshot, to_jsonable

logger = get_logger(__name__)


# -----------------------------------------------------------------------------
# Response models
# -----------------------------------------------------------------------------


class SnapshotResponse(BaseModel):
    """One subsystem snapshot."""

    subsystem: str = Field(..., description="global_stats | account_stats | rich_list | transaction_stream")
    version: int = Field(..., ge=0, description="Incremented on every successful refresh")
    stale: bool = Field(..., description="True if the latest refresh failed and data is from an earlier cycle")
    error: str | None = Field(None, description="Error from the latest failed refresh")
    updated_at: float | None = Field(None, description="Unix time of the last successful refresh")
    data: Any = Field(None, description="Subsystem payload; decimals are rendered as strings")


class TrackAccountRequest(BaseModel):
    """PUT /account body: trusted username obtained after signer login."""

    username: str = Field(..., min_length=3, max_length=17, description="Hive account name")


class TrackAccountResponse(BaseModel):
    username: str | None = Field(None, description="Account now tracked by account_stats")


def _to_response(snap: Snapshot) -> SnapshotResponse:
    return SnapshotResponse(
        subsystem=snap.subsystem,
        version=snap.version,
        stale=snap.stale,
        error=snap.error,
        updated_at=snap.updated_at,
        data=to_jsonable(snap.data),
    )


def get_engine(request: Request) -> HiveWatchEngine:
    """Dependency: engine started in the app lifespan."""
    return request.app.state.engine


# -----------------------------------------------------------------------------
# App factory
# -----------------------------------------------------------------------------


def create_app(engine_factory: Callable[[], HiveWatchEngine] = HiveWatchEngine) -> FastAPI:
    """Build the app; the engine is created and started in the lifespan and stopped on shutdown."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = engine_factory()
        app.state.engine = engine
        await engine.start()
        logger.info("api_engine_started")
        try:
            yield
        finally:
            await engine.stop()
            logger.info("api_engine_stopped")

    app = FastAPI(title="HiveWatch", version="0.1.0", lifespan=lifespan)

    @app.get("/health")
    def health(engine: HiveWatchEngine = Depends(get_engine)) -> dict[str, Any]:
        return {"status": "ok", **engine.health()}

    @app.get("/snapshots", response_model=dict[str, SnapshotResponse])
    def list_snapshots(engine: HiveWatchEngine = Depends(get_engine)) -> dict[str, SnapshotResponse]:
        return {name: _to_response(snap) for name, snap in engine.publisher.all().items()}

    @app.get("/snapshots/{subsystem}", response_model=SnapshotResponse)
    def get_snapshot(subsystem: str, engine: HiveWatchEngine = Depends(get_engine)) -> SnapshotResponse:
        try:
            snap = engine.publisher.get(subsystem)
        except KeyError:
            raise HTTPException(status_code=404, detail=f"Unknown subsystem: {subsystem}")
        return _to_response(snap)

    @app.put("/account", response_model=TrackAccountResponse)
    async def track_account(body: TrackAccountRequest, engine: HiveWatchEngine = Depends(get_engine)) -> TrackAccountResponse:
        engine.track_account(body.username)
        return TrackAccountResponse(username=engine.tracked_account)

    @app.delete("/account", response_model=TrackAccountResponse)
    async def untrack_account(engine: HiveWatchEngine = Depends(get_engine)) -> TrackAccountResponse:
        engine.track_account(None)
        return TrackAccountResponse(username=None)

    return app
