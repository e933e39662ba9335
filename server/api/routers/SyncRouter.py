"""Sync router - triggers sync passes and reports index statistics."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from server.dependencies.auth import verify_api_key
from shared.models.sync import SyncRequest

sync_router = APIRouter()


@sync_router.post(
    "/sync",
    dependencies=[Depends(verify_api_key)],
    tags=["Sync"],
)
async def handle_sync(request: Request, body: SyncRequest) -> JSONResponse:
    """Run a sync pass for one user and return its aggregate counts.

    Per-file failures are reported in the result, not as an HTTP error.
    """
    request.app.state.logging.info(
        "Sync requested - user_id=%s strategy=%s limit=%d", body.user_id, body.strategy.value, body.limit
    )
    result = await request.app.state.sync_service.do_sync(body.user_id, strategy=body.strategy, limit=body.limit)
    return JSONResponse(content=result.model_dump(mode="json"))


@sync_router.get(
    "/sync/stats/{user_id}",
    dependencies=[Depends(verify_api_key)],
    tags=["Sync"],
)
async def handle_sync_stats(request: Request, user_id: str) -> JSONResponse:
    stats = await request.app.state.sync_service.do_fetch_sync_stats(user_id)
    return JSONResponse(content=stats.model_dump(mode="json"))


@sync_router.get(
    "/index/files/{user_id}",
    dependencies=[Depends(verify_api_key)],
    tags=["Sync"],
)
async def handle_indexed_files(request: Request, user_id: str) -> JSONResponse:
    files = await request.app.state.sync_service.do_fetch_indexed_files(user_id)
    return JSONResponse(content=[f.model_dump(mode="json") for f in files])
