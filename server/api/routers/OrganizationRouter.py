"""Organization router - cluster analysis and plan execution."""

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from server.dependencies.auth import verify_api_key
from shared.errors import InsufficientData
from shared.models.organization import OrganizationPlan, OrganizationRequest

organization_router = APIRouter(prefix="/organization")


@organization_router.post(
    "/analyze",
    dependencies=[Depends(verify_api_key)],
    tags=["Organization"],
)
async def handle_analyze(request: Request, body: OrganizationRequest) -> JSONResponse:
    """Suggest clusters for a user's indexed files.

    Raises:
        HTTPException: 422 if too few files have embeddings.
    """
    try:
        analysis = await request.app.state.organization_service.do_analyze(
            body.user_id,
            method=body.method,
            max_clusters=body.max_clusters,
            min_cluster_size=body.min_cluster_size,
        )
    except InsufficientData as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    return JSONResponse(content=analysis.model_dump(mode="json"))


@organization_router.post(
    "/execute",
    dependencies=[Depends(verify_api_key)],
    tags=["Organization"],
)
async def handle_execute(request: Request, body: OrganizationPlan) -> JSONResponse:
    """Create folders and shortcuts for the chosen clusters."""
    request.app.state.logging.info(
        "Executing organization plan - user_id=%s clusters=%d", body.user_id, len(body.clusters)
    )
    result = await request.app.state.organization_service.do_execute(body.user_id, body)
    return JSONResponse(content=result.model_dump(mode="json"))
