"""Search router - natural language search over a user's index."""

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from server.dependencies.auth import verify_api_key
from shared.errors import EmbeddingUnavailable
from shared.models.search import SearchRequest

search_router = APIRouter()


@search_router.post(
    "/search",
    dependencies=[Depends(verify_api_key)],
    tags=["Search"],
)
async def handle_search(request: Request, body: SearchRequest) -> JSONResponse:
    """Handle a semantic search request.

    Raises:
        HTTPException: 503 if the query cannot be embedded.
    """
    request.app.state.logging.info("Search received - user_id=%s query=%r", body.user_id, body.query[:80])

    try:
        result = await request.app.state.search_service.do_search(body)
    except EmbeddingUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    return JSONResponse(content=result.model_dump(mode="json"))
