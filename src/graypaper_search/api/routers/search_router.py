"""Search endpoints, one per content domain.

    GET /search/messages?q=...&page=1&pageSize=10&searchMode=fuzzy
    GET /search/graypaper?q=...
    GET /search/pages?q=...&site=...
    GET /search/discords?q=...&channelId=...
"""

from fastapi import APIRouter, HTTPException, Path, Request
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import ValidationError

from graypaper_search.deps import SearchServiceDep
from graypaper_search.repository.domains import UnknownDomainError
from graypaper_search.schemas.search import SearchRequest

router = APIRouter(prefix="/search", tags=["search"])


@router.get("/{domain}")
async def search(
    request: Request,
    search_service: SearchServiceDep,
    domain: str = Path(description="Content domain: messages, graypaper, pages or discords"),
) -> JSONResponse:
    """Search one content domain.

    Query parameters are validated here rather than by FastAPI so a bad
    request gets the flat ``{"error": ...}`` body clients expect.
    """
    try:
        search_request = SearchRequest.model_validate(dict(request.query_params))
    except ValidationError as exc:
        logger.debug(f"Rejected search parameters for {domain}: {exc.errors()}")
        return JSONResponse(status_code=400, content={"error": "Invalid query parameters"})

    try:
        result = await search_service.search(domain, search_request)
    except UnknownDomainError as exc:
        raise HTTPException(status_code=404, detail=str(exc))

    return JSONResponse(content=result.to_response())
