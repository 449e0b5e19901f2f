"""Liveness endpoint."""

from fastapi import APIRouter
from pydantic import BaseModel

from graypaper_search.utils import utc_now

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    timestamp: str


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(status="ok", timestamp=utc_now().isoformat() + "Z")
