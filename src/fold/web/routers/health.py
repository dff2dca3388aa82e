from datetime import datetime

from fastapi import APIRouter
from pydantic import BaseModel

from fold.utils import now
from fold.web.deps import AppDep
from fold.web.openapi import API_VERSION

router = APIRouter(tags=["health"])


class RootResponse(BaseModel):
    success: bool = True
    message: str
    version: str
    timestamp: datetime


class HealthResponse(BaseModel):
    success: bool = True
    status: str
    uptime: float
    timestamp: datetime


@router.get("/", summary="API status", operation_id="getRoot")
async def root() -> RootResponse:
    return RootResponse(message="Fold Backend API is running", version=API_VERSION, timestamp=now())


@router.get(
    "/health",
    summary="Health check",
    description="Liveness probe. `uptime` is measured in seconds with a monotonic clock.",
    operation_id="getHealth",
)
async def health_check(app: AppDep) -> HealthResponse:
    return HealthResponse(status="healthy", uptime=app.uptime(), timestamp=now())
