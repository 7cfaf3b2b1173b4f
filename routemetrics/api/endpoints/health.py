from __future__ import annotations

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

from routemetrics.api.models.health import HealthStatus

router = APIRouter()


@router.get("/health/live", response_model=HealthStatus)
async def live():
    return HealthStatus(status="ok")


@router.get("/health/ready", response_model=HealthStatus)
async def ready(request: Request):
    """
    Readiness reflects ability to serve traffic.
    A dedicated metrics listener that failed to bind is reported but does not
    make the application unready.
    """
    problems: list[str] = []

    metrics = getattr(request.app.state, "metrics", None)
    if metrics is None:
        return JSONResponse(
            status_code=503,
            content=HealthStatus(status="not_ready", problems=["metrics_not_configured"]).model_dump(),
        )

    if metrics.settings.listen_address and not metrics.listener_running:
        problems.append(f"metrics_listener_down:{metrics.settings.listen_address}")

    return HealthStatus(status="ready", problems=problems)
