"""Operational endpoints: Prometheus metrics, health and readiness."""

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy.orm import Session

from ..database import get_db
from .health import HealthStatus, overall_status, run_health_checks

router = APIRouter(tags=["Observability"])


@router.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.get("/health", summary="Component health")
def health_check(db: Session = Depends(get_db)) -> JSONResponse:
    """Database and schema status; 503 only when the database is unreachable."""
    components = run_health_checks(db)
    status = overall_status(components)

    return JSONResponse(
        status_code=503 if status == HealthStatus.UNHEALTHY else 200,
        content={
            "status": status.value,
            "components": {name: component.to_dict() for name, component in components.items()},
        },
    )


@router.get("/ready", summary="Readiness probe")
def readiness_check(db: Session = Depends(get_db)) -> JSONResponse:
    """Ready once the database answers and the mail tables exist."""
    components = run_health_checks(db)
    if overall_status(components) == HealthStatus.HEALTHY:
        return JSONResponse(content={"status": "ready"})

    problems = [component.message for component in components.values() if component.status != HealthStatus.HEALTHY]
    return JSONResponse(status_code=503, content={"status": "not_ready", "problems": problems})
