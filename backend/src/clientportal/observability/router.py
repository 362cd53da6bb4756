"""Observability API endpoints: Prometheus metrics and health check."""

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy.orm import Session

from ..database import get_db
from .health import collect_health, get_overall_health, HealthStatus

router = APIRouter(tags=["Observability"])


@router.get("/metrics", include_in_schema=False)
def metrics():
    """Expose Prometheus metrics in text exposition format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.get("/health", summary="Health check endpoint")
def health_check(db: Session = Depends(get_db)):
    """Return 200 when all components are healthy, 503 otherwise."""
    components = collect_health(db)
    overall = get_overall_health(components)

    body = {
        "status": overall.value,
        "components": {
            name: {
                "status": c.status.value,
                "message": c.message,
                "latency_ms": c.latency_ms,
            }
            for name, c in components.items()
        },
    }
    code = status.HTTP_200_OK if overall == HealthStatus.HEALTHY else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=code, content=body)
