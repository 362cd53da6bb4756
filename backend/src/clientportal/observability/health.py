"""Health checks for the components the API depends on.

``database`` proves connectivity; ``schema`` proves the tenant tables exist,
which catches a fresh database that was never initialized.
"""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional

from sqlalchemy import select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Membership, Organization
from .logging_config import get_logger

logger = get_logger(__name__)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


@dataclass
class ComponentHealth:
    status: HealthStatus
    message: Optional[str] = None
    latency_ms: Optional[float] = None


def _timed(component: str, check: Callable[[], None], ok_message: str) -> ComponentHealth:
    started = time.perf_counter()
    try:
        check()
    except SQLAlchemyError as e:
        logger.error(f"Health check '{component}' failed: {e}", extra={"component": component})
        return ComponentHealth(status=HealthStatus.UNHEALTHY, message=f"{component} check failed")

    return ComponentHealth(
        status=HealthStatus.HEALTHY,
        message=ok_message,
        latency_ms=round((time.perf_counter() - started) * 1000, 2),
    )


def check_database_health(db: Session) -> ComponentHealth:
    return _timed("database", lambda: db.execute(text("SELECT 1")), "Database connection OK")


def check_schema_health(db: Session) -> ComponentHealth:
    """Query the organization and membership tables without reading rows."""
    def query_tables():
        db.execute(select(Organization.id).limit(0))
        db.execute(select(Membership.id).limit(0))

    return _timed("schema", query_tables, "Tenant tables present")


def collect_health(db: Session) -> Dict[str, ComponentHealth]:
    components = {"database": check_database_health(db)}
    if components["database"].status == HealthStatus.HEALTHY:
        components["schema"] = check_schema_health(db)
    return components


def get_overall_health(components: Dict[str, ComponentHealth]) -> HealthStatus:
    if all(c.status == HealthStatus.HEALTHY for c in components.values()):
        return HealthStatus.HEALTHY
    return HealthStatus.UNHEALTHY
