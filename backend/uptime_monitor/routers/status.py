"""Status overview API for dashboard."""
from fastapi import APIRouter, Depends

from ..dependencies import get_registry
from ..schemas.service import StatusOverview
from ..services.registry import ServiceRegistry

router = APIRouter(prefix="/api/status", tags=["status"])


@router.get("", response_model=StatusOverview)
async def get_status_overview(registry: ServiceRegistry = Depends(get_registry)):
    """Get dashboard overview counts."""
    services = await registry.list_services()

    unchecked = sum(1 for s in services if s.last_checked_at is None)
    up = sum(1 for s in services if s.last_checked_at is not None and s.is_up)

    return StatusOverview(
        total=len(services),
        up=up,
        down=len(services) - up - unchecked,
        unchecked=unchecked,
        capacity=registry.capacity,
    )
