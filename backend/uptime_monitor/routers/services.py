"""Service list/create/delete API endpoints."""
from fastapi import APIRouter, Depends

from ..dependencies import get_registry
from ..models import ServiceRecord
from ..schemas.service import (
    ErrorResponse,
    ServiceCreate,
    ServiceCreated,
    ServiceDeleted,
    ServiceList,
    ServiceResponse,
)
from ..services.registry import ServiceRegistry

router = APIRouter(prefix="/api/services", tags=["services"])


def _to_response(service: ServiceRecord, now) -> ServiceResponse:
    return ServiceResponse(
        id=service.id,
        name=service.name,
        type=service.kind.value,
        host=service.host,
        port=service.port,
        path=service.path,
        expected_response=service.expected_response,
        check_interval=service.check_interval,
        is_up=service.is_up,
        seconds_since_last_check=service.seconds_since_last_check(now),
        last_error=service.last_error,
    )


@router.get("", response_model=ServiceList)
async def list_services(registry: ServiceRegistry = Depends(get_registry)):
    """List all services with their current status."""
    services = await registry.list_services()
    now = registry.now()
    return ServiceList(services=[_to_response(s, now) for s in services])


@router.post(
    "",
    response_model=ServiceCreated,
    status_code=201,
    responses={400: {"model": ErrorResponse}},
)
async def create_service(
    service: ServiceCreate,
    registry: ServiceRegistry = Depends(get_registry),
):
    """Create a new service."""
    record = await registry.create(
        name=service.name,
        kind=service.type,
        host=service.host,
        port=service.port,
        path=service.path,
        expected_response=service.expected_response,
        check_interval=service.check_interval,
    )
    return ServiceCreated(id=record.id)


@router.delete(
    "/{service_id}",
    response_model=ServiceDeleted,
    responses={404: {"model": ErrorResponse}},
)
async def delete_service(
    service_id: str,
    registry: ServiceRegistry = Depends(get_registry),
):
    """Delete a service."""
    await registry.delete(service_id)
    return ServiceDeleted()
