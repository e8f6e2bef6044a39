"""Service schemas for API."""
from typing import Any, List, Optional
from pydantic import BaseModel, Field


class ServiceCreate(BaseModel):
    """Schema for creating a new service.

    Kind and host are validated by the registry so that rejections carry
    the registry's error codes.
    """
    name: Optional[str] = None
    type: Any = None
    host: Any = None
    port: Optional[int] = None
    path: Optional[str] = None
    expected_response: Optional[str] = Field(None, alias="expectedResponse")
    check_interval: Optional[int] = Field(None, alias="checkInterval")

    class Config:
        populate_by_name = True


class ServiceResponse(BaseModel):
    """Schema for a service in API responses."""
    id: str
    name: str
    type: str
    host: str
    port: int
    path: str
    expected_response: str = Field(..., alias="expectedResponse")
    check_interval: int = Field(..., alias="checkInterval")
    is_up: bool = Field(..., alias="isUp")
    seconds_since_last_check: int = Field(..., alias="secondsSinceLastCheck")
    last_error: str = Field(..., alias="lastError")

    class Config:
        populate_by_name = True


class ServiceList(BaseModel):
    """All services, in insertion order."""
    services: List[ServiceResponse]


class ServiceCreated(BaseModel):
    success: bool = True
    id: str


class ServiceDeleted(BaseModel):
    success: bool = True


class ErrorResponse(BaseModel):
    """Registry rejection."""
    error: str
    message: str


class StatusOverview(BaseModel):
    """Counts for a dashboard header."""
    total: int
    up: int
    down: int
    unchecked: int
    capacity: int
