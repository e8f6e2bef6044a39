"""Pydantic schemas for API request/response models."""
from .service import (
    ServiceCreate,
    ServiceResponse,
    ServiceList,
    ServiceCreated,
    ServiceDeleted,
    ErrorResponse,
    StatusOverview,
)

__all__ = [
    "ServiceCreate",
    "ServiceResponse",
    "ServiceList",
    "ServiceCreated",
    "ServiceDeleted",
    "ErrorResponse",
    "StatusOverview",
]
