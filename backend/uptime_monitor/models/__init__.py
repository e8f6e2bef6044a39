"""Domain models."""
from .service import ServiceKind, ServiceRecord, LEGACY_KIND_CODES, ANY_RESPONSE

__all__ = ["ServiceKind", "ServiceRecord", "LEGACY_KIND_CODES", "ANY_RESPONSE"]
