"""Service registry - the ordered, in-memory table of monitored services."""
import asyncio
import logging
import random
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, List, Optional, Set

from ..models import ServiceKind, ServiceRecord, ANY_RESPONSE
from .store import ServiceStore

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 20
DEFAULT_PORT = 80
DEFAULT_PATH = "/"
DEFAULT_CHECK_INTERVAL = 60
MIN_CHECK_INTERVAL = 10


class RegistryError(Exception):
    """Base error for rejected registry operations."""
    code = "RegistryError"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CapacityExceededError(RegistryError):
    code = "CapacityExceeded"


class InvalidKindError(RegistryError):
    code = "InvalidKind"


class InvalidFieldError(RegistryError):
    code = "InvalidField"


class ServiceNotFoundError(RegistryError):
    code = "NotFound"
    status_code = 404


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ServiceRegistry:
    """Insertion-ordered services keyed by id.

    Create and delete persist the configuration through the store. Status
    fields are written only by the scheduler via mark_checked and
    update_status, and are never persisted.
    """

    def __init__(
        self,
        store: ServiceStore,
        capacity: int = DEFAULT_CAPACITY,
        min_check_interval: int = MIN_CHECK_INTERVAL,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.capacity = capacity
        self.min_check_interval = min_check_interval
        self._clock = clock or _utcnow
        self._services: "OrderedDict[str, ServiceRecord]" = OrderedDict()
        self._issued_ids: Set[str] = set()
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._services)

    def __contains__(self, service_id: str) -> bool:
        return service_id in self._services

    def now(self) -> datetime:
        return self._clock()

    def load(self, records: Iterable[ServiceRecord]):
        """Replace the registry contents with records read at startup."""
        self._services.clear()
        for record in records:
            if len(self._services) >= self.capacity:
                logger.warning(
                    f"Service store holds more than {self.capacity} services, ignoring the rest"
                )
                break
            self._services[record.id] = record
            self._issued_ids.add(record.id)

    async def list_services(self) -> List[ServiceRecord]:
        """Snapshot of all services in insertion order."""
        async with self._lock:
            return list(self._services.values())

    def get(self, service_id: str) -> Optional[ServiceRecord]:
        return self._services.get(service_id)

    async def create(
        self,
        name: Optional[str],
        kind: Any,
        host: Any,
        port: Optional[int] = None,
        path: Optional[str] = None,
        expected_response: Optional[str] = None,
        check_interval: Optional[int] = None,
    ) -> ServiceRecord:
        """Validate, add and persist a new service."""
        async with self._lock:
            if len(self._services) >= self.capacity:
                raise CapacityExceededError("Maximum services reached")

            try:
                service_kind = ServiceKind(kind)
            except (ValueError, TypeError):
                raise InvalidKindError(f"Invalid service type: {kind!r}") from None

            if host is not None and not isinstance(host, str):
                raise InvalidFieldError(f"Invalid host: {host!r}")
            host = (host or "").strip()
            if not host:
                raise InvalidFieldError("host is required")
            if host.startswith("-") or any(c.isspace() for c in host):
                raise InvalidFieldError(f"Invalid host: {host!r}")

            if port is None:
                port = DEFAULT_PORT
            if not 0 < port < 65536:
                raise InvalidFieldError(f"Invalid port: {port}")

            if check_interval is None:
                check_interval = DEFAULT_CHECK_INTERVAL
            if check_interval < self.min_check_interval:
                raise InvalidFieldError(
                    f"checkInterval must be at least {self.min_check_interval} seconds"
                )

            path = path or DEFAULT_PATH
            if not path.startswith("/"):
                path = "/" + path

            record = ServiceRecord(
                id=self._generate_id(),
                name=name or "",
                kind=service_kind,
                host=host,
                port=port,
                path=path,
                expected_response=ANY_RESPONSE if expected_response is None else expected_response,
                check_interval=check_interval,
            )
            self._services[record.id] = record
            self.store.save(list(self._services.values()))

        logger.info(f"Added service '{record.name}' ({record.kind.value} {record.host}) as {record.id}")
        return record

    async def delete(self, service_id: str):
        """Remove a service and persist the remaining set."""
        async with self._lock:
            record = self._services.pop(service_id, None)
            if record is None:
                raise ServiceNotFoundError("Service not found")
            self.store.save(list(self._services.values()))

        logger.info(f"Removed service '{record.name}' ({service_id})")

    def mark_checked(self, service_id: str, now: datetime):
        """Stamp a service as checked before its check is dispatched."""
        record = self._services.get(service_id)
        if record is not None:
            record.last_checked_at = now

    def update_status(
        self,
        service_id: str,
        is_up: bool,
        error: Optional[str],
        now: datetime,
    ) -> Optional[bool]:
        """Apply a check verdict.

        Returns True if the up/down state flipped, False if not, and None if
        the service was deleted while its check was in flight.
        """
        record = self._services.get(service_id)
        if record is None:
            return None

        was_up = record.is_up
        record.is_up = is_up
        record.last_checked_at = now
        if is_up:
            record.last_up_at = now
            record.last_error = ""
        else:
            record.last_error = error or ""
        return was_up != is_up

    def _generate_id(self) -> str:
        # Millisecond timestamp plus a random suffix, as the firmware did
        while True:
            stamp = int(self._clock().timestamp() * 1000)
            service_id = f"{stamp}{random.randint(1000, 9999)}"
            if service_id not in self._services and service_id not in self._issued_ids:
                self._issued_ids.add(service_id)
                return service_id
