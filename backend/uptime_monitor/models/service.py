"""Service model - a monitored target and its last observed status."""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class ServiceKind(str, Enum):
    """Supported service kinds, valued by their wire/store name."""

    HOME_HUB = "home_assistant"
    MEDIA_SERVER = "jellyfin"
    HTTP_GET = "http_get"
    PING = "ping"


# Integer codes written by the original firmware's services.json
LEGACY_KIND_CODES = {
    0: ServiceKind.HOME_HUB,
    1: ServiceKind.MEDIA_SERVER,
    2: ServiceKind.HTTP_GET,
    3: ServiceKind.PING,
}

ANY_RESPONSE = "*"


@dataclass
class ServiceRecord:
    """A monitored service.

    The first block of fields is configuration and is persisted; the
    remainder is status written by the scheduler and reset on restart.
    """

    id: str
    name: str
    kind: ServiceKind
    host: str
    port: int = 80
    path: str = "/"
    expected_response: str = ANY_RESPONSE
    check_interval: int = 60

    is_up: bool = False
    last_checked_at: Optional[datetime] = None
    last_up_at: Optional[datetime] = None
    last_error: str = ""

    def seconds_since_last_check(self, now: datetime) -> int:
        """Whole seconds since the last check, or -1 if never checked."""
        if self.last_checked_at is None:
            return -1
        return int((now - self.last_checked_at).total_seconds())

    def to_durable_dict(self) -> dict:
        """Configuration fields in store order."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.kind.value,
            "host": self.host,
            "port": self.port,
            "path": self.path,
            "expectedResponse": self.expected_response,
            "checkInterval": self.check_interval,
        }
