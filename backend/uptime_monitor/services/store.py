"""JSON file store for service configuration.

Only configuration is persisted; status fields are rebuilt by the scheduler
after every start. Writes go to a temporary sibling file which is then
swapped into place, so a crash mid-write leaves the previous store intact.
"""
import contextlib
import json
import logging
import os
from pathlib import Path
from typing import List, Sequence, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..models import ServiceKind, ServiceRecord, LEGACY_KIND_CODES

logger = logging.getLogger(__name__)


class StoredService(BaseModel):
    """One entry of the persisted services array."""
    id: str = Field(..., min_length=1)
    name: str = ""
    type: ServiceKind
    host: str = Field(..., min_length=1)
    port: int = 80
    path: str = "/"
    expected_response: str = Field("*", alias="expectedResponse")
    check_interval: int = Field(60, alias="checkInterval", ge=1)

    class Config:
        populate_by_name = True

    @field_validator("type", mode="before")
    @classmethod
    def _legacy_type_code(cls, value):
        # The firmware stored the enum ordinal instead of its name
        if isinstance(value, int) and not isinstance(value, bool):
            if value not in LEGACY_KIND_CODES:
                raise ValueError(f"unknown service type code {value}")
            return LEGACY_KIND_CODES[value]
        return value

    def to_record(self) -> ServiceRecord:
        return ServiceRecord(
            id=self.id,
            name=self.name,
            kind=self.type,
            host=self.host,
            port=self.port,
            path=self.path,
            expected_response=self.expected_response,
            check_interval=self.check_interval,
        )


class StoredServices(BaseModel):
    """Top-level store document."""
    services: List[StoredService]


class ServiceStore:
    """Reads and writes the services document at a fixed path."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> List[ServiceRecord]:
        """Load records from disk.

        A missing store is a cold start. An unreadable or malformed store is
        reported and treated as empty; it is never partially applied.
        """
        if not self.path.exists():
            logger.info(f"No service store at {self.path}, starting fresh")
            return []

        try:
            raw = self.path.read_bytes()
            document = StoredServices.model_validate(json.loads(raw))
        except (OSError, ValueError, ValidationError) as e:
            logger.warning(f"Service store {self.path} is unreadable, starting empty: {e}")
            return []

        seen = set()
        for entry in document.services:
            if entry.id in seen:
                logger.warning(
                    f"Service store {self.path} has duplicate id {entry.id}, starting empty"
                )
                return []
            seen.add(entry.id)

        records = [entry.to_record() for entry in document.services]
        logger.info(f"Loaded {len(records)} services from {self.path}")
        return records

    def save(self, records: Sequence[ServiceRecord]) -> bool:
        """Overwrite the store with the given records.

        Returns False if the write failed; the failure is logged and the next
        successful save supersedes it.
        """
        document = {"services": [record.to_durable_dict() for record in records]}
        payload = json.dumps(document, indent=2).encode("utf-8")
        tmp_path = self.path.with_name(f".{self.path.name}.tmp")

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
        except OSError as e:
            with contextlib.suppress(OSError):
                tmp_path.unlink(missing_ok=True)
            logger.error(f"Failed to write service store {self.path}: {e}")
            return False

        logger.debug(f"Saved {len(records)} services to {self.path}")
        return True
