"""Services for health checking, scheduling and persistence."""
from .checker import CheckerService, CheckResult
from .registry import ServiceRegistry
from .scheduler import SchedulerService
from .store import ServiceStore

__all__ = ["CheckerService", "CheckResult", "ServiceRegistry", "SchedulerService", "ServiceStore"]
