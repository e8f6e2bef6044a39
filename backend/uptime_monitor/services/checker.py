"""Checker service - per-kind health checks for home hubs, media servers, HTTP and ping."""
import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional

import httpx

from ..config import settings
from ..models import ServiceKind, ServiceRecord, ANY_RESPONSE

logger = logging.getLogger(__name__)


@dataclass
class CheckResult:
    """Verdict of a single health check."""
    is_up: bool
    error: Optional[str] = None


def _connection_failed(exc: Exception) -> CheckResult:
    return CheckResult(is_up=False, error=f"Connection failed: {type(exc).__name__}")


class HttpCheck(ABC):
    """Base for checks that issue one HTTP GET against the service."""

    def __init__(self, timeout: float, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self.transport = transport

    @abstractmethod
    def build_url(self, service: ServiceRecord) -> str:
        """URL requested for this kind of service."""

    @abstractmethod
    def evaluate(self, service: ServiceRecord, response: httpx.Response) -> CheckResult:
        """Verdict for a completed response."""

    async def check(self, service: ServiceRecord) -> CheckResult:
        url = self.build_url(service)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                follow_redirects=False,
                transport=self.transport,
            ) as client:
                # Per-phase httpx timeouts do not bound a slowly trickled body
                response = await asyncio.wait_for(client.get(url), timeout=self.timeout)
        except (httpx.HTTPError, httpx.InvalidURL, asyncio.TimeoutError) as e:
            logger.debug(f"GET {url} failed: {e!r}")
            return _connection_failed(e)
        return self.evaluate(service, response)


class HomeHubCheck(HttpCheck):
    """Home hub: alive if /api/ answers at all.

    The hub replies 404 on this path, so any completed response counts as
    up. The payload is not inspected.
    """

    def build_url(self, service: ServiceRecord) -> str:
        return f"http://{service.host}:{service.port}/api/"

    def evaluate(self, service: ServiceRecord, response: httpx.Response) -> CheckResult:
        return CheckResult(is_up=True)


class MediaServerCheck(HttpCheck):
    """Media server: /health must answer exactly 200."""

    def build_url(self, service: ServiceRecord) -> str:
        return f"http://{service.host}:{service.port}/health"

    def evaluate(self, service: ServiceRecord, response: httpx.Response) -> CheckResult:
        if response.status_code == 200:
            return CheckResult(is_up=True)
        return CheckResult(is_up=False, error=f"Connection failed: {response.status_code}")


class HttpGetCheck(HttpCheck):
    """Generic GET: status 200 plus an optional body substring."""

    def build_url(self, service: ServiceRecord) -> str:
        return f"http://{service.host}:{service.port}{service.path}"

    def evaluate(self, service: ServiceRecord, response: httpx.Response) -> CheckResult:
        if response.status_code != 200:
            return CheckResult(is_up=False, error=f"HTTP {response.status_code}")

        if service.expected_response == ANY_RESPONSE:
            return CheckResult(is_up=True)

        if service.expected_response in response.text:
            return CheckResult(is_up=True)
        return CheckResult(is_up=False, error="Response mismatch")


class PingCheck:
    """ICMP reachability using the system ping binary."""

    def __init__(self, timeout: float, count: int = 3):
        self.timeout = timeout
        self.count = count

    async def check(self, service: ServiceRecord) -> CheckResult:
        # -c: number of echo requests
        # -w: deadline in seconds for the whole run
        deadline = max(1, int(self.timeout))
        try:
            proc = await asyncio.create_subprocess_exec(
                "ping", "-c", str(self.count), "-w", str(deadline), service.host,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            logger.warning(f"Could not run ping for {service.host}: {e}")
            return CheckResult(is_up=False, error="Ping timeout")

        try:
            returncode = await asyncio.wait_for(proc.wait(), timeout=self.timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            return CheckResult(is_up=False, error="Ping timeout")

        if returncode == 0:
            return CheckResult(is_up=True)
        return CheckResult(is_up=False, error="Ping timeout")


class CheckerService:
    """Dispatches a service to the check strategy for its kind."""

    def __init__(
        self,
        timeout: float = 5.0,
        ping_count: int = 3,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self.strategies: Dict[ServiceKind, object] = {
            ServiceKind.HOME_HUB: HomeHubCheck(timeout, transport),
            ServiceKind.MEDIA_SERVER: MediaServerCheck(timeout, transport),
            ServiceKind.HTTP_GET: HttpGetCheck(timeout, transport),
            ServiceKind.PING: PingCheck(timeout, ping_count),
        }

    async def check(self, service: ServiceRecord) -> CheckResult:
        """Run the check for a service. Never raises."""
        strategy = self.strategies.get(service.kind)
        if strategy is None:
            return CheckResult(is_up=False, error=f"Unknown service type: {service.kind}")

        try:
            return await strategy.check(service)
        except Exception as e:
            logger.error(f"Error checking service {service.id}: {e}")
            return CheckResult(is_up=False, error=str(e) or type(e).__name__)


def create_checker_service() -> CheckerService:
    """Build a checker from application settings."""
    return CheckerService(
        timeout=settings.check_timeout_seconds,
        ping_count=settings.ping_count,
    )
