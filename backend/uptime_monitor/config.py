"""Application configuration from environment variables."""
import os
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Directory holding the persisted service store
    data_path: str = "/data"

    # File name of the service store inside DATA_PATH
    store_filename: str = "services.json"

    # Web server port
    web_port: int = 8000

    # Scheduler tick cadence in seconds (sampling granularity for checks)
    check_tick_seconds: int = 5

    # Upper bound for a single health check
    check_timeout_seconds: float = 5.0

    # Maximum number of monitored services
    max_services: int = 20

    # Checks allowed in flight at once
    max_concurrent_checks: int = 4

    # Smallest per-service check interval accepted at creation
    min_check_interval: int = 10

    # ICMP echo requests per ping check
    ping_count: int = 3

    log_level: str = "INFO"

    class Config:
        env_prefix = ""
        case_sensitive = False


settings = Settings()


def get_store_path() -> str:
    """Get the path of the JSON service store."""
    return os.path.join(settings.data_path, settings.store_filename)
