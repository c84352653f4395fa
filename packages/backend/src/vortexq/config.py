"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with the
SERVER_SERVICE_ prefix. No config files, only env vars (12-factor style).

Learn: Every field has a working default so the server starts with no
environment at all: `vortexq serve` listens on 0.0.0.0:8085 and swirls
once per second.
"""

from pydantic import Field
from pydantic_settings import BaseSettings

from vortexq import version


class Settings(BaseSettings):
    """All app configuration. Set via SERVER_SERVICE_* env vars."""

    # Server
    host: str = "0.0.0.0"
    port: int = 8085
    log_level: str = "local"  # local | dev | prod | any stdlib level name

    # Build info
    project: str = version.PROJECT
    release: str = version.RELEASE
    build_time: str = version.BUILD_TIME
    commit: str = version.COMMIT

    # Dispatch
    swirl_interval_seconds: float = Field(1.0, gt=0)
    delivery_timeout_seconds: float = Field(5.0, gt=0)
    max_concurrent_deliveries: int = Field(64, ge=1)

    # Shutdown
    readiness_drain_delay_seconds: float = Field(5.0, ge=0)
    shutdown_timeout_seconds: float = Field(15.0, gt=0)

    model_config = {"env_prefix": "SERVER_SERVICE_"}

    @property
    def combined_address(self) -> str:
        return f"{self.host}:{self.port}"

    def build_version(self) -> version.Version:
        return version.Version(
            project=self.project,
            build_time=self.build_time,
            commit=self.commit,
            release=self.release,
        )


# Singleton — import this everywhere
settings = Settings()
