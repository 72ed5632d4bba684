"""Configuration management."""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings pulled from STIPPLE_* environment variables."""

    # Stippling defaults
    default_stipple_radius: float = Field(default=2.0, gt=0, description="Initial stipple radius")
    default_error_threshold: float = Field(default=0.0, ge=0, description="Initial error threshold")
    default_convergence_rate: float = Field(default=0.01, ge=0, description="Error threshold increase per iteration")
    default_max_iterations: int = Field(default=100, ge=0, description="Iteration cap")

    # Worker
    worker_start_method: str = Field(default="spawn", description="multiprocessing start method")
    worker_poll_interval: float = Field(default=0.1, gt=0, description="Seconds between liveness checks")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (json or console)")

    class Config:
        env_prefix = "STIPPLE_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
