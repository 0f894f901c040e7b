"""Application configuration."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from demand_matrix.models.entities import AssignmentFilter


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    app_name: str = "Demand Matrix Service"
    app_env: str = "development"
    api_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Hourly rate applied to skills missing from the fee-rate map.
    fallback_fee_rate: float = Field(default=150.0, gt=0)
    # Months processed per batch before yielding control.
    batch_size: int = Field(default=6, ge=1)
    revenue_concurrency_limit: int = Field(default=5, ge=1)
    total_demand_tolerance: float = Field(default=0.01, gt=0)
    slow_transform_warning_seconds: float = Field(default=2.0, gt=0)
    debug_mode: bool = False

    # Keep .env support for comma-separated values (non-JSON).
    allowed_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def parse_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""

    return Settings()


@dataclass(frozen=True, slots=True)
class TransformOptions:
    """Per-call knobs for one matrix transformation."""

    fallback_fee_rate: float = 150.0
    batch_size: int = 6
    revenue_concurrency_limit: int = 5
    total_demand_tolerance: float = 0.01
    slow_transform_warning_seconds: float = 2.0
    debug_mode: bool = False
    assignment_filter: AssignmentFilter = AssignmentFilter.ALL

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1.")
        if self.revenue_concurrency_limit < 1:
            raise ValueError("revenue_concurrency_limit must be at least 1.")
        if self.fallback_fee_rate <= 0:
            raise ValueError("fallback_fee_rate must be greater than zero.")

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        assignment_filter: AssignmentFilter = AssignmentFilter.ALL,
    ) -> TransformOptions:
        settings = settings or get_settings()
        return cls(
            fallback_fee_rate=settings.fallback_fee_rate,
            batch_size=settings.batch_size,
            revenue_concurrency_limit=settings.revenue_concurrency_limit,
            total_demand_tolerance=settings.total_demand_tolerance,
            slow_transform_warning_seconds=settings.slow_transform_warning_seconds,
            debug_mode=settings.debug_mode,
            assignment_filter=assignment_filter,
        )
