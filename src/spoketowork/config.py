"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="STW_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "SpokeToWork Route Optimizer API"
    api_prefix: str = "/api"
    data_root: Path = Field(default=Path("data"), description="Root directory for run outputs.")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    avg_cycling_speed_mph: float = Field(
        default=12.0,
        gt=0.0,
        description="Average cycling speed used to turn miles into minutes.",
    )
    two_opt_max_passes: int = Field(
        default=25,
        ge=1,
        description="Upper bound on full 2-opt passes per optimization.",
    )
    max_waypoints: int = Field(default=50, ge=1, description="Largest stop count accepted for optimization.")
    slow_warning_threshold: int = Field(default=30, ge=1)
    route_cache_ttl_seconds: float = Field(default=300.0, ge=0.0)

    osrm_base_url: Optional[str] = Field(
        default="https://routing.openstreetmap.de/routed-bike",
        description="Base URL for the OSRM bicycle routing service.",
    )
    osrm_profile: Literal["bike", "cycling", "driving", "foot"] = Field(
        default="bike",
        description="OSRM profile to use when fetching route geometry.",
    )
    osrm_timeout_seconds: float = Field(default=15.0, gt=0.0)
    osrm_max_retries: int = Field(default=2, ge=0)
    osrm_backoff_seconds: float = Field(default=1.0, ge=0.0)

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )

    @field_validator("data_root", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_level(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


settings = Settings()
