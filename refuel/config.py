"""
Application Configuration

Uses Pydantic Settings for type-safe configuration.
"""

from typing import List, Literal, Optional
from pydantic_settings import BaseSettings
from pydantic import AliasChoices, Field, field_validator, ConfigDict


class Settings(BaseSettings):
    """Application settings with validation."""

    # === Core ===
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # === CORS ===
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:8081", "http://localhost:19006"],
        description="Allowed CORS origins"
    )

    # === HTTP ===
    http_timeout: float = Field(default=30.0, description="Timeout for provider calls (seconds)")

    # === Overpass (POI provider) ===
    overpass_api_url: str = Field(
        default="https://overpass-api.de/api/interpreter",
        description="Overpass API interpreter endpoint"
    )
    overpass_query_timeout: int = Field(
        default=25,
        description="Server-side query timeout sent in the Overpass query header"
    )

    # === Directions ===
    directions_provider: Literal["mapbox", "osrm", "none"] = Field(default="mapbox")
    mapbox_access_token: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("mapbox_access_token", "mapbox_token"),
    )
    mapbox_api_url: str = Field(default="https://api.mapbox.com/directions/v5/mapbox")
    mapbox_profile: str = Field(default="cycling", description="Mapbox routing profile")
    osrm_api_url: str = Field(default="https://router.project-osrm.org")
    osrm_profile: str = Field(default="cycling")
    detour_concurrency: int = Field(
        default=1,
        ge=1,
        description="Parallel directions requests (1 = one at a time, in route order)"
    )

    # === Route planning ===
    default_max_deviation_km: float = Field(default=5.0, gt=0)
    max_deviation_limit_km: float = Field(default=50.0, gt=0)

    # === Uploads / sessions ===
    max_upload_size_mb: int = Field(default=20)
    session_ttl_minutes: int = Field(default=120)

    @field_validator('cors_origins', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from comma-separated string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(',')]
        return v

    @field_validator('mapbox_access_token')
    @classmethod
    def blank_token_is_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty token as not configured."""
        if v is not None and not v.strip():
            return None
        return v

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


# Global settings instance
settings = Settings()
