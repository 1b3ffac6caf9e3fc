"""
Wardmap — Configuration via pydantic-settings.

Environment variables override defaults.  The platform setting drives the
simplification tolerance and the viewport throttle window, so constrained
devices get coarser boundaries and fewer re-filters.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import ClassVar, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

Platform = Literal["ios", "android", "default"]

# Douglas-Peucker tolerance (degrees) per client platform.
PLATFORM_TOLERANCE: dict[str, float] = {
    "ios": 0.003,
    "android": 0.008,
    "default": 0.005,
}

# Minimum interval between viewport re-filters (ms) per client platform.
PLATFORM_THROTTLE_MS: dict[str, int] = {
    "ios": 100,
    "android": 200,
    "default": 100,
}

# Most polygons a client draws at once per platform.
PLATFORM_MAX_POLYGONS: dict[str, int] = {
    "ios": 50,
    "android": 25,
    "default": 50,
}


class Settings(BaseSettings):
    env_path: ClassVar[str] = str(Path(__file__).resolve().parents[2] / ".env")
    model_config = SettingsConfigDict(
        env_file=env_path,
        env_file_encoding="utf-8",
        env_prefix="WARDMAP_",
        # Ignore unrelated environment variables (for example the
        # POSTGRES_* variables used by Docker) so loading the env_file
        # does not cause validation errors for unknown keys.
        extra="ignore",
    )

    # ── Application ────────────────────────────────────────────────
    app_name: str = "Wardmap"
    debug: bool = False

    # ── Database (PostGIS) ─────────────────────────────────────────
    db_host: str = "localhost"
    db_port: int = 5432
    db_user: str = "wardmap"
    db_password: str = "wardmap_secret"
    db_name: str = "wardmap"

    @property
    def database_url(self) -> str:
        """Async SQLAlchemy connection string (asyncpg driver)."""
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    # ── Boundary sources ───────────────────────────────────────────
    api_base_url: str = "http://localhost:8000"
    # Long-lived public copy of the raw ward boundaries, used when the
    # API is unreachable.
    fallback_geojson_url: str = (
        "https://raw.githubusercontent.com/Thabang-777/wards-geojson/main/wards.geojson"
    )
    http_timeout: float = 30.0

    # ── Client cache ───────────────────────────────────────────────
    cache_key: str = "cached_wards_geojson"
    cache_expiry_hours: float = 2.0
    cache_dir: Path = Path(".wardmap-cache")

    # ── Simplification ─────────────────────────────────────────────
    platform: Platform = "default"
    # Explicit tolerance; when unset the platform default is used.
    simplify_tolerance: float | None = None
    # Rings longer than this are decimated to half of it.
    max_ring_points: int = 100

    @property
    def effective_tolerance(self) -> float:
        if self.simplify_tolerance is not None:
            return self.simplify_tolerance
        return PLATFORM_TOLERANCE[self.platform]

    # ── Spatial filter / degradation policy ────────────────────────
    viewport_margin: float = 0.01
    stride_threshold: int = 50
    max_render_features: int = 100
    initial_feature_limit: int = 50
    viewport_throttle_ms: int | None = None

    @property
    def throttle_interval(self) -> float:
        """Viewport throttle window in seconds."""
        ms = self.viewport_throttle_ms
        if ms is None:
            ms = PLATFORM_THROTTLE_MS[self.platform]
        return ms / 1000.0

    @property
    def max_polygons(self) -> int:
        return PLATFORM_MAX_POLYGONS[self.platform]

    # ── Ingestion ──────────────────────────────────────────────────
    import_batch_size: int = 100
    import_tolerance: float = 0.001

    # ── CORS ───────────────────────────────────────────────────────
    cors_origins: str = "http://localhost:8081,http://localhost:19006"

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse the comma-separated CORS origins into a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
