"""
Map viewport controller.

Glue between a map widget's region-change callbacks and the boundary
store.  Region changes are throttled per platform through
``RateLimiter``; each effective change recomputes the zoom level and
re-filters the working set.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

from wardmap.client.boundary_store import BoundaryStore
from wardmap.config import Settings
from wardmap.spatial.filter import renderable_features, zoom_level_for_delta
from wardmap.spatial.geometry import ViewportBounds
from wardmap.spatial.ratelimit import RateLimiter

logger = logging.getLogger(__name__)


class MapViewportController:
    """
    Tracks the current viewport and the features visible in it.

    ``visible`` is ``None`` until the store has a collection; before the
    first region change it holds the store's initial slice.
    """

    def __init__(
        self,
        store: BoundaryStore,
        settings: Settings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.settings = settings or store.settings
        self.viewport: ViewportBounds | None = None
        self.zoom_level = 10
        self.visible: dict[str, Any] | None = None
        self._limiter = RateLimiter(self._apply, self.settings.throttle_interval, clock=clock)

    def on_region_change(
        self,
        latitude: float,
        longitude: float,
        latitude_delta: float,
        longitude_delta: float,
    ) -> bool:
        """Report a map movement.  Returns True if the filter ran now."""
        viewport = ViewportBounds.from_region(latitude, longitude, latitude_delta, longitude_delta)
        zoom = zoom_level_for_delta(longitude_delta)
        return self._limiter.trigger(viewport, zoom)

    def poll(self) -> bool:
        """Apply a throttled region change whose window has elapsed."""
        return self._limiter.poll()

    def flush(self) -> None:
        """Apply any throttled region change immediately."""
        self._limiter.flush()

    def refresh_visible(self) -> dict[str, Any] | None:
        """Re-filter after the store's working set changed."""
        self.visible = self.store.visible_features(self.viewport)
        return self.visible

    def renderable(self) -> list[dict[str, Any]]:
        """Visible features within the zoom and platform polygon budget."""
        if self.visible is None:
            self.refresh_visible()
        return renderable_features(self.visible, self.zoom_level, self.settings.max_polygons)

    def _apply(self, viewport: ViewportBounds, zoom_level: int) -> None:
        self.viewport = viewport
        self.zoom_level = zoom_level
        self.refresh_visible()
        logger.debug(
            "Viewport %s at zoom %d shows %d of %d wards",
            viewport.as_dict(), zoom_level,
            len((self.visible or {}).get("features") or []),
            self.store.total_features,
        )
