"""
Ward Resolver
=============
Answers "which ward am I in?" against the boundary store's working set
and lists the known wards.

Lookups run on the unfiltered collection, never on the viewport slice,
so a location just outside the visible map still resolves.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from wardmap.client.api import WardApiClient
from wardmap.client.boundary_store import BoundaryStore
from wardmap.schemas.ward import WardSummary
from wardmap.spatial.geometry import GeoPoint, find_containing_feature
from wardmap.spatial.properties import municipality_of, ward_id_of, ward_name_of

logger = logging.getLogger(__name__)


def summarize(properties: Mapping[str, Any] | None) -> WardSummary:
    """Feature properties → WardSummary via the synonym lists."""
    properties = dict(properties or {})
    ward_id = ward_id_of(properties)
    return WardSummary(
        id=ward_id,
        name=ward_name_of(properties),
        municipality=municipality_of(properties),
        properties=properties,
    )


class WardResolver:
    def __init__(self, store: BoundaryStore) -> None:
        self.store = store
        self._metadata: list[WardSummary] | None = None

    def resolve_ward(self, point: GeoPoint | None) -> WardSummary | None:
        """Ward whose boundary contains ``point``; first match wins."""
        feature = find_containing_feature(point, self.store.collection)
        if feature is None:
            return None
        return summarize(feature.get("properties"))

    def list_wards(self) -> list[WardSummary]:
        """
        Known wards.  Uses metadata from ``load_metadata`` when it is
        non-empty, otherwise whatever the loaded collection carries.
        Never fetches.
        """
        if self._metadata:
            return list(self._metadata)
        collection = self.store.collection or {}
        return [summarize(f.get("properties")) for f in collection.get("features") or []]

    async def load_metadata(self, api: WardApiClient) -> list[WardSummary]:
        """Fetch the ward list once and keep it for ``list_wards``."""
        wards = await api.get_wards(municipality_id=self.store.municipality_id)
        self._metadata = [
            WardSummary(
                id=w.get("ward_id"),
                name=w.get("name"),
                municipality=w.get("municipality_id"),
                properties=w.get("properties") or {},
            )
            for w in wards
        ]
        logger.info("Loaded metadata for %d wards", len(self._metadata))
        return list(self._metadata)
