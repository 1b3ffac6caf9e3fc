"""
Error taxonomy shared by the client runtime and the ingestion pipeline.

Routers translate these into ``HTTPException``; the boundary store uses
``TransientFetchFailure`` to drive its fallback and ``BoundaryLoadError``
to surface an exhausted load cycle.
"""

from __future__ import annotations


class WardmapError(Exception):
    """Base class for all wardmap errors."""


class TransientFetchFailure(WardmapError):
    """A network source (API or fallback file) was unavailable."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to fetch {url}: {reason}")


class MalformedInput(WardmapError):
    """Missing required fields or unparsable geometry."""


class CacheCorruption(WardmapError):
    """The cached boundary entry could not be decoded."""


class PersistenceFailure(WardmapError):
    """Writing the boundary cache failed."""


class BoundaryLoadError(WardmapError):
    """Every boundary source was exhausted during a load cycle."""


class ImportBatchError(WardmapError):
    """An upsert batch failed; earlier batches remain committed."""

    def __init__(self, batch_index: int, imported_count: int, reason: str) -> None:
        self.batch_index = batch_index
        self.imported_count = imported_count
        self.reason = reason
        super().__init__(
            f"Failed to insert ward batch {batch_index} "
            f"({imported_count} wards already imported): {reason}"
        )
