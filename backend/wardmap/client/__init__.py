"""Client runtime: boundary cache, API client, resolver and viewport."""

from wardmap.client.api import WardApiClient
from wardmap.client.boundary_store import BoundaryStore, CacheEntry, DataSource, LoadState
from wardmap.client.persistence import FileStorage, KeyValueStorage, MemoryStorage
from wardmap.client.resolver import WardResolver
from wardmap.client.transport import FetchResult, Fetcher, HttpxFetcher
from wardmap.client.viewport import MapViewportController

__all__ = [
    "BoundaryStore",
    "CacheEntry",
    "DataSource",
    "FetchResult",
    "Fetcher",
    "FileStorage",
    "HttpxFetcher",
    "KeyValueStorage",
    "LoadState",
    "MapViewportController",
    "MemoryStorage",
    "WardApiClient",
    "WardResolver",
]
