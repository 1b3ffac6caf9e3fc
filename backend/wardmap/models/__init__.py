"""Models subpackage."""

from wardmap.models.database import (
    Base,
    async_session_factory,
    engine,
    get_db,
    init_models,
    postgis_version,
    session_scope,
)
from wardmap.models.ward import Ward

__all__ = [
    "Base",
    "engine",
    "async_session_factory",
    "get_db",
    "init_models",
    "postgis_version",
    "session_scope",
    "Ward",
]
