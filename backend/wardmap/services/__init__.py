"""Services subpackage — ward persistence and the import pipeline."""

from wardmap.services.importer import ImportResult, WardRecordStreamer, import_from_url, import_wards
from wardmap.services.ward_store import WardRecord, WardRepository, to_feature_collection

__all__ = [
    "ImportResult",
    "WardRecordStreamer",
    "import_from_url",
    "import_wards",
    "WardRecord",
    "WardRepository",
    "to_feature_collection",
]
