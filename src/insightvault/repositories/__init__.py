"""MongoDB-backed stores, one per collection."""

from insightvault.repositories.base import PageRequest, parse_object_id, total_pages
from insightvault.repositories.data_records import DataRecordRepository, RecordQuery
from insightvault.repositories.users import UserRepository

__all__ = [
    "DataRecordRepository",
    "UserRepository",
    "RecordQuery",
    "PageRequest",
    "parse_object_id",
    "total_pages",
]
