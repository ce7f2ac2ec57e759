"""Domain models for InsightVault."""

from insightvault.models.data_record import (
    Category,
    DataRecord,
    DataRecordCreate,
    DataRecordUpdate,
    RecordStatus,
)
from insightvault.models.user import Role, User

__all__ = [
    "User",
    "Role",
    "DataRecord",
    "DataRecordCreate",
    "DataRecordUpdate",
    "Category",
    "RecordStatus",
]
