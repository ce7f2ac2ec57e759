"""Data record store over the ``data_records`` collection."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument

from insightvault.core.logging import get_logger
from insightvault.models.data_record import (
    SCHEMA_VERSION,
    Category,
    DataRecord,
    DataRecordCreate,
    RecordStatus,
)
from insightvault.repositories.base import PageRequest, contains, parse_object_id, utcnow
from insightvault.repositories.users import UserRepository

logger = get_logger(__name__)

# API sort keys -> stored field names
SORT_FIELDS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "title": "title",
    "value": "value",
    "category": "category",
    "status": "status",
}

# Joins the owner's user document in as ``owner``, without the password hash
OWNER_LOOKUP: List[Dict[str, Any]] = [
    {
        "$lookup": {
            "from": UserRepository.collection_name,
            "localField": "user_id",
            "foreignField": "_id",
            "as": "owner",
        }
    },
    {"$unwind": {"path": "$owner", "preserveNullAndEmptyArrays": True}},
    {"$project": {"owner.password_hash": 0}},
]


@dataclass
class RecordQuery:
    """Filters, ordering and page for a record listing."""

    owner_id: Optional[str] = None
    public_only: bool = False
    category: Optional[Category] = None
    status: Optional[RecordStatus] = None
    search: Optional[str] = None
    sort_by: str = "createdAt"
    sort_order: str = "desc"
    page: PageRequest = field(default_factory=PageRequest)


def build_record_filter(query: RecordQuery) -> Dict[str, Any]:
    """Translate a ``RecordQuery`` into a MongoDB filter document."""
    criteria: Dict[str, Any] = {}
    if query.owner_id is not None:
        criteria["user_id"] = parse_object_id(query.owner_id, "Invalid user ID")
    if query.public_only:
        criteria["is_public"] = True
    if query.category is not None:
        criteria["category"] = Category(query.category).value
    if query.status is not None:
        criteria["status"] = RecordStatus(query.status).value
    if query.search and query.search.strip():
        pattern = contains(query.search)
        criteria["$or"] = [
            {"title": pattern},
            {"description": pattern},
            {"tags": pattern},
        ]
    return criteria


def build_sort(query: RecordQuery) -> Dict[str, int]:
    """Sort on the requested field with ``_id`` as a stable tie-breaker."""
    direction = DESCENDING if query.sort_order == "desc" else ASCENDING
    return {SORT_FIELDS[query.sort_by]: direction, "_id": direction}


class DataRecordRepository:
    """Reads, writes and aggregates data records."""

    collection_name = "data_records"

    def __init__(self, database: AsyncIOMotorDatabase):
        self.collection = database[self.collection_name]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("user_id", ASCENDING), ("category", ASCENDING)])
        await self.collection.create_index([("category", ASCENDING), ("status", ASCENDING)])
        await self.collection.create_index([("tags", ASCENDING)])
        await self.collection.create_index([("created_at", DESCENDING)])

    async def create(self, owner_id: str, payload: DataRecordCreate) -> DataRecord:
        now = utcnow()
        doc = {
            "title": payload.title,
            "description": payload.description,
            "category": payload.category.value,
            "value": payload.value,
            "unit": payload.unit,
            "status": payload.status.value,
            "tags": list(payload.tags),
            "is_public": payload.is_public,
            "metadata": {
                "source": payload.source,
                "last_updated": now,
                "version": SCHEMA_VERSION,
            },
            "user_id": parse_object_id(owner_id, "Invalid user ID"),
            "created_at": now,
            "updated_at": now,
        }
        result = await self.collection.insert_one(doc)
        logger.info("Data record created", record_id=str(result.inserted_id), owner_id=owner_id)

        created = await self.get_by_id(str(result.inserted_id))
        if created is None:
            doc["_id"] = result.inserted_id
            created = DataRecord.from_document(doc)
        return created

    async def get_by_id(self, record_id: str) -> Optional[DataRecord]:
        """Load one record with its owner joined in."""
        pipeline = [{"$match": {"_id": parse_object_id(record_id, "Invalid data ID")}}, *OWNER_LOOKUP]
        docs = await self.collection.aggregate(pipeline).to_list(length=1)
        return DataRecord.from_document(docs[0]) if docs else None

    async def find(self, query: RecordQuery) -> Tuple[List[DataRecord], int]:
        """Return one page of matching records and the total match count."""
        criteria = build_record_filter(query)
        pipeline = [
            {"$match": criteria},
            {"$sort": build_sort(query)},
            {"$skip": query.page.skip},
            {"$limit": query.page.limit},
            *OWNER_LOOKUP,
        ]
        docs = await self.collection.aggregate(pipeline).to_list(length=query.page.limit)
        total = await self.collection.count_documents(criteria)
        return [DataRecord.from_document(doc) for doc in docs], total

    async def update(self, record_id: str, changes: Dict[str, Any]) -> Optional[DataRecord]:
        """Set only the given fields. Returns ``None`` if the record is gone."""
        now = utcnow()
        updated = await self.collection.find_one_and_update(
            {"_id": parse_object_id(record_id, "Invalid data ID")},
            {"$set": {**changes, "updated_at": now, "metadata.last_updated": now}},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            return None
        return await self.get_by_id(record_id) or DataRecord.from_document(updated)

    async def delete(self, record_id: str) -> bool:
        result = await self.collection.delete_one({"_id": parse_object_id(record_id, "Invalid data ID")})
        return result.deleted_count == 1

    async def delete_by_owner(self, owner_id: str) -> int:
        result = await self.collection.delete_many({"user_id": parse_object_id(owner_id, "Invalid user ID")})
        logger.info("Deleted records for owner", owner_id=owner_id, deleted=result.deleted_count)
        return result.deleted_count

    async def count(self, owner_id: str, status: Optional[RecordStatus] = None) -> int:
        criteria: Dict[str, Any] = {"user_id": parse_object_id(owner_id, "Invalid user ID")}
        if status is not None:
            criteria["status"] = status.value
        return await self.collection.count_documents(criteria)

    async def summary(self, owner_id: str) -> Dict[str, Any]:
        """Totals, average value and distinct categories/statuses for one owner."""
        pipeline = [
            {"$match": {"user_id": parse_object_id(owner_id, "Invalid user ID")}},
            {
                "$group": {
                    "_id": None,
                    "totalRecords": {"$sum": 1},
                    "totalValue": {"$sum": "$value"},
                    "avgValue": {"$avg": "$value"},
                    "categories": {"$addToSet": "$category"},
                    "statuses": {"$addToSet": "$status"},
                }
            },
        ]
        docs = await self.collection.aggregate(pipeline).to_list(length=1)
        if not docs:
            return {
                "totalRecords": 0,
                "totalValue": 0,
                "avgValue": 0,
                "categories": [],
                "statuses": [],
            }
        stats = docs[0]
        return {
            "totalRecords": stats["totalRecords"],
            "totalValue": stats["totalValue"],
            "avgValue": stats["avgValue"] or 0,
            "categories": sorted(stats["categories"]),
            "statuses": sorted(stats["statuses"]),
        }

    async def category_breakdown(self, owner_id: str) -> List[Dict[str, Any]]:
        """Per-category record count and value total, largest first."""
        pipeline = [
            {"$match": {"user_id": parse_object_id(owner_id, "Invalid user ID")}},
            {
                "$group": {
                    "_id": "$category",
                    "count": {"$sum": 1},
                    "totalValue": {"$sum": "$value"},
                }
            },
            {"$sort": {"count": DESCENDING, "_id": ASCENDING}},
        ]
        docs = await self.collection.aggregate(pipeline).to_list(length=None)
        return [
            {"category": doc["_id"], "count": doc["count"], "totalValue": doc["totalValue"]}
            for doc in docs
        ]
