"""Data record endpoints."""

from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends, Query, status
from pymongo.errors import PyMongoError

from insightvault.api.dependencies import get_data_repository
from insightvault.auth.middleware import authenticate_token, ensure_ownership, optional_auth
from insightvault.core.exceptions import AppError, InternalError, NotFound
from insightvault.core.logging import get_logger
from insightvault.models.data_record import (
    Category,
    DataRecord,
    DataRecordCreate,
    DataRecordUpdate,
    RecordStatus,
)
from insightvault.models.user import User
from insightvault.repositories.base import MAX_PAGE, PageRequest
from insightvault.repositories.data_records import DataRecordRepository, RecordQuery

logger = get_logger(__name__)
router = APIRouter()

SortField = Literal["createdAt", "updatedAt", "title", "value", "category", "status"]
SortOrder = Literal["asc", "desc"]

RECORD_NOT_FOUND = "Data record not found"


async def load_owned_record(record_id: str, user: User, records: DataRecordRepository) -> DataRecord:
    """Load a record, then check the caller may touch it."""
    record = await records.get_by_id(record_id)
    if record is None:
        raise NotFound(RECORD_NOT_FOUND)
    ensure_ownership(user, record.owner_id)
    return record


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_record(
    payload: DataRecordCreate,
    user: User = Depends(authenticate_token),
    records: DataRecordRepository = Depends(get_data_repository),
) -> Dict[str, Any]:
    """Create a data record owned by the caller."""
    try:
        record = await records.create(user.id, payload)
    except AppError:
        raise
    except PyMongoError as e:
        logger.error("Create data error", user_id=user.id, error=str(e))
        raise InternalError()

    return {
        "success": True,
        "message": "Data record created successfully",
        "data": record.to_response(),
    }


@router.get("")
async def list_records(
    page: int = Query(default=1, ge=1, le=MAX_PAGE),
    limit: int = Query(default=10, ge=1, le=100),
    category: Optional[Category] = Query(default=None),
    record_status: Optional[RecordStatus] = Query(default=None, alias="status"),
    search: Optional[str] = Query(default=None, max_length=100),
    sort_by: SortField = Query(default="createdAt", alias="sortBy"),
    sort_order: SortOrder = Query(default="desc", alias="sortOrder"),
    user: User = Depends(authenticate_token),
    records: DataRecordRepository = Depends(get_data_repository),
) -> Dict[str, Any]:
    """List the caller's records with filtering, search, sorting and pagination."""
    query = RecordQuery(
        owner_id=user.id,
        category=category,
        status=record_status,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        page=PageRequest(page=page, limit=limit),
    )
    try:
        found, total = await records.find(query)
    except AppError:
        raise
    except PyMongoError as e:
        logger.error("Get data error", user_id=user.id, error=str(e))
        raise InternalError()

    return {
        "success": True,
        "data": [record.to_response() for record in found],
        "pagination": query.page.describe(total),
    }


@router.get("/public")
async def list_public_records(
    page: int = Query(default=1, ge=1, le=MAX_PAGE),
    limit: int = Query(default=10, ge=1, le=100),
    category: Optional[Category] = Query(default=None),
    search: Optional[str] = Query(default=None, max_length=100),
    user: Optional[User] = Depends(optional_auth),
    records: DataRecordRepository = Depends(get_data_repository),
) -> Dict[str, Any]:
    """List records their owners marked public.

    Anonymous callers are welcome; signed-in callers also get ``isOwner`` on
    each record.
    """
    query = RecordQuery(
        public_only=True,
        category=category,
        search=search,
        page=PageRequest(page=page, limit=limit),
    )
    try:
        found, total = await records.find(query)
    except AppError:
        raise
    except PyMongoError as e:
        logger.error("Get public data error", error=str(e))
        raise InternalError()

    data = []
    for record in found:
        item = record.to_response()
        item["isOwner"] = user is not None and record.owner_id == user.id
        data.append(item)

    return {
        "success": True,
        "data": data,
        "pagination": query.page.describe(total),
    }


@router.get("/stats/summary")
async def stats_summary(
    user: User = Depends(authenticate_token),
    records: DataRecordRepository = Depends(get_data_repository),
) -> Dict[str, Any]:
    """Totals, average and category breakdown over the caller's records."""
    try:
        summary = await records.summary(user.id)
        breakdown = await records.category_breakdown(user.id)
    except AppError:
        raise
    except PyMongoError as e:
        logger.error("Get stats summary error", user_id=user.id, error=str(e))
        raise InternalError()

    return {
        "success": True,
        "summary": {**summary, "categoryBreakdown": breakdown},
    }


@router.get("/{record_id}")
async def get_record(
    record_id: str,
    user: User = Depends(authenticate_token),
    records: DataRecordRepository = Depends(get_data_repository),
) -> Dict[str, Any]:
    """Fetch one record owned by the caller."""
    try:
        record = await load_owned_record(record_id, user, records)
    except AppError:
        raise
    except PyMongoError as e:
        logger.error("Get data by ID error", record_id=record_id, error=str(e))
        raise InternalError()

    return {"success": True, "data": record.to_response()}


@router.put("/{record_id}")
async def update_record(
    record_id: str,
    payload: DataRecordUpdate,
    user: User = Depends(authenticate_token),
    records: DataRecordRepository = Depends(get_data_repository),
) -> Dict[str, Any]:
    """Change only the fields present in the request body."""
    try:
        await load_owned_record(record_id, user, records)
        updated = await records.update(record_id, payload.changes())
    except AppError:
        raise
    except PyMongoError as e:
        logger.error("Update data error", record_id=record_id, error=str(e))
        raise InternalError()

    if updated is None:
        raise NotFound(RECORD_NOT_FOUND)

    return {
        "success": True,
        "message": "Data record updated successfully",
        "data": updated.to_response(),
    }


@router.delete("/{record_id}")
async def delete_record(
    record_id: str,
    user: User = Depends(authenticate_token),
    records: DataRecordRepository = Depends(get_data_repository),
) -> Dict[str, Any]:
    """Delete one record owned by the caller."""
    try:
        await load_owned_record(record_id, user, records)
        deleted = await records.delete(record_id)
    except AppError:
        raise
    except PyMongoError as e:
        logger.error("Delete data error", record_id=record_id, error=str(e))
        raise InternalError()

    if not deleted:
        raise NotFound(RECORD_NOT_FOUND)

    return {"success": True, "message": "Data record deleted successfully"}
