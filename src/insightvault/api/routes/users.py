"""Profile, statistics, account and user search endpoints."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from pydantic import Field, StrictBool, field_validator
from pymongo.errors import PyMongoError

from insightvault.api.dependencies import get_data_repository, get_settings, get_user_repository
from insightvault.auth.middleware import authenticate_token, require_admin
from insightvault.core.config import Settings
from insightvault.core.exceptions import (
    AppError,
    InternalError,
    NotFound,
    Unauthenticated,
    ValidationError,
)
from insightvault.core.logging import get_logger
from insightvault.core.security import verify_password
from insightvault.models.base import CamelModel, strip_optional
from insightvault.models.data_record import RecordStatus
from insightvault.models.user import THEMES, User
from insightvault.repositories.base import MAX_PAGE, PageRequest
from insightvault.repositories.data_records import DataRecordRepository
from insightvault.repositories.users import UserRepository

logger = get_logger(__name__)
router = APIRouter()

MIN_SEARCH_LENGTH = 2


class ProfileUpdateRequest(CamelModel):
    """Fields a user may change on their own profile."""

    first_name: Optional[str] = Field(default=None, max_length=50)
    last_name: Optional[str] = Field(default=None, max_length=50)
    preferences: Optional[Dict[str, Any]] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def strip_names(cls, v: Optional[str]) -> Optional[str]:
        return strip_optional(v)


class AccountDeletionRequest(CamelModel):
    """Password confirmation for closing an account."""

    password: Optional[str] = None


class AccountStatusRequest(CamelModel):
    is_active: StrictBool


@router.get("/profile")
async def get_profile(user: User = Depends(authenticate_token)) -> Dict[str, Any]:
    """Get the signed-in user's profile."""
    return {"success": True, "user": user.public_profile()}


@router.put("/profile")
async def update_profile(
    payload: ProfileUpdateRequest,
    user: User = Depends(authenticate_token),
    users: UserRepository = Depends(get_user_repository),
) -> Dict[str, Any]:
    """Update first name, last name and preferences."""
    changes = payload.model_dump(exclude_unset=True)

    preferences = changes.get("preferences")
    if preferences and "theme" in preferences and preferences["theme"] not in THEMES:
        raise ValidationError("Invalid theme preference")
    if "preferences" in changes and preferences is None:
        changes.pop("preferences")

    try:
        updated = await users.update_profile(user.id, changes)
    except AppError:
        raise
    except PyMongoError as e:
        logger.error("Profile update failed", user_id=user.id, error=str(e))
        raise InternalError()

    if updated is None:
        raise NotFound("User not found")

    return {
        "success": True,
        "message": "Profile updated successfully",
        "user": updated.public_profile(),
    }


@router.get("/stats")
async def get_stats(
    user: User = Depends(authenticate_token),
    records: DataRecordRepository = Depends(get_data_repository),
) -> Dict[str, Any]:
    """Record counts for the signed-in user, by category and status."""
    try:
        by_category = await records.category_breakdown(user.id)
        total = await records.count(user.id)
        active = await records.count(user.id, status=RecordStatus.ACTIVE)
    except AppError:
        raise
    except PyMongoError as e:
        logger.error("Stats query failed", user_id=user.id, error=str(e))
        raise InternalError()

    return {
        "success": True,
        "stats": {
            "totalData": total,
            "activeData": active,
            "byCategory": by_category,
            "lastLogin": user.public_profile()["lastLogin"],
        },
    }


@router.delete("/account")
async def delete_account(
    payload: Optional[AccountDeletionRequest] = Body(default=None),
    user: User = Depends(authenticate_token),
    users: UserRepository = Depends(get_user_repository),
    records: DataRecordRepository = Depends(get_data_repository),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """Delete the user's data records, then the account itself.

    When ``require_password_for_account_deletion`` is on, accounts that have
    a password must confirm it. Externally authenticated accounts have none.
    """
    if settings.security.require_password_for_account_deletion and user.has_password:
        password = payload.password if payload else None
        if not verify_password(password or "", user.password_hash):
            raise Unauthenticated("Password confirmation failed.")

    try:
        deleted_records = await records.delete_by_owner(user.id)
        await users.delete(user.id)
    except AppError:
        raise
    except PyMongoError as e:
        logger.error("Account deletion failed", user_id=user.id, error=str(e))
        raise InternalError()

    logger.info("Account deleted", user_id=user.id, deleted_records=deleted_records)
    return {"success": True, "message": "Account deleted successfully"}


@router.get("/search")
async def search_users(
    query: str = Query(default=""),
    page: int = Query(default=1, ge=1, le=MAX_PAGE),
    limit: int = Query(default=10, ge=1, le=100),
    user: User = Depends(authenticate_token),
    users: UserRepository = Depends(get_user_repository),
) -> Dict[str, Any]:
    """Search users by name or email."""
    if len(query.strip()) < MIN_SEARCH_LENGTH:
        raise ValidationError(f"Search query must be at least {MIN_SEARCH_LENGTH} characters long")

    page_request = PageRequest(page=page, limit=limit)
    try:
        found, total = await users.search(query, page_request)
    except AppError:
        raise
    except PyMongoError as e:
        logger.error("User search failed", error=str(e))
        raise InternalError()

    return {
        "success": True,
        "users": [u.public_profile() for u in found],
        "pagination": page_request.describe(total),
    }


@router.put("/{user_id}/status")
async def set_account_status(
    user_id: str,
    payload: AccountStatusRequest,
    admin: User = Depends(require_admin),
    users: UserRepository = Depends(get_user_repository),
) -> Dict[str, Any]:
    """Activate or deactivate an account. Administrators only."""
    if user_id == admin.id:
        raise ValidationError("You cannot change the status of your own account")

    try:
        updated = await users.set_active(user_id, payload.is_active)
    except AppError:
        raise
    except PyMongoError as e:
        logger.error("Account status change failed", user_id=user_id, error=str(e))
        raise InternalError()

    if updated is None:
        raise NotFound("User not found")

    logger.info("Account status changed", user_id=user_id, is_active=payload.is_active, admin_id=admin.id)
    return {
        "success": True,
        "message": "Account activated" if payload.is_active else "Account deactivated",
        "user": updated.public_profile(),
    }
