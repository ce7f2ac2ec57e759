"""User store over the ``users`` collection."""

from typing import Any, Dict, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import DESCENDING, ReturnDocument

from insightvault.core.logging import get_logger
from insightvault.models.user import Role, User, default_preferences, normalize_email
from insightvault.repositories.base import PageRequest, contains, parse_object_id, utcnow

logger = get_logger(__name__)


class UserRepository:
    """Reads and writes user documents."""

    collection_name = "users"

    def __init__(self, database: AsyncIOMotorDatabase):
        self.collection = database[self.collection_name]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index("email", unique=True)
        await self.collection.create_index([("created_at", DESCENDING)])

    async def get_by_id(self, user_id: str) -> Optional[User]:
        doc = await self.collection.find_one({"_id": parse_object_id(user_id, "Invalid user ID")})
        return User.from_document(doc) if doc else None

    async def get_by_email(self, email: str) -> Optional[User]:
        doc = await self.collection.find_one({"email": normalize_email(email)})
        return User.from_document(doc) if doc else None

    async def create(
        self,
        email: str,
        password_hash: Optional[str],
        name: str = "",
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        role: Role = Role.USER,
    ) -> User:
        """Insert a new user.

        Raises:
            pymongo.errors.DuplicateKeyError: The email is already registered.
        """
        now = utcnow()
        doc: Dict[str, Any] = {
            "email": normalize_email(email),
            "password_hash": password_hash,
            "name": name,
            "first_name": first_name,
            "last_name": last_name,
            "role": role.value,
            "is_active": True,
            "last_login": None,
            "preferences": default_preferences(),
            "created_at": now,
            "updated_at": now,
        }
        result = await self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info("User created", user_id=str(result.inserted_id), role=role.value)
        return User.from_document(doc)

    async def _set(self, user_id: str, fields: Dict[str, Any]) -> Optional[User]:
        doc = await self.collection.find_one_and_update(
            {"_id": parse_object_id(user_id, "Invalid user ID")},
            {"$set": {**fields, "updated_at": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )
        return User.from_document(doc) if doc else None

    async def update_profile(self, user_id: str, changes: Dict[str, Any]) -> Optional[User]:
        """Apply ``changes`` (stored field names) and return the updated user."""
        return await self._set(user_id, changes)

    async def record_login(self, user_id: str) -> Optional[User]:
        return await self._set(user_id, {"last_login": utcnow()})

    async def set_active(self, user_id: str, is_active: bool) -> Optional[User]:
        return await self._set(user_id, {"is_active": is_active})

    async def set_role(self, user_id: str, role: Role) -> Optional[User]:
        return await self._set(user_id, {"role": role.value})

    async def set_password(self, user_id: str, password_hash: str) -> Optional[User]:
        return await self._set(user_id, {"password_hash": password_hash})

    async def delete(self, user_id: str) -> bool:
        result = await self.collection.delete_one({"_id": parse_object_id(user_id, "Invalid user ID")})
        return result.deleted_count == 1

    async def search(self, text: str, page: PageRequest) -> Tuple[List[User], int]:
        """Substring search over name, email, first and last name, newest first."""
        pattern = contains(text)
        query = {
            "$or": [
                {"name": pattern},
                {"email": pattern},
                {"first_name": pattern},
                {"last_name": pattern},
            ]
        }
        cursor = (
            self.collection.find(query)
            .sort([("created_at", DESCENDING), ("_id", DESCENDING)])
            .skip(page.skip)
            .limit(page.limit)
        )
        docs = await cursor.to_list(length=page.limit)
        total = await self.collection.count_documents(query)
        return [User.from_document(doc) for doc in docs], total
