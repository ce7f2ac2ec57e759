"""Pytest configuration and fixtures."""

import os
import re
from typing import Any, Dict, List, Optional, Tuple

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import DuplicateKeyError

# Set test environment
os.environ["INSIGHTVAULT_ENVIRONMENT"] = "test"
os.environ["INSIGHTVAULT_DB_NAME"] = "insightvault_test"
os.environ["INSIGHTVAULT_SECURITY_BCRYPT_ROUNDS"] = "4"

from insightvault.api.dependencies import get_data_repository, get_database, get_user_repository
from insightvault.api.main import create_app
from insightvault.core.config import AppConfig, SecurityConfig, Settings
from insightvault.core.security import TokenCodec, hash_password
from insightvault.models.data_record import SCHEMA_VERSION, DataRecord, DataRecordCreate, RecordStatus
from insightvault.models.user import Role, User, default_preferences, normalize_email
from insightvault.repositories.base import PageRequest, parse_object_id, utcnow
from insightvault.repositories.data_records import SORT_FIELDS, RecordQuery

TEST_SECRET_KEY = "test-secret-key"
TEST_PASSWORD = "secret123"


class FakeUserRepository:
    """In-memory stand-in for ``UserRepository`` with the same interface."""

    def __init__(self):
        self.docs: Dict[ObjectId, Dict[str, Any]] = {}

    async def ensure_indexes(self) -> None:
        return None

    async def get_by_id(self, user_id: str) -> Optional[User]:
        doc = self.docs.get(parse_object_id(user_id, "Invalid user ID"))
        return User.from_document(doc) if doc else None

    async def get_by_email(self, email: str) -> Optional[User]:
        wanted = normalize_email(email)
        for doc in self.docs.values():
            if doc["email"] == wanted:
                return User.from_document(doc)
        return None

    async def create(self, email: str, password_hash: Optional[str], **fields: Any) -> User:
        return self.add(email, password_hash, **fields)

    def add(
        self,
        email: str,
        password_hash: Optional[str],
        name: str = "",
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        role: Role = Role.USER,
    ) -> User:
        email = normalize_email(email)
        if any(doc["email"] == email for doc in self.docs.values()):
            raise DuplicateKeyError("E11000 duplicate key error collection: users index: email_1")
        now = utcnow()
        doc = {
            "_id": ObjectId(),
            "email": email,
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
        self.docs[doc["_id"]] = doc
        return User.from_document(doc)

    async def _set(self, user_id: str, fields: Dict[str, Any]) -> Optional[User]:
        doc = self.docs.get(parse_object_id(user_id, "Invalid user ID"))
        if doc is None:
            return None
        doc.update(fields)
        doc["updated_at"] = utcnow()
        return User.from_document(doc)

    async def update_profile(self, user_id: str, changes: Dict[str, Any]) -> Optional[User]:
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
        return self.docs.pop(parse_object_id(user_id, "Invalid user ID"), None) is not None

    async def search(self, text: str, page: PageRequest) -> Tuple[List[User], int]:
        pattern = re.compile(re.escape(text.strip()), re.IGNORECASE)
        fields = ("name", "email", "first_name", "last_name")
        matches = [
            doc for doc in self.docs.values()
            if any(doc.get(f) and pattern.search(doc[f]) for f in fields)
        ]
        matches.sort(key=lambda d: (d["created_at"], d["_id"]), reverse=True)
        window = matches[page.skip:page.skip + page.limit]
        return [User.from_document(doc) for doc in window], len(matches)


class FakeDataRecordRepository:
    """In-memory stand-in for ``DataRecordRepository``.

    Owner details are joined from the fake user store, like the ``$lookup``
    the real repository runs.
    """

    def __init__(self, users: FakeUserRepository):
        self.users = users
        self.docs: Dict[ObjectId, Dict[str, Any]] = {}

    async def ensure_indexes(self) -> None:
        return None

    def _joined(self, doc: Dict[str, Any]) -> DataRecord:
        owner = self.users.docs.get(doc["user_id"])
        joined = dict(doc)
        if owner is not None:
            joined["owner"] = {k: v for k, v in owner.items() if k != "password_hash"}
        return DataRecord.from_document(joined)

    def _matches(self, doc: Dict[str, Any], query: RecordQuery) -> bool:
        if query.owner_id is not None and doc["user_id"] != parse_object_id(query.owner_id, "Invalid user ID"):
            return False
        if query.public_only and not doc["is_public"]:
            return False
        if query.category is not None and doc["category"] != query.category.value:
            return False
        if query.status is not None and doc["status"] != query.status.value:
            return False
        if query.search and query.search.strip():
            pattern = re.compile(re.escape(query.search.strip()), re.IGNORECASE)
            haystack = [doc["title"], doc["description"], *doc["tags"]]
            if not any(pattern.search(text) for text in haystack):
                return False
        return True

    async def create(self, owner_id: str, payload: DataRecordCreate) -> DataRecord:
        now = utcnow()
        doc = {
            "_id": ObjectId(),
            "title": payload.title,
            "description": payload.description,
            "category": payload.category.value,
            "value": payload.value,
            "unit": payload.unit,
            "status": payload.status.value,
            "tags": list(payload.tags),
            "is_public": payload.is_public,
            "metadata": {"source": payload.source, "last_updated": now, "version": SCHEMA_VERSION},
            "user_id": parse_object_id(owner_id, "Invalid user ID"),
            "created_at": now,
            "updated_at": now,
        }
        self.docs[doc["_id"]] = doc
        return self._joined(doc)

    async def get_by_id(self, record_id: str) -> Optional[DataRecord]:
        doc = self.docs.get(parse_object_id(record_id, "Invalid data ID"))
        return self._joined(doc) if doc else None

    async def find(self, query: RecordQuery) -> Tuple[List[DataRecord], int]:
        matches = [doc for doc in self.docs.values() if self._matches(doc, query)]
        field = SORT_FIELDS[query.sort_by]
        matches.sort(key=lambda d: (d[field], d["_id"]), reverse=query.sort_order == "desc")
        window = matches[query.page.skip:query.page.skip + query.page.limit]
        return [self._joined(doc) for doc in window], len(matches)

    async def update(self, record_id: str, changes: Dict[str, Any]) -> Optional[DataRecord]:
        doc = self.docs.get(parse_object_id(record_id, "Invalid data ID"))
        if doc is None:
            return None
        now = utcnow()
        doc.update(changes)
        doc["updated_at"] = now
        doc["metadata"] = {**doc["metadata"], "last_updated": now}
        return self._joined(doc)

    async def delete(self, record_id: str) -> bool:
        return self.docs.pop(parse_object_id(record_id, "Invalid data ID"), None) is not None

    async def delete_by_owner(self, owner_id: str) -> int:
        owner = parse_object_id(owner_id, "Invalid user ID")
        doomed = [key for key, doc in self.docs.items() if doc["user_id"] == owner]
        for key in doomed:
            del self.docs[key]
        return len(doomed)

    def _owned(self, owner_id: str) -> List[Dict[str, Any]]:
        owner = parse_object_id(owner_id, "Invalid user ID")
        return [doc for doc in self.docs.values() if doc["user_id"] == owner]

    async def count(self, owner_id: str, status: Optional[RecordStatus] = None) -> int:
        return len([d for d in self._owned(owner_id) if status is None or d["status"] == status.value])

    async def summary(self, owner_id: str) -> Dict[str, Any]:
        docs = self._owned(owner_id)
        if not docs:
            return {"totalRecords": 0, "totalValue": 0, "avgValue": 0, "categories": [], "statuses": []}
        total = sum(d["value"] for d in docs)
        return {
            "totalRecords": len(docs),
            "totalValue": total,
            "avgValue": total / len(docs),
            "categories": sorted({d["category"] for d in docs}),
            "statuses": sorted({d["status"] for d in docs}),
        }

    async def category_breakdown(self, owner_id: str) -> List[Dict[str, Any]]:
        groups: Dict[str, Dict[str, Any]] = {}
        for doc in self._owned(owner_id):
            group = groups.setdefault(doc["category"], {"category": doc["category"], "count": 0, "totalValue": 0})
            group["count"] += 1
            group["totalValue"] += doc["value"]
        return sorted(groups.values(), key=lambda g: (-g["count"], g["category"]))


class HealthyDatabase:
    async def command(self, name: str) -> Dict[str, Any]:
        return {"ok": 1.0}


@pytest.fixture
def test_settings() -> Settings:
    """Settings for API tests."""
    return Settings(
        app=AppConfig(environment="test"),
        security=SecurityConfig(secret_key=TEST_SECRET_KEY, bcrypt_rounds=4),
    )


@pytest.fixture
def codec(test_settings) -> TokenCodec:
    return TokenCodec.from_config(test_settings.security)


@pytest.fixture
def user_repo() -> FakeUserRepository:
    return FakeUserRepository()


@pytest.fixture
def data_repo(user_repo) -> FakeDataRecordRepository:
    return FakeDataRecordRepository(user_repo)


@pytest.fixture
def app(test_settings, user_repo, data_repo):
    """Application wired to the in-memory repositories.

    The lifespan never runs because the client is not used as a context
    manager, so no MongoDB connection is attempted.
    """
    application = create_app(test_settings)
    application.dependency_overrides[get_user_repository] = lambda: user_repo
    application.dependency_overrides[get_data_repository] = lambda: data_repo
    application.dependency_overrides[get_database] = lambda: HealthyDatabase()
    return application


@pytest.fixture
def client(app) -> TestClient:
    """Create a test client."""
    return TestClient(app)


@pytest.fixture
def user(user_repo) -> User:
    return user_repo.add(
        email="alice@example.com",
        password_hash=hash_password(TEST_PASSWORD, rounds=4),
        name="Alice Smith",
        first_name="Alice",
        last_name="Smith",
    )


@pytest.fixture
def other_user(user_repo) -> User:
    return user_repo.add(
        email="bob@example.com",
        password_hash=hash_password(TEST_PASSWORD, rounds=4),
        name="Bob Jones",
        first_name="Bob",
        last_name="Jones",
    )


@pytest.fixture
def admin_user(user_repo) -> User:
    return user_repo.add(
        email="admin@example.com",
        password_hash=hash_password(TEST_PASSWORD, rounds=4),
        name="Admin",
        role=Role.ADMIN,
    )


def bearer(codec: TokenCodec, user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {codec.issue(user.id)}"}


@pytest.fixture
def auth_headers(codec, user) -> Dict[str, str]:
    return bearer(codec, user)


@pytest.fixture
def other_headers(codec, other_user) -> Dict[str, str]:
    return bearer(codec, other_user)


@pytest.fixture
def admin_headers(codec, admin_user) -> Dict[str, str]:
    return bearer(codec, admin_user)


@pytest.fixture
def sample_record() -> Dict[str, Any]:
    """Sample create payload."""
    return {
        "title": "Monthly Revenue",
        "description": "Revenue for the month",
        "category": "analytics",
        "value": 1500,
        "unit": "USD",
        "tags": ["finance", " revenue ", ""],
    }
