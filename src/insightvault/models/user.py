"""User model for authentication and authorization."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field

from insightvault.models.base import isoformat

THEMES = ("light", "dark")


def default_preferences() -> Dict[str, Any]:
    return {"theme": "light"}


class Role(str, Enum):
    """Account roles."""

    USER = "user"
    ADMIN = "admin"


def normalize_email(email: str) -> str:
    """Emails are unique case-insensitively and stored lower-cased."""
    return email.strip().lower()


def build_display_name(
    name: Optional[str],
    first_name: Optional[str],
    last_name: Optional[str],
) -> str:
    """Use the supplied display name, else join first and last name."""
    if name and name.strip():
        return name.strip()
    return f"{first_name or ''} {last_name or ''}".strip()


class User(BaseModel):
    """A stored account.

    ``password_hash`` is ``None`` for accounts created through an external
    sign-in. It never leaves the process: API responses go through
    :meth:`public_profile`.
    """

    id: str
    email: str
    password_hash: Optional[str] = None
    name: str = ""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: Role = Role.USER
    is_active: bool = True
    last_login: Optional[datetime] = None
    preferences: Dict[str, Any] = Field(default_factory=default_preferences)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "User":
        """Build a user from a ``users`` collection document."""
        return cls(
            id=str(doc["_id"]),
            email=doc["email"],
            password_hash=doc.get("password_hash"),
            name=doc.get("name") or "",
            first_name=doc.get("first_name"),
            last_name=doc.get("last_name"),
            role=doc.get("role", Role.USER.value),
            is_active=doc.get("is_active", True),
            last_login=doc.get("last_login"),
            preferences=doc.get("preferences") or default_preferences(),
            created_at=doc.get("created_at"),
            updated_at=doc.get("updated_at"),
        )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    def public_profile(self) -> Dict[str, Any]:
        """The only user shape returned to clients."""
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "role": self.role.value,
            "isActive": self.is_active,
            "preferences": dict(self.preferences),
            "lastLogin": isoformat(self.last_login),
            "createdAt": isoformat(self.created_at),
        }
