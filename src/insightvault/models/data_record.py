"""Data record models: stored shape, create and partial-update payloads."""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Mapping, Optional

from annotated_types import Ge
from pydantic import AllowInfNan, BaseModel, Field, Strict, StringConstraints, field_validator

from insightvault.models.base import CamelModel, isoformat

SCHEMA_VERSION = "1.0.0"
DEFAULT_SOURCE = "manual"


class Category(str, Enum):
    """Record categories."""

    ANALYTICS = "analytics"
    REPORTS = "reports"
    INSIGHTS = "insights"
    METRICS = "metrics"
    OTHER = "other"


class RecordStatus(str, Enum):
    """Record lifecycle status."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


TitleStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
DescriptionStr = Annotated[str, StringConstraints(strip_whitespace=True, max_length=500)]
UnitStr = Annotated[str, StringConstraints(strip_whitespace=True, max_length=50)]
SourceStr = Annotated[str, StringConstraints(strip_whitespace=True, max_length=100)]
# strict: numeric strings and booleans are rejected, ints are accepted
RecordValue = Annotated[float, Strict(), Ge(0), AllowInfNan(False)]


def clean_tags(tags: List[str]) -> List[str]:
    """Trim every tag and drop the blank ones, keeping order."""
    return [tag.strip() for tag in tags if tag and tag.strip()]


def format_number(value: float) -> str:
    """``42.0`` renders as ``42``; other values are left alone."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


class MetadataInput(CamelModel):
    """Client-supplied part of the metadata block."""

    source: Optional[SourceStr] = None


class DataRecordCreate(CamelModel):
    """Payload for creating a record."""

    title: TitleStr
    description: DescriptionStr = ""
    category: Category
    value: RecordValue
    unit: UnitStr = ""
    status: RecordStatus = RecordStatus.ACTIVE
    tags: List[str] = Field(default_factory=list)
    is_public: bool = False
    metadata: Optional[MetadataInput] = None

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: List[str]) -> List[str]:
        return clean_tags(v)

    @property
    def source(self) -> str:
        if self.metadata and self.metadata.source:
            return self.metadata.source
        return DEFAULT_SOURCE


class DataRecordUpdate(CamelModel):
    """Partial update: only fields present in the payload are applied."""

    title: Optional[TitleStr] = None
    description: Optional[DescriptionStr] = None
    category: Optional[Category] = None
    value: Optional[RecordValue] = None
    unit: Optional[UnitStr] = None
    status: Optional[RecordStatus] = None
    tags: Optional[List[str]] = None
    is_public: Optional[bool] = None

    @field_validator("title", "category", "value", "status", "tags", "is_public", mode="before")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("may not be null")
        return v

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return clean_tags(v) if v is not None else v

    def changes(self) -> Dict[str, Any]:
        """Stored field name -> new value, for the fields the client sent."""
        data = self.model_dump(exclude_unset=True, mode="json")
        for key in ("description", "unit"):
            if key in data and data[key] is None:
                data[key] = ""
        return data


class RecordOwner(BaseModel):
    """Owner reference, with name and email when the owner was joined in."""

    id: str
    name: Optional[str] = None
    email: Optional[str] = None

    def to_response(self) -> Dict[str, Any]:
        if self.name is None and self.email is None:
            return {"id": self.id}
        return {"id": self.id, "name": self.name, "email": self.email}


class RecordMetadata(BaseModel):
    source: str = DEFAULT_SOURCE
    last_updated: Optional[datetime] = None
    version: str = SCHEMA_VERSION


class DataRecord(BaseModel):
    """A stored data record."""

    id: str
    title: str
    description: str = ""
    category: Category
    value: float
    unit: str = ""
    status: RecordStatus = RecordStatus.ACTIVE
    tags: List[str] = Field(default_factory=list)
    is_public: bool = False
    metadata: RecordMetadata = Field(default_factory=RecordMetadata)
    owner: RecordOwner
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "DataRecord":
        """Build a record from a ``data_records`` document.

        The owner's name and email are filled in when the document was
        joined with its user (``owner`` sub-document).
        """
        joined = doc.get("owner") or {}
        owner = RecordOwner(id=str(doc["user_id"]))
        if joined.get("_id") is not None:
            owner = RecordOwner(
                id=str(joined["_id"]),
                name=joined.get("name"),
                email=joined.get("email"),
            )

        metadata = doc.get("metadata") or {}
        return cls(
            id=str(doc["_id"]),
            title=doc["title"],
            description=doc.get("description") or "",
            category=doc["category"],
            value=doc["value"],
            unit=doc.get("unit") or "",
            status=doc.get("status", RecordStatus.ACTIVE.value),
            tags=list(doc.get("tags") or []),
            is_public=doc.get("is_public", False),
            metadata=RecordMetadata(
                source=metadata.get("source") or DEFAULT_SOURCE,
                last_updated=metadata.get("last_updated"),
                version=metadata.get("version") or SCHEMA_VERSION,
            ),
            owner=owner,
            created_at=doc.get("created_at"),
            updated_at=doc.get("updated_at"),
        )

    @property
    def owner_id(self) -> str:
        return self.owner.id

    @property
    def formatted_value(self) -> str:
        number = format_number(self.value)
        return f"{number} {self.unit}" if self.unit else number

    def to_response(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category.value,
            "value": self.value,
            "unit": self.unit,
            "formattedValue": self.formatted_value,
            "status": self.status.value,
            "tags": list(self.tags),
            "isPublic": self.is_public,
            "metadata": {
                "source": self.metadata.source,
                "lastUpdated": isoformat(self.metadata.last_updated),
                "version": self.metadata.version,
            },
            "user": self.owner.to_response(),
            "createdAt": isoformat(self.created_at),
            "updatedAt": isoformat(self.updated_at),
        }
