"""Helpers shared by the collection repositories."""

import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict

from bson import ObjectId
from bson.errors import InvalidId

from insightvault.core.exceptions import MalformedIdentifier


MAX_PAGE = 100_000


@dataclass(frozen=True)
class PageRequest:
    """1-based page number and page size."""

    page: int = 1
    limit: int = 10

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    def describe(self, total: int) -> Dict[str, int]:
        """Pagination block echoed back to clients."""
        return {
            "page": self.page,
            "limit": self.limit,
            "total": total,
            "pages": total_pages(total, self.limit),
        }


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit > 0 else 0


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_object_id(value: Any, message: str = "Invalid identifier") -> ObjectId:
    """Parse a client-supplied identifier, raising ``MalformedIdentifier``."""
    if isinstance(value, ObjectId):
        return value
    # ObjectId(None) would mint a fresh id
    if value is None:
        raise MalformedIdentifier(message)
    try:
        return ObjectId(value)
    except (InvalidId, TypeError) as e:
        raise MalformedIdentifier(message) from e


def contains(text: str) -> Dict[str, str]:
    """Case-insensitive literal substring match."""
    return {"$regex": re.escape(text.strip()), "$options": "i"}
