"""Registration and login endpoints."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, status
from pydantic import EmailStr, Field, field_validator
from pymongo.errors import DuplicateKeyError, PyMongoError

from insightvault.api.dependencies import get_settings, get_token_codec, get_user_repository
from insightvault.core.config import Settings
from insightvault.core.exceptions import AppError, InternalError, Unauthenticated, ValidationError
from insightvault.core.logging import get_logger
from insightvault.core.security import MAX_PASSWORD_BYTES, TokenCodec, hash_password, verify_password
from insightvault.models.base import CamelModel, strip_optional
from insightvault.models.user import build_display_name, normalize_email
from insightvault.repositories.users import UserRepository

logger = get_logger(__name__)
router = APIRouter()

DUPLICATE_EMAIL = "User with this email already exists"


class RegisterRequest(CamelModel):
    """New account payload."""

    email: EmailStr
    password: str = Field(..., min_length=6)
    name: Optional[str] = Field(default=None, max_length=100)
    first_name: Optional[str] = Field(default=None, max_length=50)
    last_name: Optional[str] = Field(default=None, max_length=50)

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password cannot exceed {MAX_PASSWORD_BYTES} bytes")
        return v

    @field_validator("name", "first_name", "last_name")
    @classmethod
    def strip_names(cls, v: Optional[str]) -> Optional[str]:
        return strip_optional(v)


class LoginRequest(CamelModel):
    """Email and password credentials."""

    email: str
    password: str


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    users: UserRepository = Depends(get_user_repository),
    codec: TokenCodec = Depends(get_token_codec),
    settings: Settings = Depends(get_settings),
) -> Dict[str, Any]:
    """Register a new user and sign them in."""
    try:
        if await users.get_by_email(payload.email):
            raise ValidationError(DUPLICATE_EMAIL)

        user = await users.create(
            email=payload.email,
            password_hash=hash_password(payload.password, rounds=settings.security.bcrypt_rounds),
            name=build_display_name(payload.name, payload.first_name, payload.last_name),
            first_name=payload.first_name,
            last_name=payload.last_name,
        )
    except DuplicateKeyError:
        raise ValidationError(DUPLICATE_EMAIL)
    except AppError:
        raise
    except PyMongoError as e:
        logger.error("Registration failed", error=str(e))
        raise InternalError()

    return {
        "success": True,
        "message": "User registered successfully",
        "token": codec.issue(user.id),
        "user": user.public_profile(),
    }


@router.post("/login")
async def login(
    payload: LoginRequest,
    users: UserRepository = Depends(get_user_repository),
    codec: TokenCodec = Depends(get_token_codec),
) -> Dict[str, Any]:
    """Verify credentials, stamp the login time and issue a token."""
    try:
        user = await users.get_by_email(payload.email)
        if user is None or not verify_password(payload.password, user.password_hash):
            raise Unauthenticated("Invalid credentials")
        if not user.is_active:
            raise Unauthenticated("Account is deactivated.")

        user = await users.record_login(user.id) or user
    except AppError:
        raise
    except PyMongoError as e:
        logger.error("Login failed", error=str(e))
        raise InternalError()

    logger.info("User logged in", user_id=user.id)
    return {
        "success": True,
        "message": "Login successful",
        "token": codec.issue(user.id),
        "user": user.public_profile(),
    }
