"""
Authentication and authorization dependencies.

Two request-pipeline stages share one verification routine:

- ``authenticate_token``: the request fails unless a valid bearer token names
  an existing, active user.
- ``optional_auth``: same checks, but any failure just means "anonymous".

Authorization runs after authentication:

- ``require_admin``: role check.
- ``ensure_ownership``: called by handlers after loading a resource, since
  the owner is a property of the stored record, not of the request path.
"""

from typing import Optional

from fastapi import Depends, Header, Request

from insightvault.api.dependencies import get_token_codec, get_user_repository
from insightvault.core.exceptions import (
    AppError,
    Forbidden,
    InternalError,
    MalformedIdentifier,
    Unauthenticated,
)
from insightvault.core.logging import get_logger
from insightvault.core.security import InvalidTokenError, TokenCodec, TokenExpiredError
from insightvault.models.user import User
from insightvault.repositories.users import UserRepository

logger = get_logger(__name__)

BEARER_PREFIX = "bearer "


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from ``Bearer <token>``, or None for anything else."""
    if not authorization or not authorization[:len(BEARER_PREFIX)].lower() == BEARER_PREFIX:
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


async def resolve_identity(
    token: Optional[str],
    codec: TokenCodec,
    users: UserRepository,
) -> User:
    """Verify ``token`` and load the active user it names.

    Raises:
        Unauthenticated: No token, a bad or expired token, an unknown user or
            a deactivated account.
        InternalError: Anything unexpected; the detail is only logged.
    """
    if not token:
        raise Unauthenticated("Access denied. No token provided.")

    try:
        user_id = codec.user_id_from(token)
        user = await users.get_by_id(user_id)
    except TokenExpiredError:
        raise Unauthenticated("Token expired.")
    except InvalidTokenError:
        raise Unauthenticated("Invalid token.")
    except MalformedIdentifier:
        raise Unauthenticated("Invalid token. User not found.")
    except Exception as e:
        logger.error("Authentication failed unexpectedly", error=str(e), exc_info=True)
        raise InternalError("Internal server error during authentication.") from e

    if user is None:
        raise Unauthenticated("Invalid token. User not found.")
    if not user.is_active:
        raise Unauthenticated("Account is deactivated.")
    return user


async def authenticate_token(
    request: Request,
    authorization: Optional[str] = Header(None),
    codec: TokenCodec = Depends(get_token_codec),
    users: UserRepository = Depends(get_user_repository),
) -> User:
    """Require a valid bearer token; attach the user to ``request.state.user``."""
    user = await resolve_identity(extract_bearer_token(authorization), codec, users)
    request.state.user = user
    return user


async def optional_auth(
    request: Request,
    authorization: Optional[str] = Header(None),
    codec: TokenCodec = Depends(get_token_codec),
    users: UserRepository = Depends(get_user_repository),
) -> Optional[User]:
    """Attach the user when the token checks out; otherwise carry on anonymously."""
    request.state.user = None
    token = extract_bearer_token(authorization)
    if token is None:
        return None

    try:
        user = await resolve_identity(token, codec, users)
    except AppError as e:
        logger.debug("Continuing without identity", reason=e.message)
        return None

    request.state.user = user
    return user


def require_admin(user: User = Depends(authenticate_token)) -> User:
    """Allow only administrators."""
    if not user.is_admin:
        raise Forbidden("Admin access required.")
    return user


def is_owner_or_admin(identity: Optional[User], owner_id: str) -> bool:
    """True if ``identity`` owns the resource or is an administrator."""
    if identity is None:
        return False
    return identity.id == str(owner_id) or identity.is_admin


def ensure_ownership(identity: Optional[User], owner_id: str, message: str = "Access denied") -> None:
    """Raise ``Forbidden`` unless ``identity`` may touch a resource owned by ``owner_id``."""
    if identity is None:
        raise Unauthenticated("Authentication required.")
    if not is_owner_or_admin(identity, owner_id):
        raise Forbidden(message)
