"""Bearer-token authentication and ownership/role authorization."""

from insightvault.auth.middleware import (
    authenticate_token,
    ensure_ownership,
    is_owner_or_admin,
    optional_auth,
    require_admin,
    resolve_identity,
)

__all__ = [
    "authenticate_token",
    "optional_auth",
    "require_admin",
    "resolve_identity",
    "is_owner_or_admin",
    "ensure_ownership",
]
