"""Bearer token codec and password hashing."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
import jwt

from insightvault.core.config import SecurityConfig

# bcrypt only looks at the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


class TokenError(Exception):
    """Base class for token verification failures."""


class TokenExpiredError(TokenError):
    """Token signature is valid but its expiry has passed."""


class InvalidTokenError(TokenError):
    """Token is malformed, badly signed or missing the user claim."""


class TokenCodec:
    """Issues and verifies signed, expiring bearer tokens.

    A codec is built once from configuration at startup and never mutated;
    verification is pure and does no I/O.
    """

    USER_CLAIM = "id"

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 60 * 24 * 7):
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    @classmethod
    def from_config(cls, config: SecurityConfig) -> "TokenCodec":
        return cls(
            secret_key=config.secret_key,
            algorithm=config.algorithm,
            expire_minutes=config.access_token_expire_minutes,
        )

    def issue(self, user_id: str, now: Optional[datetime] = None) -> str:
        """Create a token for ``user_id`` that expires after the configured lifetime."""
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            self.USER_CLAIM: user_id,
            "iat": issued_at,
            "exp": issued_at + timedelta(minutes=self.expire_minutes),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> Dict[str, Any]:
        """Decode ``token`` and return its claims.

        Raises:
            TokenExpiredError: The token's ``exp`` is in the past.
            InvalidTokenError: Anything else wrong with the token.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={"require": ["exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError(str(e)) from e
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(str(e)) from e

        user_id = payload.get(self.USER_CLAIM)
        if not isinstance(user_id, str) or not user_id:
            raise InvalidTokenError(f"Token has no '{self.USER_CLAIM}' claim")
        return payload

    def user_id_from(self, token: str) -> str:
        """Verify ``token`` and return the embedded user identifier."""
        return self.verify(token)[self.USER_CLAIM]


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password with a fresh bcrypt salt."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """Check ``password`` against a stored bcrypt hash.

    Accounts created through an external sign-in have no hash and never match.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False
