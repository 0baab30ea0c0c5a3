"""
DevCamper Backend — Authentication
====================================

What:  Password hashing, bearer-token issuing/verification, and resolution of
       a request's credential into an Identity.
Why:   Every protected route needs the same answer to "who is calling?", and
       every failure must look identical to the caller.
How:   bcrypt for passwords, PyJWT (HS256) for tokens. The secret, algorithm
       and lifetime come from an explicit AuthConfig handed to the codec at
       construction; nothing here reads the environment.

Resolution contract:
    Authorization: Bearer <jwt>
        → signature + expiry verified
        → `id` claim looked up in the users table
        → Identity(id, role)
    Any failure (missing header, wrong scheme, malformed token, bad signature,
    expired, user deleted) → UnauthorizedError with ONE fixed message.
"""

import hashlib
import logging
import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

import bcrypt
import jwt
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import UnauthorizedError
from app.models.user import Role, User

logger = logging.getLogger(__name__)

UNAUTHORIZED_MESSAGE = "Not authorized to access this route"

# bcrypt only looks at the first 72 bytes of a password
_BCRYPT_MAX_BYTES = 72


@dataclass(frozen=True)
class Identity:
    """The authenticated caller. Created once per request, never mutated."""

    id: uuid.UUID
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value


@dataclass(frozen=True)
class AuthConfig:
    secret: str
    algorithm: str = "HS256"
    expire_days: int = 30


# ── Passwords ─────────────────────────────────────────────────────────────

def hash_password(password: str, rounds: int = 10) -> str:
    hashed = bcrypt.hashpw(
        password.encode("utf-8")[:_BCRYPT_MAX_BYTES], bcrypt.gensalt(rounds=rounds)
    )
    return hashed.decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(
            password.encode("utf-8")[:_BCRYPT_MAX_BYTES], hashed.encode("utf-8")
        )
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


# ── Reset tokens ──────────────────────────────────────────────────────────

def generate_reset_token() -> Tuple[str, str]:
    """
    Returns (token, token_hash).

    The raw token goes into the emailed link; only its SHA-256 is stored.
    """
    token = secrets.token_hex(20)
    return token, hash_reset_token(token)


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


# ── Tokens ────────────────────────────────────────────────────────────────

class TokenCodec:
    """Signs and verifies bearer tokens carrying a user id."""

    def __init__(self, config: AuthConfig):
        self.config = config

    def issue(self, user_id: uuid.UUID, now: Optional[datetime] = None) -> str:
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "id": str(user_id),
            "iat": issued_at,
            "exp": issued_at + timedelta(days=self.config.expire_days),
        }
        return jwt.encode(payload, self.config.secret, algorithm=self.config.algorithm)

    def verify(self, token: str) -> uuid.UUID:
        """
        Returns the user id carried by the token.

        Raises:
            UnauthorizedError for every kind of invalid token.
        """
        try:
            payload = jwt.decode(
                token,
                self.config.secret,
                algorithms=[self.config.algorithm],
                options={"require": ["exp", "id"]},
            )
            return uuid.UUID(str(payload["id"]))
        except (jwt.PyJWTError, ValueError) as e:
            logger.debug("Rejected bearer token: %s", type(e).__name__)
            raise UnauthorizedError(UNAUTHORIZED_MESSAGE)


# ── Resolver ──────────────────────────────────────────────────────────────

def extract_bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise UnauthorizedError(UNAUTHORIZED_MESSAGE)
    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme != "Bearer" or not token:
        raise UnauthorizedError(UNAUTHORIZED_MESSAGE)
    return token


class AuthenticationResolver:
    """
    Resolves an Authorization header into an Identity.

    Usage:
        resolver = AuthenticationResolver(TokenCodec(AuthConfig(secret=...)))
        identity = await resolver.resolve(db, request.headers.get("Authorization"))
    """

    def __init__(self, codec: TokenCodec):
        self.codec = codec

    async def resolve(self, db: AsyncSession, authorization: Optional[str]) -> Identity:
        token = extract_bearer_token(authorization)
        user_id = self.codec.verify(token)

        user = await db.get(User, user_id)
        if user is None:
            # Token is genuine but the account is gone
            raise UnauthorizedError(UNAUTHORIZED_MESSAGE)

        return Identity(id=user.id, role=user.role)
