"""
Security utilities for authentication and authorization
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Mapping
import logging
import re
import uuid

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import ValidationError
from fastapi import Depends, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from drawn_to_run.config import Settings, settings
from drawn_to_run.core.database import get_session
from drawn_to_run.core.exceptions import AuthenticationError, AuthorizationError
from drawn_to_run.core.redis import TokenBlacklist, get_redis
from drawn_to_run.models.user import User, UserRole
from drawn_to_run.schemas.user import TokenPayload

logger = logging.getLogger(__name__)

BEARER_PATTERN = re.compile(r"^Bearer\s+", re.IGNORECASE)


class SecurityManager:
    """
    Password hashing and token issue/verification bound to one Settings
    """

    def __init__(self, config: Settings):
        if not config.JWT_SECRET_KEY:
            raise ValueError("JWT_SECRET_KEY is required")
        self.config = config
        self.pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=config.PASSWORD_HASH_ROUNDS,
        )

    def hash_password(self, password: str) -> str:
        return self.pwd_context.hash(password)

    def verify_password(self, plain_password: str, hashed_password: Optional[str]) -> bool:
        if not hashed_password:
            return False
        return self.pwd_context.verify(plain_password, hashed_password)

    def create_access_token(
        self,
        user: User,
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """
        Create a signed token embedding the user's id, email and role
        """
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(days=self.config.JWT_ACCESS_TOKEN_EXPIRE_DAYS))
        role = user.role.value if isinstance(user.role, UserRole) else user.role

        to_encode = {
            "sub": str(user.id),
            "email": user.email,
            "role": role,
            "iss": self.config.JWT_ISSUER,
            "iat": now,
            "exp": expire,
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(
            to_encode,
            self.config.JWT_SECRET_KEY,
            algorithm=self.config.JWT_ALGORITHM
        )

    def decode_token(self, token: str) -> Optional[TokenPayload]:
        """
        Verify signature, expiry and issuer; None for any invalid token
        """
        try:
            claims = jwt.decode(
                token,
                self.config.JWT_SECRET_KEY,
                algorithms=[self.config.JWT_ALGORITHM],
                issuer=self.config.JWT_ISSUER,
            )
            return TokenPayload.model_validate(claims)
        except JWTError as e:
            logger.info(f"Rejected access token: {e}")
            return None
        except ValidationError as e:
            logger.warning(f"Access token has malformed claims: {e.error_count()} error(s)")
            return None

    def resolve_identity(self, headers: Mapping[str, str]) -> Optional[TokenPayload]:
        token = extract_bearer_token(headers)
        if not token:
            return None
        return self.decode_token(token)


# Create global security manager
security_manager = SecurityManager(settings)


def extract_bearer_token(headers: Mapping[str, str]) -> Optional[str]:
    """
    Pull the token out of an Authorization header, matching both the header
    name and the Bearer prefix case-insensitively
    """
    auth_header = None
    for key, value in headers.items():
        if key.lower() == "authorization":
            auth_header = value
            break

    if not auth_header:
        return None

    token = BEARER_PATTERN.sub("", auth_header).strip()
    return token or None


async def get_token_blacklist(redis_client=Depends(get_redis)) -> TokenBlacklist:
    return TokenBlacklist(redis_client)


async def get_optional_identity(request: Request) -> Optional[TokenPayload]:
    return security_manager.resolve_identity(request.headers)


async def require_authenticated(
    identity: Optional[TokenPayload] = Depends(get_optional_identity),
    blacklist: TokenBlacklist = Depends(get_token_blacklist),
    db: AsyncSession = Depends(get_session),
) -> User:
    """
    Resolve the bearer token to the current user row
    """
    if identity is None:
        raise AuthenticationError("Authentication required")

    if identity.jti and await blacklist.is_revoked(identity.jti):
        raise AuthenticationError("Token has been invalidated")

    result = await db.execute(select(User).where(User.id == identity.sub))
    user = result.scalar_one_or_none()

    if user is None:
        raise AuthenticationError("Invalid authentication token")

    return user


def require_role(*allowed_roles: UserRole):
    """
    Dependency factory: authenticated user whose role is in allowed_roles
    """
    allowed = frozenset(allowed_roles)

    async def role_checker(current_user: User = Depends(require_authenticated)) -> User:
        if current_user.role not in allowed:
            raise AuthorizationError("Insufficient permissions")
        return current_user

    return role_checker
