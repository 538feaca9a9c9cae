"""
Session token and password utilities

Session tokens are HS256-signed JWTs. A token is only trusted after its
signature and expiry have been verified.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from starlette.requests import HTTPConnection
from jose import JWTError, jwt
from passlib.context import CryptContext
from typing import Dict, Optional
import hashlib
import secrets
import uuid
import structlog

from campus_order.core.config import Settings

logger = structlog.get_logger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a plain password with bcrypt"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: Optional[str]) -> bool:
    """Verify a plain password against a stored hash"""
    if not password_hash:
        return False
    return pwd_context.verify(plain_password, password_hash)


def generate_reset_token() -> str:
    """Create a random URL-safe password reset token"""
    return secrets.token_urlsafe(32)


def hash_reset_token(token: str) -> str:
    """Reset tokens are stored as sha256 digests only"""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class SessionIdentity:
    """Identity carried by a verified session token"""
    user_id: uuid.UUID
    email: str
    name: Optional[str] = None


class SessionResolver:
    """Issues session tokens and resolves them from inbound requests"""

    def __init__(self, settings: Settings):
        self.secret_key = settings.SESSION_SECRET_KEY
        self.algorithm = settings.SESSION_ALGORITHM
        self.cookie_name = settings.SESSION_COOKIE_NAME
        self.expire_minutes = settings.SESSION_EXPIRE_MINUTES

    def issue(
        self,
        user_id: uuid.UUID,
        email: str,
        name: Optional[str] = None,
        expires_delta: Optional[timedelta] = None
    ) -> str:
        """Create a signed session token with user claims"""
        now = datetime.utcnow()
        expire = now + (expires_delta or timedelta(minutes=self.expire_minutes))
        to_encode = {
            "sub": str(user_id),
            "email": email,
            "name": name,
            "exp": expire,
            "iat": now,
        }
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def decode(self, token: Optional[str]) -> Optional[SessionIdentity]:
        """Verify a token and return its identity, or None if invalid"""
        if not token:
            return None
        try:
            payload: Dict = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
            user_id = uuid.UUID(payload.get("sub"))
        except (JWTError, TypeError, ValueError) as e:
            logger.debug(f"Rejected session token: {e}")
            return None

        email = payload.get("email")
        if not email:
            return None
        return SessionIdentity(user_id=user_id, email=email, name=payload.get("name"))

    def extract_token(self, request: HTTPConnection) -> Optional[str]:
        """Read the token from the Authorization header or the session cookie"""
        authorization = request.headers.get("authorization")
        if authorization:
            scheme, _, credentials = authorization.partition(" ")
            if scheme.lower() == "bearer" and credentials:
                return credentials.strip()
        return request.cookies.get(self.cookie_name)

    def resolve(self, request: HTTPConnection) -> Optional[SessionIdentity]:
        """Resolve the session identity for a request"""
        return self.decode(self.extract_token(request))
