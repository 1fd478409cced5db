"""
Security utilities: JWT, password hashing, admin authentication
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import HTTPException, Security, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import hmac
import logging

from hemis.core.config import settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
security_scheme = HTTPBearer()

CACHE_MANAGE_PERMISSION = "system.cache.manage"
TRANSLATION_MANAGE_PERMISSION = "system.translation.manage"
ADMIN_PERMISSIONS = [CACHE_MANAGE_PERMISSION, TRANSLATION_MANAGE_PERMISSION]


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password"""
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token"""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt


def decode_access_token(token: str) -> Optional[dict]:
    """Decode and verify JWT token"""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return payload
    except JWTError:
        return None


def verify_admin_credentials(username: str, password: str) -> bool:
    """
    Verify admin username and password against settings.
    ADMIN_PASSWORD_HASH (bcrypt) takes precedence over plain ADMIN_PASSWORD.

    Args:
        username: Admin username
        password: Admin password (plain text)

    Returns:
        True if credentials match, False otherwise
    """
    if not hmac.compare_digest(username, settings.ADMIN_USERNAME):
        return False
    if settings.ADMIN_PASSWORD_HASH:
        return verify_password(password, settings.ADMIN_PASSWORD_HASH)
    return hmac.compare_digest(password, settings.ADMIN_PASSWORD)


async def get_current_admin(
    credentials: HTTPAuthorizationCredentials = Security(security_scheme)
) -> Dict[str, Any]:
    """
    FastAPI dependency to verify admin JWT token.

    Returns:
        Decoded token payload

    Raises:
        HTTPException: If token is invalid or user is not admin
    """
    token = credentials.credentials
    payload = decode_access_token(token)

    if not payload:
        logger.warning("Invalid or expired token")
        raise HTTPException(
            status_code=401,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if payload.get("sub") != "admin":
        logger.warning(f"Non-admin token attempt: {payload.get('sub')}")
        raise HTTPException(
            status_code=403,
            detail="Not authorized - admin access required",
        )

    return payload


def require_permission(permission: str):
    """
    Dependency factory: admin token carrying the given permission.

    Example:
        @router.post("/cache/refresh/i18n")
        async def refresh(admin: dict = Depends(require_permission(CACHE_MANAGE_PERMISSION))):
            ...
    """
    async def checker(admin: Dict[str, Any] = Depends(get_current_admin)) -> Dict[str, Any]:
        if permission not in admin.get("permissions", []):
            logger.warning(f"Permission denied: {permission} for {admin.get('sub')}")
            raise HTTPException(status_code=403, detail=f"Missing permission: {permission}")
        return admin

    return checker
