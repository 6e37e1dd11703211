from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
import bcrypt
import secrets
from fastapi import Depends, HTTPException, status, Cookie, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from station_monitor.core.config import settings
from station_monitor.core.logger import logger, log_auth_attempt

# JWT Bearer token scheme (fallback for clients without cookies)
security = HTTPBearer(auto_error=False)

ADMIN_ROLES = ("super_admin", "admin")


@dataclass(frozen=True)
class MemberContext:
    """Identity of the caller, built from verified token claims"""
    member_id: str
    name: str
    role: str
    csrf_token: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES


def generate_csrf_token() -> str:
    """Generate a secure CSRF token"""
    return secrets.token_urlsafe(32)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    try:
        return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))
    except ValueError as e:
        logger.error(f"Password verification error: {str(e)}")
        return False


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt"""
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None, csrf_token: Optional[str] = None) -> str:
    """Create a JWT access token with optional CSRF token"""
    to_encode = data.copy()

    now = datetime.now(timezone.utc)
    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})

    # CSRF token travels inside the JWT for cookie-based auth
    if csrf_token:
        to_encode.update({"csrf": csrf_token})

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_token(token: str) -> dict:
    """Verify and decode a JWT token"""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.warning("Token verification failed: Token has expired")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired. Please login again.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except JWTError as e:
        logger.warning(f"Token verification failed: {type(e).__name__} - {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials. Please login again.",
            headers={"WWW-Authenticate": "Bearer"},
        )


def _extract_token(request: Request, access_token: Optional[str], credentials: Optional[HTTPAuthorizationCredentials]) -> str:
    if access_token:
        logger.debug(f"Authentication via cookie for {request.method} {request.url.path}")
        return access_token
    if credentials:
        logger.debug(f"Authentication via Bearer token for {request.method} {request.url.path}")
        return credentials.credentials

    logger.warning(f"No authentication credentials provided for {request.method} {request.url.path}")
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Authentication required. Please login to access this resource.",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _context_from_payload(payload: dict) -> MemberContext:
    member_id = payload.get("sub")
    if member_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return MemberContext(
        member_id=member_id,
        name=payload.get("name", member_id),
        role=payload.get("role", "member"),
        csrf_token=payload.get("csrf")
    )


async def get_current_member(
    request: Request,
    access_token: Optional[str] = Cookie(None),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> MemberContext:
    """
    Dependency to get the current authenticated member.
    Supports both cookie-based (preferred) and bearer token authentication.
    Cookie-authenticated state-changing requests must echo the CSRF token
    in the X-CSRF-Token header (not enforced in DEBUG mode).
    """
    token = _extract_token(request, access_token, credentials)
    payload = verify_token(token)

    if access_token and request.method in ["POST", "PUT", "PATCH", "DELETE"]:
        jwt_csrf = payload.get("csrf")
        header_csrf = request.headers.get("X-CSRF-Token")

        if jwt_csrf and not settings.DEBUG:
            if not header_csrf:
                logger.warning(f"CSRF token missing for {request.method} {request.url.path}")
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="CSRF token is required. Please include X-CSRF-Token header."
                )
            if jwt_csrf != header_csrf:
                logger.warning(f"CSRF token mismatch for member {payload.get('sub')} - {request.method} {request.url.path}")
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="CSRF token is invalid or has expired. Please logout and login again."
                )

    return _context_from_payload(payload)


async def get_current_member_no_csrf(
    request: Request,
    access_token: Optional[str] = Cookie(None),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> MemberContext:
    """
    Dependency to get the current authenticated member WITHOUT CSRF validation.
    Use this for low-risk operations like logout or session checks.
    """
    token = _extract_token(request, access_token, credentials)
    return _context_from_payload(verify_token(token))


async def get_admin(current: MemberContext = Depends(get_current_member)) -> MemberContext:
    """Dependency to ensure the caller is an admin"""
    if not current.is_admin:
        logger.warning(f"Access denied: Member '{current.member_id}' (role: {current.role}) attempted to access admin endpoint")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required."
        )
    return current


def authenticate_member(db: Session, member_id: str, password: str) -> Optional[MemberContext]:
    """
    Authenticate a member (bootstrap super admin from .env or a member row).
    Returns the member context if authenticated, None otherwise.
    """
    if member_id == settings.ADMIN_USERNAME:
        if secrets.compare_digest(password.encode('utf-8'), settings.ADMIN_PASSWORD.encode('utf-8')):
            log_auth_attempt(member_id, success=True)
            return MemberContext(member_id=member_id, name=member_id, role="super_admin")
        log_auth_attempt(member_id, success=False, reason="Invalid password for super admin")
        return None

    from station_monitor.db import crud
    db_member = crud.get_member_by_member_id(db, member_id)

    if not db_member:
        log_auth_attempt(member_id, success=False, reason="Member id not found")
        return None

    if db_member.status != "active":
        log_auth_attempt(member_id, success=False, reason="Account is suspended")
        return None

    if not verify_password(password, db_member.hashed_password):
        log_auth_attempt(member_id, success=False, reason="Invalid password")
        return None

    log_auth_attempt(member_id, success=True)
    return MemberContext(member_id=db_member.member_id, name=db_member.name, role=db_member.role)
