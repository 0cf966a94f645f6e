import uuid
import logging
from datetime import datetime, timedelta, timezone
import bcrypt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from clinic.core.config import settings
from clinic.core.db import get_session

log = logging.getLogger(__name__)

http_bearer = HTTPBearer(auto_error=False)

ACCESS = "access"
PASSWORD_RESET = "password_reset"

class Principal(BaseModel):
    user_id: uuid.UUID
    username: str
    email: str

def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False

def _encode(claims: dict, lifetime: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {**claims, "iat": int(now.timestamp()), "exp": int((now + lifetime).timestamp())}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)

def create_access_token(user_id: uuid.UUID, username: str, email: str) -> str:
    return _encode(
        {"sub": str(user_id), "username": username, "email": email, "type": ACCESS},
        timedelta(days=settings.JWT_EXPIRES_DAYS),
    )

def create_password_reset_token(email: str) -> str:
    return _encode(
        {"email": email, "type": PASSWORD_RESET},
        timedelta(minutes=settings.PASSWORD_RESET_EXPIRES_MINUTES),
    )

def decode_token(token: str, expected_type: str = ACCESS) -> dict | None:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except JWTError as e:
        log.debug("Rejected token: %s", e)
        return None
    if payload.get("type") != expected_type:
        return None
    return payload

def token_from_request(request: Request, creds: HTTPAuthorizationCredentials | None) -> str | None:
    token = request.cookies.get(settings.AUTH_COOKIE_NAME)
    if not token and creds is not None:
        token = creds.credentials
    return token or None

async def get_current_admin(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(http_bearer),
    session: AsyncSession = Depends(get_session),
) -> Principal:
    from clinic.modules.auth.repository import AdminUserRepository

    token = token_from_request(request, creds)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="No authentication token provided")
    payload = decode_token(token, ACCESS)
    if not payload or not payload.get("sub"):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired authentication token")
    try:
        user_id = uuid.UUID(str(payload["sub"]))
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired authentication token")

    # the account must still exist
    user = await AdminUserRepository(session).get(user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired authentication token")
    return Principal(user_id=user.id, username=user.username, email=user.email)

async def get_optional_admin(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(http_bearer),
    session: AsyncSession = Depends(get_session),
) -> Principal | None:
    if not token_from_request(request, creds):
        return None
    try:
        return await get_current_admin(request, creds, session)
    except HTTPException:
        return None
