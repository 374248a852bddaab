"""
JWT session utilities.

The token travels in an HTTP-only cookie; an `Authorization: Bearer` header
is accepted as a fallback for API clients.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from insekta.database import get_db
from insekta.config import (
    SECRET_KEY,
    ALGORITHM,
    ACCESS_TOKEN_EXPIRE_DAYS,
    COOKIE_NAME,
    DEBUG,
)

security = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Signed token carrying `data` plus an expiry"""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(days=ACCESS_TOKEN_EXPIRE_DAYS))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def set_session_cookie(response: Response, user_id: int) -> str:
    token = create_access_token({"sub": str(user_id)})
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        httponly=True,
        secure=not DEBUG,
        samesite="strict",
        max_age=ACCESS_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
    )
    return token


def clear_session_cookie(response: Response):
    response.delete_cookie(key=COOKIE_NAME, httponly=True, secure=not DEBUG, samesite="strict")


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
):
    """
    Resolve the logged-in user from the session cookie (or bearer header).
    Missing, invalid or expired tokens and inactive users get 401.
    """
    from insekta.models.user import User

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Tidak terautentikasi, silakan login kembali",
    )
    token = request.cookies.get(COOKIE_NAME) or (credentials.credentials if credentials else None)
    if not token:
        raise credentials_exception

    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        user_id = payload.get("sub")
        if user_id is None:
            raise credentials_exception
        user_id = int(user_id)
    except (JWTError, ValueError):
        raise credentials_exception

    user = db.query(User).filter(User.id == user_id).first()
    if user is None or not user.is_active:
        raise credentials_exception
    return user


async def get_active_user(current_user=Depends(get_current_user)):
    """Blocks everything but the profile screen until the first-login password change"""
    if current_user.is_first_login:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Silakan ganti password terlebih dahulu",
        )
    return current_user


async def require_admin(current_user=Depends(get_active_user)):
    if current_user.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Akses ditolak, khusus admin",
        )
    return current_user
