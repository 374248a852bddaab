import logging
import secrets
import string
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session
from passlib.context import CryptContext
from insekta.database import get_db
from insekta.models.user import User
from insekta.schemas import LoginIn, RegisterIn
from insekta.utils.rate_limiter import login_limiter
from insekta.utils.jwt_auth import set_session_cookie, clear_session_cookie, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def random_password(length: int = 10) -> str:
    """Temporary password with at least one letter and one digit"""
    alphabet = string.ascii_letters + string.digits
    while True:
        pw = "".join(secrets.choice(alphabet) for _ in range(length))
        if any(c.isalpha() for c in pw) and any(c.isdigit() for c in pw):
            return pw


def default_avatar(name: str) -> str:
    """Deterministic DiceBear avatar; the seed is the name without whitespace"""
    return f"https://api.dicebear.com/7.x/avataaars/svg?seed={''.join(name.split())}"


def public_user(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "avatar": user.avatar or "",
        "companyName": user.company_name or "",
        "isActive": bool(user.is_active),
        "isFirstLogin": bool(user.is_first_login),
        "createdAt": user.created_at.isoformat() if user.created_at else None,
    }


@router.post("/login")
async def login(request: Request, response: Response, data: LoginIn, db: Session = Depends(get_db)):
    """Log in and receive the session cookie"""
    ip_address = request.client.host if request.client else "unknown"

    if not login_limiter.is_allowed(ip_address):
        remaining = login_limiter.get_remaining_time(ip_address)
        logger.warning("[AUTH] login rate limit exceeded for %s", ip_address)
        raise HTTPException(
            status_code=429,
            detail=f"Terlalu banyak percobaan login. Coba lagi dalam {remaining} detik",
        )

    email = data.email.strip().lower()
    user = db.query(User).filter(User.email == email).first()

    if not user or not verify_password(data.password, user.password_hash):
        logger.info("[AUTH] failed login for %s from %s", email, ip_address)
        raise HTTPException(status_code=401, detail="Email atau password salah")

    if not user.is_active:
        raise HTTPException(status_code=403, detail="Akun Anda telah dinonaktifkan")

    token = set_session_cookie(response, user.id)
    return {**public_user(user), "token": token}


@router.post("/register", status_code=201)
async def register(response: Response, data: RegisterIn, db: Session = Depends(get_db)):
    """Self-registration; always creates a client account"""
    if db.query(User).filter(User.email == data.email).first():
        raise HTTPException(status_code=400, detail="User sudah terdaftar")

    try:
        user = User(
            name=data.name.strip(),
            email=data.email,
            password_hash=hash_password(data.password),
            role="client",
            company_name=data.company_name.strip(),
            avatar=default_avatar(data.name),
            is_active=True,
            is_first_login=False,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
    except Exception as e:
        db.rollback()
        logger.exception("[ERROR] /auth/register")
        raise HTTPException(status_code=500, detail=f"Registrasi gagal: {e}")

    token = set_session_cookie(response, user.id)
    return {**public_user(user), "token": token}


@router.post("/logout")
async def logout(response: Response):
    clear_session_cookie(response)
    return {"message": "Logout berhasil"}


@router.get("/me")
async def me(current_user=Depends(get_current_user)):
    return public_user(current_user)
