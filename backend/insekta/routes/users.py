import logging
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from sqlalchemy import or_
from sqlalchemy.orm import Session
from insekta.config import CLIENT_URL, MAX_IMAGE_SIZE_MB
from insekta.database import get_db
from insekta.models.user import User
from insekta.routes.auth import (
    default_avatar,
    hash_password,
    public_user,
    random_password,
    verify_password,
)
from insekta.schemas import UserCreateIn, UserAdminUpdateIn, validate_password_strength
from insekta.utils.email_templates import welcome_user_template
from insekta.utils.image_processor import delete_image, read_upload, save_image
from insekta.utils.jwt_auth import get_current_user, require_admin
from insekta.utils.mailer import send_email
from insekta.utils.pagination import contains, paginate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("")
async def list_users(
    current_user=Depends(require_admin),
    db: Session = Depends(get_db),
    search: str = Query(""),
    role: str = Query(""),
    status: str = Query(""),
    page: int = Query(1),
    limit: int = Query(10),
):
    """User list for the admin table"""
    query = db.query(User)
    if search:
        query = query.filter(or_(contains(User.name, search), contains(User.email, search)))
    if role and role != "all":
        query = query.filter(User.role == role)
    if status in ("active", "inactive"):
        query = query.filter(User.is_active == (status == "active"))

    users, pagination = paginate(
        query.order_by(User.created_at.desc(), User.id.desc()), page, limit, default_limit=10
    )
    return {"users": [public_user(u) for u in users], "pagination": pagination}


@router.post("", status_code=201)
async def create_user(data: UserCreateIn, current_user=Depends(require_admin), db: Session = Depends(get_db)):
    """Create an account with a temporary password and mail it to the user"""
    if db.query(User).filter(User.email == data.email).first():
        raise HTTPException(status_code=400, detail="User sudah terdaftar")

    temp_password = random_password()
    try:
        user = User(
            name=data.name.strip(),
            email=data.email,
            password_hash=hash_password(temp_password),
            role=data.role,
            company_name=data.company_name.strip(),
            avatar=default_avatar(data.name),
            is_active=True,
            is_first_login=True,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
    except Exception as e:
        db.rollback()
        logger.exception("[ERROR] POST /users")
        raise HTTPException(status_code=500, detail=f"Gagal membuat user: {e}")

    # A failed mail must not undo the account; the admin sees it in the log
    try:
        html = welcome_user_template(user.name, user.email, temp_password, f"{CLIENT_URL}/login")
        sent = await send_email(user.email, "Selamat Datang di Insekta - Detail Akun Anda", html)
    except Exception as e:
        logger.error("[MAIL] welcome mail to %s failed: %s", user.email, e)
        sent = False

    return {
        **public_user(user),
        "emailSent": sent,
        "message": "User dibuat & email notifikasi dikirim." if sent else "User dibuat, email notifikasi gagal dikirim.",
    }


@router.put("/profile")
async def update_profile(
    name: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    password: Optional[str] = Form(None),
    old_password: Optional[str] = Form(None, alias="oldPassword"),
    avatar: Optional[UploadFile] = File(None),
    current_user=Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Own profile: name, e-mail, avatar and password (also the first-login change)"""
    user = current_user

    if name and name.strip():
        user.name = name.strip()

    if email and email.strip().lower() != user.email:
        new_email = email.strip().lower()
        if db.query(User).filter(User.email == new_email, User.id != user.id).first():
            raise HTTPException(status_code=400, detail="Email sudah digunakan user lain")
        user.email = new_email

    if password:
        if not user.is_first_login:
            if not old_password:
                raise HTTPException(status_code=400, detail="Masukkan password lama untuk keamanan.")
            if not verify_password(old_password, user.password_hash):
                raise HTTPException(status_code=401, detail="Password lama salah!")
        try:
            validate_password_strength(password)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        user.password_hash = hash_password(password)
        user.is_first_login = False

    image = await read_upload(avatar, MAX_IMAGE_SIZE_MB)
    new_avatar = None
    if image is not None:
        new_avatar = await save_image(image, "avatars", size=200, fmt="jpeg", fit="cover")

    try:
        old_avatar = user.avatar
        if new_avatar:
            user.avatar = new_avatar
        db.commit()
        db.refresh(user)
    except Exception as e:
        db.rollback()
        delete_image(new_avatar)
        logger.exception("[ERROR] PUT /users/profile")
        raise HTTPException(status_code=500, detail=f"Gagal memperbarui profil: {e}")

    if new_avatar:
        delete_image(old_avatar)
    return public_user(user)


@router.get("/companies")
async def list_companies(current_user=Depends(require_admin), db: Session = Depends(get_db)):
    """Distinct company names of client accounts"""
    rows = (
        db.query(User.company_name)
        .filter(User.role == "client", User.company_name.isnot(None), User.company_name != "")
        .distinct()
        .all()
    )
    return sorted({name.strip() for (name,) in rows if name and name.strip()})


@router.put("/{user_id}")
async def update_user(
    user_id: int,
    data: UserAdminUpdateIn,
    current_user=Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Admin edit: name, role, company, active flag"""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User tidak ditemukan")

    if data.name:
        user.name = data.name.strip()
    if data.role:
        user.role = data.role
    if data.company_name is not None:
        user.company_name = data.company_name.strip()
    if data.is_active is not None:
        user.is_active = data.is_active

    try:
        db.commit()
        db.refresh(user)
    except Exception as e:
        db.rollback()
        logger.exception("[ERROR] PUT /users/%s", user_id)
        raise HTTPException(status_code=500, detail=str(e))

    return {"message": "User updated", "user": public_user(user)}


@router.delete("/{user_id}")
async def delete_user(user_id: int, current_user=Depends(require_admin), db: Session = Depends(get_db)):
    """Delete a client account; admin accounts are never deleted here"""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User tidak ditemukan")

    if user.role == "admin":
        raise HTTPException(status_code=400, detail="Admin utama tidak bisa dihapus sembarangan")

    avatar = user.avatar
    try:
        db.delete(user)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.exception("[ERROR] DELETE /users/%s", user_id)
        raise HTTPException(status_code=500, detail=str(e))

    delete_image(avatar)
    return {"message": "User berhasil dihapus"}
