import logging
import re
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from sqlalchemy import or_
from sqlalchemy.orm import Session
from insekta.config import MAX_TEAM_PHOTO_SIZE_MB
from insekta.database import get_db
from insekta.models.team import TeamMember
from insekta.utils.image_processor import delete_image, read_upload, save_image
from insekta.utils.jwt_auth import get_active_user, require_admin
from insekta.utils.pagination import contains, paginate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/teams", tags=["teams"])

# Indonesian mobile numbers: +62 / 62 / 0, then 8 and a non-zero operator digit
PHONE_RE = re.compile(r"^(\+62|62|0)8[1-9][0-9]{6,11}$")


def validate_phone(phone: str) -> str:
    phone = (phone or "").strip()
    if not PHONE_RE.match(phone):
        raise HTTPException(
            status_code=400,
            detail="Format nomor HP tidak valid (contoh: 081234567890 atau +6281234567890)",
        )
    return phone


def serialize_member(member: TeamMember) -> dict:
    return {
        "id": member.id,
        "name": member.name,
        "role": member.role,
        "phone": member.phone,
        "area": member.area,
        "outlets": member.outlets or "",
        "photo": member.photo or "",
        "createdAt": member.created_at.isoformat() if member.created_at else None,
    }


async def _store_photo(photo: Optional[UploadFile]) -> Optional[str]:
    image = await read_upload(photo, MAX_TEAM_PHOTO_SIZE_MB)
    if image is None:
        return None
    return await save_image(image, "teams", size=400, fmt="jpeg", fit="cover", position="top")


@router.get("")
async def list_members(
    current_user=Depends(get_active_user),
    db: Session = Depends(get_db),
    search: str = Query(""),
    page: int = Query(1),
    limit: int = Query(10),
):
    query = db.query(TeamMember)
    if search:
        query = query.filter(or_(
            contains(TeamMember.name, search),
            contains(TeamMember.area, search),
            contains(TeamMember.role, search),
        ))

    members, pagination = paginate(
        query.order_by(TeamMember.area.asc(), TeamMember.name.asc()), page, limit, default_limit=10
    )
    return {"data": [serialize_member(m) for m in members], "pagination": pagination}


@router.get("/areas")
async def list_areas(current_user=Depends(get_active_user), db: Session = Depends(get_db)):
    """Distinct coverage areas for the filter dropdown"""
    rows = db.query(TeamMember.area).distinct().all()
    return sorted({area.strip() for (area,) in rows if area and area.strip()})


@router.post("", status_code=201)
async def create_member(
    name: str = Form(""),
    role: str = Form(""),
    phone: str = Form(""),
    area: str = Form(""),
    outlets: str = Form(""),
    photo: Optional[UploadFile] = File(None),
    current_user=Depends(require_admin),
    db: Session = Depends(get_db),
):
    if not name.strip() or not role.strip() or not phone.strip() or not area.strip():
        raise HTTPException(status_code=400, detail="Nama, jabatan, nomor HP dan area wajib diisi")
    phone = validate_phone(phone)

    photo_path = await _store_photo(photo)
    try:
        member = TeamMember(
            name=name.strip(),
            role=role.strip(),
            phone=phone,
            area=area.strip(),
            outlets=outlets.strip(),
            photo=photo_path or "",
            created_by=current_user.id,
        )
        db.add(member)
        db.commit()
        db.refresh(member)
    except Exception as e:
        db.rollback()
        delete_image(photo_path)
        logger.exception("[ERROR] POST /teams")
        raise HTTPException(status_code=500, detail=f"Gagal menambah anggota tim: {e}")

    return serialize_member(member)


@router.put("/{member_id}")
async def update_member(
    member_id: int,
    name: Optional[str] = Form(None),
    role: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    area: Optional[str] = Form(None),
    outlets: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    current_user=Depends(require_admin),
    db: Session = Depends(get_db),
):
    member = db.query(TeamMember).filter(TeamMember.id == member_id).first()
    if not member:
        raise HTTPException(status_code=404, detail="Anggota tim tidak ditemukan")

    if phone is not None:
        phone = validate_phone(phone)

    new_photo = await _store_photo(photo)
    old_photo = member.photo
    try:
        if name and name.strip():
            member.name = name.strip()
        if role and role.strip():
            member.role = role.strip()
        if phone is not None:
            member.phone = phone
        if area and area.strip():
            member.area = area.strip()
        if outlets is not None:
            member.outlets = outlets.strip()
        if new_photo:
            member.photo = new_photo
        db.commit()
        db.refresh(member)
    except Exception as e:
        db.rollback()
        delete_image(new_photo)
        logger.exception("[ERROR] PUT /teams/%s", member_id)
        raise HTTPException(status_code=500, detail=str(e))

    if new_photo:
        delete_image(old_photo)
    return serialize_member(member)


@router.delete("/{member_id}")
async def delete_member(member_id: int, current_user=Depends(require_admin), db: Session = Depends(get_db)):
    member = db.query(TeamMember).filter(TeamMember.id == member_id).first()
    if not member:
        raise HTTPException(status_code=404, detail="Anggota tim tidak ditemukan")

    photo = member.photo
    try:
        db.delete(member)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.exception("[ERROR] DELETE /teams/%s", member_id)
        raise HTTPException(status_code=500, detail=str(e))

    delete_image(photo)
    return {"message": "Anggota tim berhasil dihapus"}
