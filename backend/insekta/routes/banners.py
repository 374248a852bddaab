import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session
from insekta.database import get_db
from insekta.models.banner import Banner
from insekta.schemas import BannerIn, BannerUpdateIn
from insekta.utils.jwt_auth import get_active_user, require_admin
from insekta.utils.pagination import contains, paginate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/banners", tags=["banners"])


def serialize_banner(banner: Banner) -> dict:
    return {
        "id": banner.id,
        "title": banner.title,
        "content": banner.content,
        "type": banner.type,
        "linkUrl": banner.link_url or "",
        "isActive": bool(banner.is_active),
        "createdAt": banner.created_at.isoformat() if banner.created_at else None,
    }


@router.get("")
async def list_banners(
    current_user=Depends(get_active_user),
    db: Session = Depends(get_db),
    search: str = Query(""),
    type: str = Query("all"),
    status: str = Query("all"),
    page: int = Query(1),
    limit: int = Query(6),
):
    """Announcements; clients only ever see active ones"""
    query = db.query(Banner)
    if search:
        query = query.filter(or_(contains(Banner.title, search), contains(Banner.content, search)))
    if type and type != "all":
        query = query.filter(Banner.type == type)

    if current_user.role != "admin":
        query = query.filter(Banner.is_active == True)  # noqa: E712
    elif status in ("active", "inactive"):
        query = query.filter(Banner.is_active == (status == "active"))

    banners, pagination = paginate(
        query.order_by(Banner.created_at.desc(), Banner.id.desc()), page, limit, default_limit=6
    )
    return {"data": [serialize_banner(b) for b in banners], "pagination": pagination}


@router.post("", status_code=201)
async def create_banner(data: BannerIn, current_user=Depends(require_admin), db: Session = Depends(get_db)):
    try:
        banner = Banner(
            title=data.title.strip(),
            content=data.content,
            type=data.type,
            link_url=data.link_url,
            is_active=data.is_active,
            created_by=current_user.id,
        )
        db.add(banner)
        db.commit()
        db.refresh(banner)
    except Exception as e:
        db.rollback()
        logger.exception("[ERROR] POST /banners")
        raise HTTPException(status_code=500, detail=f"Gagal membuat banner: {e}")

    return serialize_banner(banner)


@router.put("/{banner_id}")
async def update_banner(
    banner_id: int,
    data: BannerUpdateIn,
    current_user=Depends(require_admin),
    db: Session = Depends(get_db),
):
    banner = db.query(Banner).filter(Banner.id == banner_id).first()
    if not banner:
        raise HTTPException(status_code=404, detail="Banner tidak ditemukan")

    try:
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(banner, field, value.strip() if field == "title" else value)
        db.commit()
        db.refresh(banner)
    except Exception as e:
        db.rollback()
        logger.exception("[ERROR] PUT /banners/%s", banner_id)
        raise HTTPException(status_code=500, detail=str(e))

    return serialize_banner(banner)


@router.delete("/{banner_id}")
async def delete_banner(banner_id: int, current_user=Depends(require_admin), db: Session = Depends(get_db)):
    banner = db.query(Banner).filter(Banner.id == banner_id).first()
    if not banner:
        raise HTTPException(status_code=404, detail="Banner tidak ditemukan")

    try:
        db.delete(banner)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.exception("[ERROR] DELETE /banners/%s", banner_id)
        raise HTTPException(status_code=500, detail=str(e))

    return {"message": "Banner berhasil dihapus"}
