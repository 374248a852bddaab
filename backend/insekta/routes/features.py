import json
import logging
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from pydantic import ValidationError
from sqlalchemy.orm import Session
from insekta.config import MAX_IMAGE_SIZE_MB
from insekta.database import get_db
from insekta.models.feature import Feature, FeatureAssignment
from insekta.models.user import User
from insekta.schemas import AssignmentIn
from insekta.services.feature_service import (
    FeatureValidationError,
    apply_assignments,
    build_link_config,
    collect_modes,
    current_modes,
    resolve_menu,
    serialize_feature,
    validate_feature,
)
from insekta.utils.image_processor import delete_image, read_upload, save_image
from insekta.utils.jwt_auth import get_active_user, require_admin
from insekta.utils.pagination import contains, paginate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/features", tags=["features"])


def _parse_json_list(raw: str, label: str) -> list:
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        raise HTTPException(status_code=400, detail=f"Format {label} tidak valid")
    if not isinstance(value, list):
        raise HTTPException(status_code=400, detail=f"Format {label} tidak valid")
    return value


def _parse_assignments(raw: str):
    entries = _parse_json_list(raw, "assignedTo")
    try:
        return collect_modes([AssignmentIn.model_validate(e).model_dump() for e in entries])
    except ValidationError:
        raise HTTPException(status_code=400, detail="Format assignedTo tidak valid")


async def _my_menu(current_user, db: Session):
    features = db.query(Feature).order_by(Feature.id).all()
    return resolve_menu(features, current_user.id)


@router.get("")
async def get_features(current_user=Depends(get_active_user), db: Session = Depends(get_db)):
    """Menu of the logged-in user"""
    return await _my_menu(current_user, db)


@router.get("/my-features")
async def get_my_features(current_user=Depends(get_active_user), db: Session = Depends(get_db)):
    return await _my_menu(current_user, db)


@router.get("/admin")
async def get_admin_features(
    current_user=Depends(require_admin),
    db: Session = Depends(get_db),
    search: str = Query(""),
    company: str = Query(""),
    page: int = Query(1),
    limit: int = Query(10),
):
    """All features with their assignment lists"""
    query = db.query(Feature)
    if search:
        query = query.filter(contains(Feature.title, search))
    if company and company != "all":
        query = query.filter(
            Feature.assignments.any(FeatureAssignment.user.has(User.company_name == company))
        )

    features, pagination = paginate(
        query.order_by(Feature.created_at.desc(), Feature.id.desc()), page, limit, default_limit=10
    )
    return {"data": [serialize_feature(f) for f in features], "pagination": pagination}


@router.post("", status_code=201)
async def create_feature(
    title: str = Form(""),
    default_type: str = Form("single", alias="defaultType"),
    default_url: str = Form("", alias="defaultUrl"),
    default_sub_menus: str = Form("[]", alias="defaultSubMenus"),
    assigned_to: str = Form("[]", alias="assignedTo"),
    icon: Optional[UploadFile] = File(None),
    current_user=Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Create a menu entry with its icon and client assignments"""
    sub_menus = _parse_json_list(default_sub_menus, "defaultSubMenus")
    modes = _parse_assignments(assigned_to)
    try:
        default = build_link_config(default_type, default_url, sub_menus)
        validate_feature(title, modes)
    except FeatureValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    image = await read_upload(icon, MAX_IMAGE_SIZE_MB)
    if image is None:
        raise HTTPException(status_code=400, detail="Icon wajib diupload!")
    icon_path = await save_image(image, "icons", size=200, fmt="png", fit="contain")

    try:
        feature = Feature(
            title=title.strip(),
            icon=icon_path,
            default_type=default.type,
            default_url=default.url,
            default_sub_menus=list(default.sub_menus),
        )
        apply_assignments(db, feature, modes)
        db.add(feature)
        db.commit()
        db.refresh(feature)
    except FeatureValidationError as e:
        db.rollback()
        delete_image(icon_path)
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        db.rollback()
        delete_image(icon_path)
        logger.exception("[ERROR] POST /features")
        raise HTTPException(status_code=500, detail=f"Gagal membuat fitur: {e}")

    return serialize_feature(feature)


@router.put("/{feature_id}")
async def update_feature(
    feature_id: int,
    title: Optional[str] = Form(None),
    default_type: Optional[str] = Form(None, alias="defaultType"),
    default_url: Optional[str] = Form(None, alias="defaultUrl"),
    default_sub_menus: Optional[str] = Form(None, alias="defaultSubMenus"),
    assigned_to: Optional[str] = Form(None, alias="assignedTo"),
    icon: Optional[UploadFile] = File(None),
    current_user=Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Partial update; the merged result is validated as a whole"""
    feature = db.query(Feature).filter(Feature.id == feature_id).first()
    if not feature:
        raise HTTPException(status_code=404, detail="Fitur tidak ditemukan")

    current = feature.default_config
    merged_title = title if title is not None else feature.title
    sub_menus = (
        _parse_json_list(default_sub_menus, "defaultSubMenus")
        if default_sub_menus is not None
        else list(current.sub_menus)
    )
    modes = _parse_assignments(assigned_to) if assigned_to is not None else current_modes(feature)

    try:
        default = build_link_config(
            default_type if default_type is not None else current.type,
            default_url if default_url is not None else current.url,
            sub_menus,
        )
        validate_feature(merged_title, modes)
    except FeatureValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    image = await read_upload(icon, MAX_IMAGE_SIZE_MB)
    new_icon = None
    if image is not None:
        new_icon = await save_image(image, "icons", size=200, fmt="png", fit="contain")

    old_icon = feature.icon
    try:
        feature.title = merged_title.strip()
        feature.default_type = default.type
        feature.default_url = default.url
        feature.default_sub_menus = list(default.sub_menus)
        if new_icon:
            feature.icon = new_icon
        if assigned_to is not None:
            apply_assignments(db, feature, modes)
        db.commit()
        db.refresh(feature)
    except FeatureValidationError as e:
        db.rollback()
        delete_image(new_icon)
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        db.rollback()
        delete_image(new_icon)
        logger.exception("[ERROR] PUT /features/%s", feature_id)
        raise HTTPException(status_code=500, detail=f"Gagal memperbarui fitur: {e}")

    if new_icon:
        delete_image(old_icon)
    return serialize_feature(feature)


@router.delete("/{feature_id}")
async def delete_feature(feature_id: int, current_user=Depends(require_admin), db: Session = Depends(get_db)):
    feature = db.query(Feature).filter(Feature.id == feature_id).first()
    if not feature:
        raise HTTPException(status_code=404, detail="Fitur tidak ditemukan")

    delete_image(feature.icon)
    try:
        db.delete(feature)
        db.commit()
    except Exception as e:
        db.rollback()
        logger.exception("[ERROR] DELETE /features/%s", feature_id)
        raise HTTPException(status_code=500, detail=str(e))

    return {"message": "Fitur berhasil dihapus"}
