"""
Feature resolution engine.

Each feature carries a default link configuration and a list of per-client
assignments. An assignment either inherits the default or carries its own
custom configuration; a client without an assignment does not see the
feature at all.
"""

from typing import Dict, Iterable, List, Optional, Sequence
from sqlalchemy.orm import Session
from insekta.models.feature import (
    Custom,
    Feature,
    FeatureAssignment,
    Inherit,
    LinkConfig,
    LINK_TYPES,
    AccessMode,
)
from insekta.models.user import User

EMPTY_OVERRIDE = LinkConfig(type="single", url="", sub_menus=[])


class FeatureValidationError(ValueError):
    """Raised when a feature cannot be saved as submitted"""


def live_assignments(feature: Feature) -> List[FeatureAssignment]:
    """Assignments whose user still exists"""
    return [a for a in feature.assignments if a.user is not None]


def find_assignment(feature: Feature, user_id: int) -> Optional[FeatureAssignment]:
    for assignment in live_assignments(feature):
        if assignment.user_id == user_id:
            return assignment
    return None


def effective_config(feature: Feature, mode: AccessMode) -> LinkConfig:
    if isinstance(mode, Custom):
        return mode.config
    return feature.default_config


def resolve_feature(feature: Feature, user_id: int) -> Optional[dict]:
    """The link configuration `user_id` sees for `feature`, or None when unassigned"""
    assignment = find_assignment(feature, user_id)
    if assignment is None:
        return None

    config = effective_config(feature, assignment.mode)
    return {
        "id": feature.id,
        "title": feature.title,
        "icon": feature.icon,
        "type": config.type,
        "url": config.url,
        "subMenus": list(config.sub_menus),
    }


def resolve_menu(features: Iterable[Feature], user_id: int) -> List[dict]:
    menu = []
    for feature in features:
        resolved = resolve_feature(feature, user_id)
        if resolved is not None:
            menu.append(resolved)
    return menu


def toggle_custom(mode: AccessMode) -> AccessMode:
    """Flip inherit/custom. Entering custom mode always starts from an empty override."""
    if isinstance(mode, Custom):
        return Inherit()
    return Custom(EMPTY_OVERRIDE)


def _clean_sub_menus(raw) -> List[dict]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise FeatureValidationError("Format sub menu tidak valid")
    cleaned = []
    for item in raw:
        if not isinstance(item, dict):
            raise FeatureValidationError("Format sub menu tidak valid")
        cleaned.append({
            "title": str(item.get("title") or item.get("name") or "").strip(),
            "url": str(item.get("url") or "").strip(),
        })
    return cleaned


def build_link_config(link_type: Optional[str], url: Optional[str], sub_menus) -> LinkConfig:
    link_type = link_type or "single"
    if link_type not in LINK_TYPES:
        raise FeatureValidationError(f"Tipe menu harus salah satu dari: {', '.join(LINK_TYPES)}")
    return LinkConfig(type=link_type, url=(url or "").strip(), sub_menus=_clean_sub_menus(sub_menus))


def entry_mode(entry: dict) -> AccessMode:
    """Assignment payload (`isCustom`, `type`, `url`, `subMenus`) -> access mode.

    Fields sent alongside `isCustom: false` are placeholders and are dropped.
    """
    if not entry.get("is_custom"):
        return Inherit()
    return Custom(build_link_config(entry.get("type"), entry.get("url"), entry.get("sub_menus")))


def validate_feature(title: Optional[str], modes: Dict[int, AccessMode]):
    if not title or not title.strip():
        raise FeatureValidationError("Judul menu wajib diisi.")
    if not modes:
        raise FeatureValidationError("Pilih minimal satu client.")

    for user_id, mode in modes.items():
        if not isinstance(mode, Custom):
            continue
        if mode.config.type == "single" and not mode.config.url:
            raise FeatureValidationError(f"URL Custom untuk client ID {user_id} masih kosong!")
        if mode.config.type == "folder" and not mode.config.sub_menus:
            raise FeatureValidationError(f"Folder Custom untuk client ID {user_id} kosong!")


def collect_modes(entries: Sequence[dict]) -> Dict[int, AccessMode]:
    """User id -> mode; a repeated user keeps its last entry"""
    modes: Dict[int, AccessMode] = {}
    for entry in entries:
        user_id = entry.get("user")
        if user_id is None:
            continue
        modes[int(user_id)] = entry_mode(entry)
    return modes


def current_modes(feature: Feature) -> Dict[int, AccessMode]:
    return {a.user_id: a.mode for a in live_assignments(feature)}


def apply_assignments(db: Session, feature: Feature, modes: Dict[int, AccessMode]):
    """Replace the feature's assignment list with `modes`"""
    if modes:
        found = {uid for (uid,) in db.query(User.id).filter(User.id.in_(list(modes))).all()}
        missing = sorted(set(modes) - found)
        if missing:
            raise FeatureValidationError("Terdapat ID User yang tidak valid")

    existing = {a.user_id: a for a in feature.assignments}
    kept = []
    for user_id, mode in modes.items():
        assignment = existing.get(user_id) or FeatureAssignment(user_id=user_id)
        assignment.mode = mode
        kept.append(assignment)
    feature.assignments = kept


def serialize_assignment(assignment: FeatureAssignment) -> dict:
    user = assignment.user
    mode = assignment.mode
    override = mode.config if isinstance(mode, Custom) else EMPTY_OVERRIDE
    return {
        "user": {
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "avatar": user.avatar,
            "companyName": user.company_name or "",
        },
        "isCustom": isinstance(mode, Custom),
        "type": override.type,
        "url": override.url,
        "subMenus": list(override.sub_menus),
        # Re-joined from the live user row on every read
        "companyName": user.company_name or "",
    }


def serialize_feature(feature: Feature) -> dict:
    return {
        "id": feature.id,
        "title": feature.title,
        "icon": feature.icon,
        "defaultType": feature.default_type,
        "defaultUrl": feature.default_url or "",
        "defaultSubMenus": list(feature.default_sub_menus or []),
        "assignedTo": [serialize_assignment(a) for a in live_assignments(feature)],
        "createdAt": feature.created_at.isoformat() if feature.created_at else None,
        "updatedAt": feature.updated_at.isoformat() if feature.updated_at else None,
    }
