import pytest
from sqlalchemy.exc import IntegrityError

from insekta.models.feature import Custom, Feature, FeatureAssignment, Inherit, LinkConfig
from insekta.models.user import User
from insekta.services.feature_service import (
    EMPTY_OVERRIDE,
    FeatureValidationError,
    build_link_config,
    collect_modes,
    entry_mode,
    resolve_feature,
    resolve_menu,
    serialize_feature,
    toggle_custom,
    validate_feature,
)

FOLDER = [{"title": "Laporan Mingguan", "url": "https://example.com/weekly"}]


def _user(user_id, company="PT Maju"):
    return User(id=user_id, name=f"user{user_id}", email=f"u{user_id}@test.local",
                company_name=company, avatar="")


def _assign(user, mode, user_id=None):
    assignment = FeatureAssignment(user_id=user.id if user is not None else user_id)
    assignment.user = user
    assignment.mode = mode
    return assignment


def _feature(*assignments, default_type="single", default_url="https://example.com/default",
             default_sub_menus=None, feature_id=1):
    feature = Feature(
        id=feature_id,
        title="Laporan",
        icon="/uploads/icons/laporan.png",
        default_type=default_type,
        default_url=default_url,
        default_sub_menus=default_sub_menus or [],
    )
    feature.assignments = list(assignments)
    return feature


def test_inheriting_client_sees_default_config():
    feature = _feature(_assign(_user(7), Inherit()))

    resolved = resolve_feature(feature, 7)

    assert resolved == {
        "id": 1,
        "title": "Laporan",
        "icon": "/uploads/icons/laporan.png",
        "type": "single",
        "url": "https://example.com/default",
        "subMenus": [],
    }


def test_custom_client_sees_own_config():
    custom = Custom(LinkConfig(type="folder", url="", sub_menus=FOLDER))
    feature = _feature(_assign(_user(7), Inherit()), _assign(_user(8), custom))

    resolved = resolve_feature(feature, 8)

    assert resolved["type"] == "folder"
    assert resolved["subMenus"] == FOLDER
    assert resolve_feature(feature, 7)["url"] == "https://example.com/default"


def test_unassigned_client_sees_nothing():
    feature = _feature(_assign(_user(7), Inherit()))
    assert resolve_feature(feature, 99) is None


def test_menu_contains_only_assigned_features():
    first = _feature(_assign(_user(7), Inherit()), feature_id=1)
    second = _feature(_assign(_user(8), Inherit()), feature_id=2)

    menu = resolve_menu([first, second], 7)

    assert [item["id"] for item in menu] == [1]


def test_dangling_assignment_is_skipped():
    feature = _feature(_assign(None, Inherit(), user_id=42), _assign(_user(7), Inherit()))

    assert resolve_feature(feature, 42) is None
    serialized = serialize_feature(feature)
    assert [a["user"]["id"] for a in serialized["assignedTo"]] == [7]


def test_inheriting_row_stores_no_override():
    assignment = _assign(_user(7), Custom(LinkConfig("single", "https://x.test", [])))
    assignment.mode = Inherit()

    assert assignment.is_custom is False
    assert assignment.custom_type is None
    assert assignment.custom_url is None
    assert assignment.custom_sub_menus is None


def test_toggle_into_custom_starts_empty():
    assert toggle_custom(Inherit()) == Custom(EMPTY_OVERRIDE)
    assert toggle_custom(Custom(LinkConfig("folder", "", FOLDER))) == Inherit()


def test_toggle_twice_does_not_resurrect_old_values():
    mode = Custom(LinkConfig("single", "https://old.test", []))
    mode = toggle_custom(toggle_custom(mode))
    assert mode == Custom(LinkConfig("single", "", []))


def test_company_name_follows_live_user():
    user = _user(7, company="PT Lama")
    feature = _feature(_assign(user, Inherit()))
    user.company_name = "PT Baru"

    entry = serialize_feature(feature)["assignedTo"][0]

    assert entry["companyName"] == "PT Baru"
    assert entry["user"]["companyName"] == "PT Baru"


@pytest.mark.parametrize("title, modes, message", [
    ("", {1: Inherit()}, "Judul menu wajib diisi."),
    ("   ", {1: Inherit()}, "Judul menu wajib diisi."),
    ("Menu", {}, "Pilih minimal satu client."),
    ("Menu", {3: Custom(LinkConfig("single", "", []))}, "URL Custom untuk client ID 3 masih kosong!"),
    ("Menu", {4: Custom(LinkConfig("folder", "", []))}, "Folder Custom untuk client ID 4 kosong!"),
])
def test_validate_feature_rejects(title, modes, message):
    with pytest.raises(FeatureValidationError) as exc:
        validate_feature(title, modes)
    assert str(exc.value) == message


def test_validate_feature_accepts_complete_input():
    validate_feature("Menu", {
        1: Inherit(),
        2: Custom(LinkConfig("single", "https://x.test", [])),
        3: Custom(LinkConfig("folder", "", FOLDER)),
    })


def test_entry_without_custom_flag_inherits():
    mode = entry_mode({"is_custom": False, "type": "folder", "url": "ignored", "sub_menus": FOLDER})
    assert mode == Inherit()


def test_collect_modes_keeps_last_entry_per_user():
    modes = collect_modes([
        {"user": 5, "is_custom": True, "type": "single", "url": "https://first.test", "sub_menus": []},
        {"user": 6, "is_custom": False},
        {"user": 5, "is_custom": True, "type": "single", "url": "https://second.test", "sub_menus": []},
    ])

    assert set(modes) == {5, 6}
    assert modes[5].config.url == "https://second.test"


def test_build_link_config_rejects_unknown_type():
    with pytest.raises(FeatureValidationError):
        build_link_config("dropdown", "", [])


def test_build_link_config_cleans_sub_menus():
    config = build_link_config("folder", None, [{"title": " A ", "url": " https://a.test "}])
    assert config == LinkConfig("folder", "", [{"title": "A", "url": "https://a.test"}])


def test_feature_row_needs_its_own_icon(db):
    # no shared fallback path: deleting a feature deletes its icon file
    db.add(Feature(title="Laporan"))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()
