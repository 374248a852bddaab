import os

import pytest
from PIL import Image

from conftest import image_bytes


def _form(**overrides):
    data = {
        "name": "Agus",
        "role": "Teknisi",
        "phone": "081234567890",
        "area": "Jakarta Selatan",
        "outlets": "Outlet A, Outlet B",
    }
    data.update(overrides)
    return data


def _create(admin, files=None, **overrides):
    response = admin.post("/api/teams", data=_form(**overrides), files=files)
    assert response.status_code == 201, response.text
    return response.json()


def _photo(size=(300, 600)):
    return {"photo": ("agus.jpg", image_bytes("JPEG", size=size), "image/jpeg")}


def test_create_member_with_photo(admin, public_dir):
    member = _create(admin, files=_photo())

    assert member["phone"] == "081234567890"
    assert member["photo"].startswith("/uploads/teams/")
    with Image.open(os.path.join(public_dir, member["photo"].lstrip("/"))) as img:
        assert img.size == (400, 400)
        assert img.format == "JPEG"


def test_create_member_without_photo(admin):
    member = _create(admin)
    assert member["photo"] == ""


@pytest.mark.parametrize("phone", ["+6281234567890", "6281234567890", "0812345678"])
def test_accepts_indonesian_mobile_numbers(admin, phone):
    assert _create(admin, phone=phone)["phone"] == phone


@pytest.mark.parametrize("phone", ["0212345678", "08012345678", "12345", "0812-3456-7890"])
def test_rejects_invalid_phone(admin, phone):
    response = admin.post("/api/teams", data=_form(phone=phone))
    assert response.status_code == 400


def test_rejects_missing_required_fields(admin):
    response = admin.post("/api/teams", data=_form(area=""))
    assert response.status_code == 400


def test_clients_can_read_but_not_write(admin, client):
    _create(admin)

    assert client.get("/api/teams").status_code == 200
    assert client.post("/api/teams", data=_form()).status_code == 403


def test_list_is_ordered_by_area_then_name(admin):
    _create(admin, name="Budi", area="Bogor")
    _create(admin, name="Andi", area="Jakarta")
    _create(admin, name="Cici", area="Bogor")

    members = admin.get("/api/teams").json()["data"]

    assert [(m["area"], m["name"]) for m in members] == [
        ("Bogor", "Budi"), ("Bogor", "Cici"), ("Jakarta", "Andi"),
    ]


def test_list_search(admin):
    _create(admin, name="Budi", area="Bogor", role="Supervisor")
    _create(admin, name="Andi", area="Jakarta")

    assert [m["name"] for m in admin.get("/api/teams", params={"search": "super"}).json()["data"]] == ["Budi"]
    assert [m["name"] for m in admin.get("/api/teams", params={"search": "jakarta"}).json()["data"]] == ["Andi"]


def test_areas(admin, client):
    _create(admin, area="Jakarta")
    _create(admin, area="Bogor")
    _create(admin, area="Jakarta")

    assert client.get("/api/teams/areas").json() == ["Bogor", "Jakarta"]


def test_update_member_replaces_photo(admin, public_dir):
    member = _create(admin, files=_photo())
    old_path = os.path.join(public_dir, member["photo"].lstrip("/"))

    response = admin.put(f"/api/teams/{member['id']}", data={"area": "Depok"}, files=_photo((500, 500)))

    assert response.status_code == 200
    body = response.json()
    assert body["area"] == "Depok"
    assert body["name"] == "Agus"
    assert not os.path.exists(old_path)
    assert os.path.exists(os.path.join(public_dir, body["photo"].lstrip("/")))


def test_update_member_validates_phone(admin):
    member = _create(admin)
    assert admin.put(f"/api/teams/{member['id']}", data={"phone": "123"}).status_code == 400


def test_update_unknown_member(admin):
    assert admin.put("/api/teams/9999", data={"name": "X"}).status_code == 404


def test_delete_member_removes_photo(admin, public_dir):
    member = _create(admin, files=_photo())
    photo_path = os.path.join(public_dir, member["photo"].lstrip("/"))

    assert admin.delete(f"/api/teams/{member['id']}").status_code == 200
    assert not os.path.exists(photo_path)
    assert admin.delete(f"/api/teams/{member['id']}").status_code == 404
