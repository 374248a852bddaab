import pytest

from insekta.services.sheet_service import FETCH_FAILED_MESSAGE, SheetFetchError, sheet_service

SHEET_URL = "https://docs.google.com/spreadsheets/d/abc123/edit#gid=0"
CSV = 'Bulan,Omzet,Target\nJan,"Rp 1.500.000",2000000\nFeb,"Rp 2.250.000",2000000\n'


@pytest.fixture
def sheet(monkeypatch):
    """Serve CSV instead of fetching from Google"""
    monkeypatch.setattr(sheet_service, "fetch_csv", lambda url: CSV)


def _create(admin, **overrides):
    payload = {"title": "Omzet Bulanan", "type": "bar", "sheetUrl": SHEET_URL}
    payload.update(overrides)
    response = admin.post("/api/charts", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def test_create_and_list_charts(admin):
    first = _create(admin, title="Omzet", config={"xAxisKey": "Bulan", "dataKeys": ["Omzet"]})
    _create(admin, title="Outlet per Area", type="pie")

    assert first["sheetUrl"] == SHEET_URL
    assert first["config"] == {"xAxisKey": "Bulan", "dataKeys": ["Omzet"]}

    listing = admin.get("/api/charts").json()
    assert [c["title"] for c in listing["data"]] == ["Outlet per Area", "Omzet"]
    assert listing["pagination"]["limit"] == 6

    searched = admin.get("/api/charts", params={"search": "outlet"}).json()
    assert [c["title"] for c in searched["data"]] == ["Outlet per Area"]


def test_create_chart_rejects_unknown_type(admin):
    response = admin.post("/api/charts", json={"title": "X", "type": "radar", "sheetUrl": SHEET_URL})
    assert response.status_code == 400


def test_create_chart_requires_sheet_url(admin):
    response = admin.post("/api/charts", json={"title": "X", "type": "bar", "sheetUrl": ""})
    assert response.status_code == 400


def test_create_chart_rejects_blank_title_and_url(admin):
    response = admin.post("/api/charts", json={"title": "   ", "type": "bar", "sheetUrl": SHEET_URL})
    assert response.status_code == 400
    assert response.json()["detail"] == "Judul wajib diisi"

    response = admin.post("/api/charts", json={"title": "Omzet", "type": "bar", "sheetUrl": "   "})
    assert response.status_code == 400
    assert response.json()["detail"] == "Link Google Sheet wajib diisi"

    assert admin.get("/api/charts").json()["data"] == []


def test_create_chart_trims_title(admin):
    assert _create(admin, title="  Omzet  ")["title"] == "Omzet"


def test_charts_are_admin_only(client):
    assert client.get("/api/charts").status_code == 403
    assert client.post("/api/charts/preview", json={"url": SHEET_URL}).status_code == 403


def test_preview(admin, sheet):
    response = admin.post("/api/charts/preview", json={"url": SHEET_URL})

    assert response.status_code == 200
    body = response.json()
    assert body["headers"] == ["Bulan", "Omzet", "Target"]
    assert body["config"] == {"xAxisKey": "Bulan", "dataKeys": ["Omzet", "Target"]}
    assert body["data"][0] == {"Bulan": "Jan", "Omzet": 1500000.0, "Target": 2000000}


def test_preview_of_private_sheet(admin, monkeypatch):
    def private(url):
        raise SheetFetchError(FETCH_FAILED_MESSAGE)

    monkeypatch.setattr(sheet_service, "fetch_csv", private)
    response = admin.post("/api/charts/preview", json={"url": SHEET_URL})

    assert response.status_code == 502
    assert response.json()["detail"] == FETCH_FAILED_MESSAGE


def test_preview_of_empty_sheet(admin, monkeypatch):
    monkeypatch.setattr(sheet_service, "fetch_csv", lambda url: "Bulan,Omzet\n")
    response = admin.post("/api/charts/preview", json={"url": SHEET_URL})

    assert response.status_code == 400
    assert response.json()["detail"] == "Sheet kosong"


def test_chart_data_renders_live(admin, sheet):
    chart = _create(admin, type="line", config={"xAxisKey": "Bulan", "dataKeys": ["Omzet"]})

    response = admin.get(f"/api/charts/{chart['id']}/data")

    assert response.status_code == 200
    body = response.json()
    assert body["chart"]["id"] == chart["id"]
    assert body["type"] == "line"
    assert body["xKey"] == "Bulan"
    assert body["yKeys"] == ["Omzet"]
    assert body["data"] == [{"Bulan": "Jan", "Omzet": 1500000.0}, {"Bulan": "Feb", "Omzet": 2250000.0}]
    assert body["labels"] == [{"Omzet": "1.5jt"}, {"Omzet": "2.3jt"}]


def test_preview_with_overflowing_number(admin, monkeypatch):
    huge = "9" * 400
    monkeypatch.setattr(sheet_service, "fetch_csv", lambda url: f"Bulan,Omzet,Target\nJan,1e999,\"Rp {huge}\"\n")

    response = admin.post("/api/charts/preview", json={"url": SHEET_URL})

    assert response.status_code == 200
    assert response.json()["data"] == [{"Bulan": "Jan", "Omzet": None, "Target": f"Rp {huge}"}]


def test_chart_data_pie(admin, sheet):
    chart = _create(admin, type="pie")

    body = admin.get(f"/api/charts/{chart['id']}/data").json()

    assert body["type"] == "pie"
    assert [s["name"] for s in body["data"]] == ["Jan", "Feb"]
    assert body["data"][0]["value"] == 1500000.0


def test_chart_data_unknown_chart(admin):
    assert admin.get("/api/charts/9999/data").status_code == 404


def test_update_chart(admin):
    chart = _create(admin)

    response = admin.put(f"/api/charts/{chart['id']}", json={
        "title": "Omzet 2024",
        "config": {"xAxisKey": "Bulan", "dataKeys": ["Target"]},
    })

    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Omzet 2024"
    assert body["type"] == "bar"
    assert body["config"]["dataKeys"] == ["Target"]


def test_update_chart_rejects_blank_title(admin):
    chart = _create(admin)

    response = admin.put(f"/api/charts/{chart['id']}", json={"title": "  "})

    assert response.status_code == 400
    assert admin.get("/api/charts").json()["data"][0]["title"] == "Omzet Bulanan"


def test_update_unknown_chart(admin):
    assert admin.put("/api/charts/9999", json={"title": "X"}).status_code == 404


def test_delete_chart(admin):
    chart = _create(admin)

    assert admin.delete(f"/api/charts/{chart['id']}").status_code == 200
    assert admin.delete(f"/api/charts/{chart['id']}").status_code == 404
