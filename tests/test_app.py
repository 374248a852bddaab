from reset_db import reset_database

from insekta.config import VERSION


def test_health(anon):
    response = anon.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": VERSION}


def test_security_headers(anon):
    headers = anon.get("/api/health").headers

    assert headers["x-content-type-options"] == "nosniff"
    assert headers["x-frame-options"] == "DENY"
    # DEBUG is on under test
    assert "strict-transport-security" not in headers


def test_api_rate_limit(anon, monkeypatch):
    from insekta.utils.rate_limiter import api_limiter

    monkeypatch.setattr(api_limiter, "max_attempts", 2)

    assert anon.get("/api/health").status_code == 200
    assert anon.get("/api/health").status_code == 200
    assert anon.get("/api/health").status_code == 429


def test_invalid_query_parameter_is_400(admin):
    response = admin.get("/api/users", params={"page": "abc"})
    assert response.status_code == 400


def test_uploads_are_served(client, png):
    avatar = client.put("/api/users/profile", files={"avatar": ("a.png", png, "image/png")}).json()["avatar"]

    response = client.get(avatar)

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/jpeg"


def test_reset_database(admin, admin_user):
    assert admin.get("/api/auth/me").status_code == 200

    reset_database()

    # the session user is gone with the tables
    assert admin.get("/api/auth/me").status_code == 401
