import os
import tempfile
from io import BytesIO

# The application reads its configuration at import time
_TMP = tempfile.mkdtemp(prefix="insekta-test-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP, 'test.db')}"
os.environ["PUBLIC_DIR"] = os.path.join(_TMP, "public")
os.environ["DEBUG"] = "true"
os.environ["SECRET_KEY"] = "test-secret-key-for-pytest-only"
os.environ["LOGIN_RATE_LIMIT"] = "1000"
os.environ["API_RATE_LIMIT"] = "100000"
os.environ["EMAIL_USER"] = ""

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from insekta.main import app
from insekta.database import Base, SessionLocal, engine
from insekta.models.user import User
from insekta.routes.auth import hash_password
from insekta.utils.rate_limiter import api_limiter, login_limiter

PASSWORD = "Password1"


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    login_limiter.reset()
    api_limiter.reset()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user():
    """Insert a user directly and return it detached"""
    def _make(email, role="client", company_name="", name=None, is_first_login=False,
              is_active=True, password=PASSWORD):
        session = SessionLocal()
        try:
            user = User(
                name=name or email.split("@")[0],
                email=email,
                password_hash=hash_password(password),
                role=role,
                company_name=company_name,
                is_first_login=is_first_login,
                is_active=is_active,
            )
            session.add(user)
            session.commit()
            session.refresh(user)
            session.expunge(user)
            return user
        finally:
            session.close()
    return _make


def login(email, password=PASSWORD) -> TestClient:
    client = TestClient(app)
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return client


@pytest.fixture
def anon():
    return TestClient(app)


@pytest.fixture
def admin_user(make_user):
    return make_user("admin@test.local", role="admin", name="Admin")


@pytest.fixture
def admin(admin_user):
    return login(admin_user.email)


@pytest.fixture
def client_user(make_user):
    return make_user("client@test.local", company_name="PT Maju", name="Client One")


@pytest.fixture
def client(client_user):
    return login(client_user.email)


def image_bytes(fmt="PNG", size=(64, 32), color=(200, 30, 30)) -> bytes:
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png():
    return image_bytes()


@pytest.fixture
def public_dir():
    return os.environ["PUBLIC_DIR"]
