import io
import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test_secret_key"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SMTP_HOST"] = ""
os.environ["CLOUDINARY_CLOUD_NAME"] = ""
os.environ["CONTACTS_SCOPED_TO_OWNER"] = "false"
os.environ["AVATARS_DIR"] = tempfile.mkdtemp(prefix="avatars-")

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from contacts_api import config, crud, mailer
from contacts_api.db import Base, get_db
from contacts_api.main import app

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

PASSWORD = "secret1"


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    db_session = TestingSessionLocal()
    yield db_session
    db_session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def outbox(monkeypatch):
    sent = []
    monkeypatch.setattr(mailer, "send_email", sent.append)
    return sent


@pytest.fixture
def client(db, outbox):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def avatars_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "AVATARS_DIR", str(tmp_path))
    return tmp_path


def signup(client, email="a@x.com", password=PASSWORD):
    return client.post("/signup", json={"email": email, "password": password})


def verify(client, db, email):
    user = crud.get_user_by_email(db, email)
    return client.get(f"/verify/{user.verification_token}")


def login(client, email="a@x.com", password=PASSWORD):
    return client.post("/login", json={"email": email, "password": password})


def register_and_login(client, db, email="a@x.com", password=PASSWORD):
    signup(client, email, password)
    verify(client, db, email)
    token = login(client, email, password).json()["token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(client, db):
    return register_and_login(client, db)


def png_bytes(width=400, height=300, color=(200, 30, 30)):
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()
