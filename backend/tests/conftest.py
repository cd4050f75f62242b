"""
Общие фикстуры. Окружение задаётся ДО импорта приложения.
"""
import os
import tempfile

os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ.setdefault("LOGS_DIR", os.path.join(tempfile.gettempdir(), "comicstop-test-logs"))

import pytest
from fastapi.testclient import TestClient

from comicstop.core.database import Base, SessionLocal, engine
from comicstop.main import app
from comicstop.services.notification_service import notification_service
from comicstop.services.rate_limiter import limiter

DEFAULT_PASSWORD = "StrongP@ssw0rd!"


@pytest.fixture(autouse=True)
def clean_state():
    """Пустая БД, счётчики лимитов и outbox для каждого теста"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    limiter.store.reset()
    notification_service.clear()
    yield


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def signup(client):
    """
    Регистрирует пользователя и возвращает ответ.

    Использование:
        res = signup(username="reader1", emailOrPhone="reader1@example.com")
    """
    def _signup(expected_status=201, headers=None, **payload):
        body = {"password": DEFAULT_PASSWORD, "termsAccepted": True}
        body.update(payload)
        res = client.post("/api/auth/signup", json=body, headers=headers or {})
        if expected_status is not None:
            assert res.status_code == expected_status, res.text
        return res

    return _signup


@pytest.fixture
def auth_headers(signup):
    """Заголовок Authorization для свежего пользователя reader1"""
    res = signup(username="reader1", emailOrPhone="reader1@example.com")
    token = res.json()["data"]["token"]
    return {"Authorization": f"Bearer {token}"}
