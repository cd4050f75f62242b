"""
Сброс пароля по email (токен) и по телефону (PIN).
"""
from datetime import timedelta

import pytest

from comicstop import config
from comicstop.core.models import utcnow
from comicstop.repositories.user_repository import UserRepository
from comicstop.services.auth_service import RESET_REQUESTED
from comicstop.services.notification_service import notification_service


def login(client, identifier, password):
    return client.post("/api/auth/login", json={"identifier": identifier, "password": password})


@pytest.fixture(autouse=True)
def users(signup):
    signup(username="reader1", email="reader1@example.com")
    signup(username="reader2", isd_code="+1", phone_number="5552003000")


class TestEmailFlow:

    def test_full_flow(self, client):
        res = client.post("/api/auth/forgot-password", json={"email": "Reader1@Example.com"})
        assert res.status_code == 200
        assert res.json()["message"] == RESET_REQUESTED
        token = res.json()["data"]["token"]

        res = client.post("/api/auth/reset-password", json={"token": token, "password": "fresh-pass-1"})
        assert res.status_code == 200

        assert login(client, "reader1", "fresh-pass-1").status_code == 200
        # Токен одноразовый
        res = client.post("/api/auth/reset-password", json={"token": token, "password": "fresh-pass-2"})
        assert res.status_code == 400
        assert res.json()["message"] == "Invalid or expired token"

    def test_unknown_email_is_success_shaped(self, client):
        res = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})

        assert res.status_code == 200
        assert res.json()["message"] == RESET_REQUESTED
        assert "token" not in res.json()["data"]

    def test_invalid_email_payload(self, client):
        res = client.post("/api/auth/forgot-password", json={"email": "not-an-email"})
        assert res.status_code == 400

    def test_invalid_token(self, client):
        res = client.post("/api/auth/reset-password", json={"token": "x" * 40, "password": "fresh-pass-1"})
        assert res.status_code == 400
        assert res.json()["message"] == "Invalid or expired token"

    def test_expired_token(self, client, db):
        token = client.post("/api/auth/forgot-password", json={"email": "reader1@example.com"}).json()["data"]["token"]

        user = UserRepository.get_by_email(db, "reader1@example.com")
        user.reset_password_expires = utcnow() - timedelta(seconds=1)
        db.commit()

        res = client.post("/api/auth/reset-password", json={"token": token, "password": "fresh-pass-1"})
        assert res.status_code == 400
        assert login(client, "reader1", "fresh-pass-1").status_code == 401

        # Просроченный токен стирается при отказе
        db.expire_all()
        user = UserRepository.get_by_email(db, "reader1@example.com")
        assert user.reset_password_token_hash is None
        assert user.reset_password_expires is None

    def test_second_request_invalidates_first_token(self, client):
        first = client.post("/api/auth/forgot-password", json={"email": "reader1@example.com"}).json()["data"]["token"]
        second = client.post("/api/auth/forgot-password", json={"email": "reader1@example.com"}).json()["data"]["token"]

        assert client.post("/api/auth/reset-password", json={"token": first, "password": "fresh-pass-1"}).status_code == 400
        assert client.post("/api/auth/reset-password", json={"token": second, "password": "fresh-pass-1"}).status_code == 200

    def test_token_not_echoed_outside_test_mode(self, client, monkeypatch):
        monkeypatch.setattr(config, "ENVIRONMENT", "development")

        res = client.post("/api/auth/forgot-password", json={"email": "reader1@example.com"})
        assert res.status_code == 200
        assert res.json()["data"] == {}

        assert len(notification_service.outbox) == 1
        message = notification_service.outbox[0]
        assert message.channel == "email"
        assert message.to == "reader1@example.com"
        assert "Reset token:" in message.body


class TestPhoneFlow:

    def test_full_flow(self, client):
        res = client.post("/api/auth/forgot-password/phone", json={"phone": "+1 (555) 200-3000"})
        assert res.status_code == 200
        pin = res.json()["data"]["pin"]
        assert len(pin) == 6 and pin.isdigit()

        res = client.post(
            "/api/auth/reset-password/phone",
            json={"phone": "1-555-200-3000", "pin": pin, "password": "fresh-pass-1"},
        )
        assert res.status_code == 200
        assert login(client, "reader2", "fresh-pass-1").status_code == 200

    def test_wrong_pin(self, client):
        pin = client.post("/api/auth/forgot-password/phone", json={"phone": "15552003000"}).json()["data"]["pin"]
        wrong = "000000" if pin != "000000" else "111111"

        res = client.post(
            "/api/auth/reset-password/phone",
            json={"phone": "15552003000", "pin": wrong, "password": "fresh-pass-1"},
        )
        assert res.status_code == 400
        assert res.json()["message"] == "Invalid or expired PIN"

        # Неудачная попытка не сжигает действующий PIN
        res = client.post(
            "/api/auth/reset-password/phone",
            json={"phone": "15552003000", "pin": pin, "password": "fresh-pass-1"},
        )
        assert res.status_code == 200

    def test_expired_pin(self, client, db):
        pin = client.post("/api/auth/forgot-password/phone", json={"phone": "15552003000"}).json()["data"]["pin"]

        user = UserRepository.get_by_phone(db, "15552003000")
        user.reset_pin_expires = utcnow() - timedelta(seconds=1)
        db.commit()

        res = client.post(
            "/api/auth/reset-password/phone",
            json={"phone": "15552003000", "pin": pin, "password": "fresh-pass-1"},
        )
        assert res.status_code == 400

        db.expire_all()
        user = UserRepository.get_by_phone(db, "15552003000")
        assert user.reset_pin_hash is None
        assert user.reset_pin_expires is None

    def test_unknown_phone_is_success_shaped(self, client):
        res = client.post("/api/auth/forgot-password/phone", json={"phone": "+44 20 7946 0000"})

        assert res.status_code == 200
        assert "pin" not in res.json()["data"]

    def test_pin_not_echoed_outside_test_mode(self, client, monkeypatch):
        monkeypatch.setattr(config, "ENVIRONMENT", "development")

        res = client.post("/api/auth/forgot-password/phone", json={"phone": "15552003000"})
        assert res.json()["data"] == {}
        assert notification_service.outbox[0].channel == "sms"
        assert notification_service.outbox[0].to == "15552003000"

    def test_production_keeps_outbox_empty(self, client, monkeypatch):
        monkeypatch.setattr(config, "ENVIRONMENT", "production")

        res = client.post("/api/auth/forgot-password/phone", json={"phone": "15552003000"})
        assert res.status_code == 200
        assert res.json()["data"] == {}
        assert notification_service.outbox == []
