# Класс пользователя: учётные данные, флаги и состояние сброса пароля

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, String
from comicstop.core.database import Base


def utcnow() -> datetime:
    """Текущее время в UTC без tzinfo (SQLite не хранит часовой пояс)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    """SQLAlchemy модель - структура таблицы в БД"""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    username = Column(String(50), nullable=False)                  # Как ввёл пользователь
    username_key = Column(String(50), unique=True, nullable=False)  # lower(username) для уникальности
    email = Column(String(255), unique=True, nullable=True)        # Уже нормализован (lower/strip)
    phone = Column(String(32), unique=True, nullable=True)         # Только цифры
    password_hash = Column(String(255), nullable=False)

    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    is_creator = Column(Boolean, default=False, nullable=False)
    is_creator_enabled = Column(Boolean, default=False, nullable=False)
    creator_disabled_at = Column(DateTime, nullable=True)
    is_email_verified = Column(Boolean, default=False, nullable=False)
    last_login_at = Column(DateTime, nullable=True)

    # Сброс по email: храним только SHA-256 от токена
    reset_password_token_hash = Column(String(64), unique=True, nullable=True)
    reset_password_expires = Column(DateTime, nullable=True)

    # Сброс по телефону: SHA-256 от PIN
    reset_pin_hash = Column(String(64), nullable=True)
    reset_pin_expires = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self):
        return f"<User id={self.id} username={self.username}>"
