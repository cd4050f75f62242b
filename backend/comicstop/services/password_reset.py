# backend/comicstop/services/password_reset.py
"""
Выдача и проверка одноразовых секретов для сброса пароля.

Два параллельных потока одной формы:
- email: длинный непрозрачный токен, живёт RESET_TOKEN_TTL_MINUTES
- телефон: 6-значный PIN, живёт RESET_PIN_TTL_MINUTES

В БД лежит только SHA-256 секрета и срок действия. Новая выдача затирает
предыдущую. Просрочка проверяется лениво, в момент использования: запись
с expires <= now отклоняется так же, как несовпавший секрет, и при этом
стирается. Несовпавший секрет запись не трогает.
"""
import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from comicstop import config
from comicstop.core.models import User, utcnow
from comicstop.core.security import hash_secret, secrets_match
from comicstop.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

RESET_TOKEN_BYTES = 32


def _is_live(expires: Optional[datetime], now: datetime) -> bool:
    return expires is not None and expires > now


# ============= EMAIL: ТОКЕН =============

def issue_reset_token(db: Session, user: User) -> Tuple[str, datetime]:
    """Создаёт токен сброса, сохраняет его хеш и возвращает сырой токен + срок"""
    token = secrets.token_urlsafe(RESET_TOKEN_BYTES)
    expires = utcnow() + timedelta(minutes=config.RESET_TOKEN_TTL_MINUTES)

    user.reset_password_token_hash = hash_secret(token)
    user.reset_password_expires = expires
    UserRepository.save(db, user)

    logger.info(f"Выдан токен сброса для user_id={user.id}, действует до {expires}")
    return token, expires


def find_user_by_reset_token(db: Session, token: str, now: Optional[datetime] = None) -> Optional[User]:
    user = UserRepository.get_by_reset_token_hash(db, hash_secret(token))
    if user is None:
        return None
    if not _is_live(user.reset_password_expires, now or utcnow()):
        logger.info(f"Токен сброса просрочен для user_id={user.id}, сбрасываем")
        clear_reset_token(user)
        UserRepository.save(db, user)
        return None
    return user


def clear_reset_token(user: User) -> None:
    user.reset_password_token_hash = None
    user.reset_password_expires = None


# ============= ТЕЛЕФОН: PIN =============

def generate_pin(length: int = config.RESET_PIN_LENGTH) -> str:
    return str(secrets.randbelow(10 ** length)).zfill(length)


def issue_reset_pin(db: Session, user: User) -> Tuple[str, datetime]:
    pin = generate_pin()
    expires = utcnow() + timedelta(minutes=config.RESET_PIN_TTL_MINUTES)

    user.reset_pin_hash = hash_secret(pin)
    user.reset_pin_expires = expires
    UserRepository.save(db, user)

    logger.info(f"Выдан PIN сброса для user_id={user.id}, действует до {expires}")
    return pin, expires


def find_user_by_reset_pin(db: Session, phone: str, pin: str, now: Optional[datetime] = None) -> Optional[User]:
    user = UserRepository.get_by_phone(db, phone)
    if user is None:
        return None
    if not secrets_match(user.reset_pin_hash, pin.strip()):
        return None
    if not _is_live(user.reset_pin_expires, now or utcnow()):
        logger.info(f"PIN сброса просрочен для user_id={user.id}, сбрасываем")
        clear_reset_pin(user)
        UserRepository.save(db, user)
        return None
    return user


def clear_reset_pin(user: User) -> None:
    user.reset_pin_hash = None
    user.reset_pin_expires = None
