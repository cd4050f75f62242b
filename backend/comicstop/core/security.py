"""
Функции безопасности: хеширование паролей, JWT токены, хеши секретов сброса.
"""
import hashlib
import hmac
from datetime import datetime, timezone, timedelta
from typing import Optional

from passlib.context import CryptContext
from jose import JWTError, jwt

from comicstop import config

# Контекст для хеширования паролей
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=config.BCRYPT_ROUNDS,
)


def hash_password(password: str) -> str:
    """Хеширует пароль"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Проверяет пароль"""
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # Битый хеш в БД - считаем пароль неверным
        return False


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Создаёт JWT токен.

    Args:
        data: Данные для вшивания в токен (обычно {"sub": user_id})
        expires_delta: Время жизни токена
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)

    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire, "iat": now})
    encoded_jwt = jwt.encode(to_encode, config.SECRET_KEY, algorithm=config.ALGORITHM)

    return encoded_jwt


def decode_access_token(token: str) -> Optional[dict]:
    """Декодирует JWT токен"""
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
        return payload
    except JWTError:
        return None


def hash_secret(value: str) -> str:
    """SHA-256 для токенов и PIN сброса пароля (в БД сырые значения не лежат)"""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def secrets_match(expected_hash: Optional[str], candidate: str) -> bool:
    """Сравнение без ранних выходов по времени"""
    if not expected_hash:
        return False
    return hmac.compare_digest(expected_hash, hash_secret(candidate))
