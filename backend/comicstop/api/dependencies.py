"""
FastAPI dependencies: текущий пользователь по Bearer-токену.
"""
import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from comicstop.core.database import get_db
from comicstop.core.errors import AuthError
from comicstop.core.models import User
from comicstop.core.security import decode_access_token
from comicstop.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

# auto_error=False: отсутствие заголовка тоже должно давать 401, а не 403
security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Проверяет подпись и срок токена, затем заново читает пользователя из БД.

    Валидного токена мало: если аккаунт удалён или отключён, запрос
    отклоняется с 401.
    """
    if credentials is None:
        raise AuthError("Authentication required", headers={"WWW-Authenticate": "Bearer"})

    payload = decode_access_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        raise AuthError("Invalid or expired token", headers={"WWW-Authenticate": "Bearer"})

    user = UserRepository.get_by_id(db, str(payload["sub"]))
    if user is None or not user.is_active:
        logger.warning("⚠️ Токен указывает на несуществующего или отключённого пользователя")
        raise AuthError("Invalid or expired token", headers={"WWW-Authenticate": "Bearer"})

    return user
