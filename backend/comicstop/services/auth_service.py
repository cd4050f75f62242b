import logging
from datetime import timedelta
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from comicstop import config
from comicstop.core.errors import AuthError, ConflictError, ValidationError
from comicstop.core.models import User, utcnow
from comicstop.core.security import create_access_token, hash_password, verify_password
from comicstop.repositories.user_repository import UserRepository
from comicstop.schemas import SignupRequest, UpdateProfileRequest
from comicstop.services import password_reset
from comicstop.services.notification_service import notification_service

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
INVALID_RESET_TOKEN = "Invalid or expired token"
INVALID_RESET_PIN = "Invalid or expired PIN"
RESET_REQUESTED = "If the account exists, password reset instructions have been sent"


class AuthService:
    """Регистрация, вход, изменение профиля и сброс пароля"""

    @staticmethod
    def issue_token(user: User) -> str:
        return create_access_token(data={"sub": str(user.id)})

    # ============= SIGNUP / LOGIN =============

    @staticmethod
    def signup(db: Session, request: SignupRequest) -> Tuple[User, str]:
        contact = request.contact
        logger.info(f"Регистрация {request.username} через {contact.kind}")

        user = UserRepository.create_user(
            db,
            username=request.username,
            password_hash=hash_password(request.password),
            email=contact.email,
            phone=contact.phone,
            first_name=request.first_name,
            last_name=request.last_name,
        )

        logger.info(f"Пользователь зарегистрирован: {user.username} (id={user.id})")
        return user, AuthService.issue_token(user)

    @staticmethod
    def login(db: Session, identifier: str, password: str) -> Tuple[User, str]:
        user = UserRepository.find_by_identifier(db, identifier)

        # Одинаковый ответ для "нет такого пользователя" и "неверный пароль"
        if not user or not user.is_active or not verify_password(password, user.password_hash):
            logger.warning("⚠️ Неудачная попытка входа")
            raise AuthError(INVALID_CREDENTIALS)

        UserRepository.touch_login(db, user)
        logger.info(f"Пользователь вошёл: {user.username}")
        return user, AuthService.issue_token(user)

    # ============= ПРОФИЛЬ =============

    @staticmethod
    def update_username(db: Session, user: User, username: str) -> User:
        user = UserRepository.update_field(db, user, "username", username)
        logger.info(f"Username обновлён для user_id={user.id}")
        return user

    @staticmethod
    def update_email(db: Session, user: User, email: str) -> User:
        user = UserRepository.update_field(db, user, "email", email)
        logger.info(f"Email обновлён для user_id={user.id}")
        return user

    @staticmethod
    def update_phone(db: Session, user: User, phone: Optional[str]) -> User:
        user = UserRepository.update_field(db, user, "phone", phone)
        logger.info(f"Телефон обновлён для user_id={user.id}")
        return user

    @staticmethod
    def update_password(db: Session, user: User, password: str) -> User:
        user.password_hash = hash_password(password)
        UserRepository.save(db, user)
        logger.info(f"Пароль обновлён для user_id={user.id}")
        return user

    @staticmethod
    def update_profile_one_of(db: Session, user: User, request: UpdateProfileRequest) -> User:
        """
        Единый endpoint: одно поле за запрос.

        Конфликт уникальности здесь отдаётся как 400, а не 409 - клиенту
        этого endpoint'а достаточно одного кода ошибки.
        """
        handlers = {
            "username": AuthService.update_username,
            "email": AuthService.update_email,
            "phone": AuthService.update_phone,
            "password": AuthService.update_password,
        }
        try:
            return handlers[request.field](db, user, request.value)
        except ConflictError as e:
            raise ValidationError(e.message) from e

    @staticmethod
    def verify_email(db: Session, user: User) -> User:
        if not user.email:
            raise ValidationError("Account has no email to verify")
        user.is_email_verified = True
        return UserRepository.save(db, user)

    # ============= CREATOR =============

    @staticmethod
    def set_creator_mode(db: Session, user: User, enable: bool) -> User:
        user.is_creator = bool(enable)
        return UserRepository.save(db, user)

    @staticmethod
    def set_creator_hub(db: Session, user: User, enabled: bool) -> User:
        """
        Включение/выключение CreatorHub.
        При выключении запоминаем дату: данные креатора хранятся
        CREATOR_DATA_RETENTION_DAYS, повторное включение дату сбрасывает.
        """
        was_enabled = user.is_creator_enabled
        user.is_creator_enabled = enabled
        if enabled:
            user.is_creator = True
            user.creator_disabled_at = None
        elif was_enabled or user.creator_disabled_at is None:
            user.creator_disabled_at = utcnow()
        UserRepository.save(db, user)

        if enabled:
            notification_service.send_creator_hub_enabled(user)
        else:
            notification_service.send_creator_hub_disabled(user)

        logger.info(f"CreatorHub {'включён' if enabled else 'выключен'} для user_id={user.id}")
        return user

    @staticmethod
    def cleanup_expired_creator_data(db: Session) -> int:
        cutoff = utcnow() - timedelta(days=config.CREATOR_DATA_RETENTION_DAYS)
        expired = UserRepository.list_expired_creators(db, cutoff)

        for user in expired:
            user.is_creator = False
            user.creator_disabled_at = None
        db.commit()

        logger.info(f"Очищены данные креаторов: {len(expired)} аккаунтов")
        return len(expired)

    # ============= УДАЛЕНИЕ =============

    @staticmethod
    def delete_account(db: Session, user: User) -> None:
        # Токен не отзывается явно: get_current_user перечитывает пользователя
        # на каждом запросе, и после удаления строки токен перестаёт работать
        user_id = user.id
        UserRepository.delete(db, user)
        logger.info(f"Аккаунт удалён: user_id={user_id}")

    # ============= СБРОС ПАРОЛЯ =============

    @staticmethod
    def forgot_password(db: Session, email: str) -> dict:
        """Ответ одинаковый, есть такой email или нет"""
        data = {}
        user = UserRepository.get_by_email(db, email)
        if user is None:
            logger.info("Запрошен сброс пароля для незарегистрированного email")
            return data

        token, expires = password_reset.issue_reset_token(db, user)
        if config.expose_reset_secrets():
            data["token"] = token
        else:
            notification_service.send_password_reset_email(user.email, token, expires)
        return data

    @staticmethod
    def reset_password(db: Session, token: str, password: str) -> User:
        user = password_reset.find_user_by_reset_token(db, token)
        if user is None:
            logger.warning("⚠️ Сброс пароля с неверным или просроченным токеном")
            raise ValidationError(INVALID_RESET_TOKEN)

        user.password_hash = hash_password(password)
        password_reset.clear_reset_token(user)
        UserRepository.save(db, user)
        logger.info(f"Пароль сброшен по токену для user_id={user.id}")
        return user

    @staticmethod
    def forgot_password_phone(db: Session, phone: str) -> dict:
        data = {}
        user = UserRepository.get_by_phone(db, phone)
        if user is None:
            logger.info("Запрошен PIN для незарегистрированного телефона")
            return data

        pin, _ = password_reset.issue_reset_pin(db, user)
        if config.expose_reset_secrets():
            data["pin"] = pin
        else:
            notification_service.send_password_reset_pin(user.phone, pin)
        return data

    @staticmethod
    def reset_password_phone(db: Session, phone: str, pin: str, password: str) -> User:
        user = password_reset.find_user_by_reset_pin(db, phone, pin)
        if user is None:
            logger.warning("⚠️ Сброс пароля с неверным или просроченным PIN")
            raise ValidationError(INVALID_RESET_PIN)

        user.password_hash = hash_password(password)
        password_reset.clear_reset_pin(user)
        UserRepository.save(db, user)
        logger.info(f"Пароль сброшен по PIN для user_id={user.id}")
        return user
