import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from comicstop.core.errors import ConflictError, ValidationError
from comicstop.core.models import User, utcnow
from comicstop.utils.identifiers import (
    is_valid_phone_digits,
    looks_like_phone,
    normalize_email,
    normalize_phone,
    normalize_username,
)

logger = logging.getLogger(__name__)

# Поля, которые можно менять через update_field, и колонка для проверки уникальности
UNIQUE_COLUMNS = {
    "username": "username_key",
    "email": "email",
    "phone": "phone",
}


class UserRepository:
    """Хранилище учётных данных. Уникальность держится на UNIQUE-индексах таблицы users."""

    @staticmethod
    def get_by_id(db: Session, user_id: str) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_by_username(db: Session, username: str) -> Optional[User]:
        return db.query(User).filter(User.username_key == normalize_username(username)).first()

    @staticmethod
    def get_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == normalize_email(email)).first()

    @staticmethod
    def get_by_phone(db: Session, phone: str) -> Optional[User]:
        digits = normalize_phone(phone)
        if not digits:
            return None
        return db.query(User).filter(User.phone == digits).first()

    @staticmethod
    def get_by_reset_token_hash(db: Session, token_hash: str) -> Optional[User]:
        return db.query(User).filter(User.reset_password_token_hash == token_hash).first()

    @staticmethod
    def find_by_identifier(db: Session, identifier: str) -> Optional[User]:
        """
        Ищет пользователя по строке, которая может быть username, email или телефоном.
        Порядок: username -> email -> телефон (только цифры).
        Телефоном считается только строка, похожая на номер: "ghost1" не даёт "1".
        """
        identifier = (identifier or "").strip()
        if not identifier:
            return None
        user = UserRepository.get_by_username(db, identifier) or UserRepository.get_by_email(db, identifier)
        if user is None and looks_like_phone(identifier):
            user = UserRepository.get_by_phone(db, identifier)
        return user

    @staticmethod
    def username_exists(db: Session, username: str) -> bool:
        return UserRepository.get_by_username(db, username) is not None

    @staticmethod
    def email_exists(db: Session, email: str) -> bool:
        return UserRepository.get_by_email(db, email) is not None

    @staticmethod
    def phone_exists(db: Session, phone: str) -> bool:
        return UserRepository.get_by_phone(db, phone) is not None

    @staticmethod
    def _taken_by_other(db: Session, column: str, value: str, user_id: Optional[str] = None) -> bool:
        query = db.query(User.id).filter(getattr(User, column) == value)
        if user_id is not None:
            query = query.filter(User.id != user_id)
        return query.first() is not None

    @staticmethod
    def create_user(
        db: Session,
        username: str,
        password_hash: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        **extra,
    ) -> User:
        email = normalize_email(email) if email else None
        phone = normalize_phone(phone) if phone else None
        if not email and not phone:
            raise ValidationError("Either email or phone number is required")
        if phone and not is_valid_phone_digits(phone):
            raise ValidationError("Phone must contain 7-15 digits")

        username = username.strip()
        username_key = normalize_username(username)

        # Проверка заранее - чтобы назвать конкретное поле в ответе
        if UserRepository._taken_by_other(db, "username_key", username_key):
            raise ConflictError("User with this username already exists")
        if email and UserRepository._taken_by_other(db, "email", email):
            raise ConflictError("User with this email already exists")
        if phone and UserRepository._taken_by_other(db, "phone", phone):
            raise ConflictError("User with this phone already exists")

        user = User(
            username=username,
            username_key=username_key,
            email=email,
            phone=phone,
            password_hash=password_hash,
            **extra,
        )
        db.add(user)
        UserRepository._commit_unique(db)
        db.refresh(user)
        return user

    @staticmethod
    def update_field(db: Session, user: User, field: str, value: Optional[str]) -> User:
        """
        Меняет username / email / phone с повторной нормализацией.
        Уникальность проверяется без учёта строки самого пользователя.
        """
        if field not in UNIQUE_COLUMNS:
            raise ValueError(f"Unsupported field: {field}")

        if field == "username":
            display = value.strip()
            key = normalize_username(display)
            if UserRepository._taken_by_other(db, "username_key", key, user.id):
                raise ConflictError("User with this username already exists")
            user.username = display
            user.username_key = key
        elif field == "email":
            email = normalize_email(value) if value else None
            if not email:
                raise ValidationError("Email must not be empty")
            if UserRepository._taken_by_other(db, "email", email, user.id):
                raise ConflictError("User with this email already exists")
            if email != user.email:
                user.is_email_verified = False
            user.email = email
        else:
            phone = normalize_phone(value) or None
            if phone is not None and not is_valid_phone_digits(phone):
                raise ValidationError("Phone must contain 7-15 digits")
            if phone is None and not user.email:
                raise ValidationError("Cannot remove phone from an account without email")
            if phone and UserRepository._taken_by_other(db, "phone", phone, user.id):
                raise ConflictError("User with this phone already exists")
            user.phone = phone

        UserRepository._commit_unique(db)
        db.refresh(user)
        return user

    @staticmethod
    def save(db: Session, user: User) -> User:
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def delete(db: Session, user: User) -> None:
        db.delete(user)
        db.commit()

    @staticmethod
    def list_expired_creators(db: Session, cutoff: datetime) -> List[User]:
        return db.query(User).filter(
            User.is_creator_enabled.is_(False),
            User.creator_disabled_at.isnot(None),
            User.creator_disabled_at < cutoff,
        ).all()

    @staticmethod
    def touch_login(db: Session, user: User) -> User:
        user.last_login_at = utcnow()
        return UserRepository.save(db, user)

    @staticmethod
    def _commit_unique(db: Session) -> None:
        # Второй писатель в гонке получает IntegrityError от UNIQUE-индекса
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.warning("Нарушение уникальности при записи пользователя: %s", e.orig)
            raise ConflictError("Resource already exists") from e
