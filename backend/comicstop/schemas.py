"""
Pydantic модели для auth и users endpoint'ов.
"""
from datetime import datetime
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    PrivateAttr,
    StrictBool,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from comicstop.utils.identifiers import (
    ISD_CODE_RE,
    LOCAL_PHONE_RE,
    SignupContact,
    combine_phone,
    is_valid_phone_digits,
    is_valid_username,
    looks_like_email,
    looks_like_phone,
    normalize_phone,
)

PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 128
LOOSE_PHONE_PATTERN = r"^[+]?[- ().0-9]{5,}$"
OPTIONAL_PHONE_PATTERN = r"^[+]?[- ().0-9]{0,32}$"


def _check_username(value: str) -> str:
    if not is_valid_username(value):
        raise ValueError("Username must be 3-50 letters or digits")
    return value.strip()


# ============= SIGNUP / LOGIN =============

class SignupRequest(BaseModel):
    """
    Схема регистрации. Принимает две формы payload:

    Новая (email ИЛИ телефон с кодом страны):
    {
        "username": "reader1",
        "email": "reader1@example.com",            # либо
        "isd_code": "+1", "phone_number": "5552003000",
        "password": "StrongP@ss1",
        "termsAccepted": true
    }

    Старая (одно поле на оба случая):
    {
        "username": "reader1",
        "emailOrPhone": "+1 (555) 200-3000",
        "password": "StrongP@ss1",
        "termsAccepted": true
    }

    Обе формы сводятся к одному SignupContact ещё на границе, дальше по коду
    ходит только он.
    """
    model_config = ConfigDict(populate_by_name=True)

    username: str
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)
    terms_accepted: bool = Field(..., alias="termsAccepted")
    email: Optional[EmailStr] = None
    isd_code: Optional[str] = None
    phone_number: Optional[str] = None
    email_or_phone: Optional[str] = Field(None, alias="emailOrPhone")
    first_name: Optional[str] = Field(None, alias="firstName", max_length=100)
    last_name: Optional[str] = Field(None, alias="lastName", max_length=100)

    _contact: Optional[SignupContact] = PrivateAttr(default=None)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        return _check_username(v)

    @field_validator("terms_accepted")
    @classmethod
    def validate_terms(cls, v: bool) -> bool:
        if v is not True:
            raise ValueError("Terms must be accepted")
        return v

    @field_validator("isd_code")
    @classmethod
    def validate_isd_code(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not ISD_CODE_RE.match(v):
            raise ValueError("isd_code must look like +1 .. +9999")
        return v

    @field_validator("phone_number")
    @classmethod
    def validate_phone_number(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not LOCAL_PHONE_RE.match(v):
            raise ValueError("phone_number must be 7-15 digits")
        return v

    @model_validator(mode="after")
    def resolve_contact(self) -> "SignupRequest":
        has_new_shape = any(v is not None for v in (self.email, self.phone_number, self.isd_code))

        if self.email_or_phone is not None:
            if has_new_shape:
                raise ValueError("Use either emailOrPhone or email/phone_number, not both")
            self._contact = self._resolve_legacy(self.email_or_phone)
            return self

        if self.email is not None and self.phone_number is not None:
            raise ValueError("Provide either email or phone_number, not both")
        if self.email is not None:
            if self.isd_code is not None:
                raise ValueError("isd_code is only allowed together with phone_number")
            self._contact = SignupContact.from_email(str(self.email))
            return self
        if self.phone_number is not None:
            if self.isd_code is None:
                raise ValueError("isd_code is required together with phone_number")
            self._contact = SignupContact(phone=combine_phone(self.isd_code, self.phone_number))
            return self

        raise ValueError("Either email or phone number is required")

    @staticmethod
    def _resolve_legacy(value: str) -> SignupContact:
        value = value.strip()
        if "@" in value:
            if not looks_like_email(value):
                raise ValueError("emailOrPhone must be a valid email or phone number")
            return SignupContact.from_email(value)
        if looks_like_phone(value) and is_valid_phone_digits(normalize_phone(value)):
            return SignupContact.from_phone(value)
        raise ValueError("emailOrPhone must be a valid email or phone number")

    @property
    def contact(self) -> SignupContact:
        return self._contact


class LoginRequest(BaseModel):
    """
    Вход по любому идентификатору:
    {"identifier": "reader1" | "reader1@example.com" | "+1 555 200 3000", "password": "..."}
    """
    identifier: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


# ============= СБРОС ПАРОЛЯ =============

class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ForgotPasswordPhoneRequest(BaseModel):
    phone: str = Field(..., pattern=LOOSE_PHONE_PATTERN)


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=10, max_length=255)
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)


class ResetPasswordPhoneRequest(BaseModel):
    phone: str = Field(..., pattern=LOOSE_PHONE_PATTERN)
    pin: str = Field(..., min_length=4, max_length=12)
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)


# ============= ОБНОВЛЕНИЕ ПРОФИЛЯ =============

class UpdateUsernameRequest(BaseModel):
    username: str

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        return _check_username(v)


class UpdateEmailRequest(BaseModel):
    email: EmailStr


class UpdatePhoneRequest(BaseModel):
    # None или "" - убрать телефон из профиля
    phone: Optional[str] = Field(None, pattern=OPTIONAL_PHONE_PATTERN)


class UpdatePasswordRequest(BaseModel):
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)


PROFILE_FIELDS = ("username", "email", "phone", "password")


class UpdateProfileRequest(BaseModel):
    """Единый PATCH /auth/profile: ровно одно поле за запрос"""
    username: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, pattern=OPTIONAL_PHONE_PATTERN)
    password: Optional[str] = Field(None, min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return _check_username(v)

    @model_validator(mode="after")
    def exactly_one_field(self) -> "UpdateProfileRequest":
        provided = [name for name in PROFILE_FIELDS if name in self.model_fields_set]
        if len(provided) != 1:
            raise ValueError(f"Exactly one of {', '.join(PROFILE_FIELDS)} must be provided")
        for name in ("username", "email", "password"):
            if name in provided and getattr(self, name) is None:
                raise ValueError(f"{name} must not be null")
        return self

    @property
    def field(self) -> str:
        return next(name for name in PROFILE_FIELDS if name in self.model_fields_set)

    @property
    def value(self) -> Optional[str]:
        value = getattr(self, self.field)
        return str(value) if value is not None else None


# ============= CREATOR =============

class CreatorModeRequest(BaseModel):
    enable: bool = True


class CreatorHubRequest(BaseModel):
    # Отсутствие поля проверяется в endpoint'е, чтобы вернуть понятное сообщение
    enabled: Optional[StrictBool] = None


# ============= ОТВЕТЫ =============

class UserResponse(BaseModel):
    """
    Публичное представление пользователя (camelCase, как ждёт фронтенд).

    ⚠️ ВАЖНО: НЕ возвращаем пароль и состояние сброса! (даже хешированные)
    """
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    username: str
    email: Optional[str] = None
    phone: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_active: bool
    is_creator: bool
    is_creator_enabled: bool
    creator_disabled_at: Optional[datetime] = None
    is_email_verified: bool
    last_login_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class SettingsResponse(BaseModel):
    """Настройки аккаунта - то, что показывает страница Settings"""
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)

    username: str
    email: Optional[str] = None
    phone: Optional[str] = None
    is_creator: bool
    is_creator_enabled: bool
    is_email_verified: bool


def serialize_user(user) -> dict:
    return UserResponse.model_validate(user).model_dump(by_alias=True, mode="json")


def serialize_settings(user) -> dict:
    return SettingsResponse.model_validate(user).model_dump(by_alias=True, mode="json")


def envelope(message: Optional[str] = None, **data) -> dict:
    """Успешный ответ: {"success": true, "message": ..., "data": {...}}"""
    body = {"success": True}
    if message:
        body["message"] = message
    body["data"] = data
    return body
