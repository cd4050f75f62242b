# backend/comicstop/utils/identifiers.py
"""
Нормализация идентификаторов пользователя: email, username, телефон.

Всё, что попадает в БД или участвует в сравнении, проходит через эти функции:
    "  User@Mail.COM " -> "user@mail.com"
    "+1 (555) 222-3333", "1-555-222-3333", "15552223333" -> "15552223333"
"""
import re
from dataclasses import dataclass
from typing import Optional

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
LOOSE_PHONE_RE = re.compile(r"^[+]?[- ().0-9]{5,}$")
ISD_CODE_RE = re.compile(r"^\+[0-9]{1,4}$")
LOCAL_PHONE_RE = re.compile(r"^[0-9]{7,15}$")
USERNAME_RE = re.compile(r"^[A-Za-z0-9]{3,50}$")
NON_DIGITS_RE = re.compile(r"\D+")

PHONE_MIN_DIGITS = 7
PHONE_MAX_DIGITS = 15


def normalize_email(value: str) -> str:
    return value.strip().lower()


def normalize_username(value: str) -> str:
    """Ключ сравнения; для отображения храним value.strip()"""
    return value.strip().lower()


def normalize_phone(value: Optional[str]) -> str:
    """Оставляет только цифры: пробелы, дефисы, скобки и плюс выкидываются"""
    return NON_DIGITS_RE.sub("", value or "")


def combine_phone(isd_code: Optional[str], phone_number: Optional[str]) -> str:
    return normalize_phone(f"{isd_code or ''}{phone_number or ''}")


def looks_like_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value.strip()))


def looks_like_phone(value: str) -> bool:
    return bool(LOOSE_PHONE_RE.match(value.strip()))


def is_valid_username(value: str) -> bool:
    return bool(USERNAME_RE.match(value.strip()))


def is_valid_phone_digits(digits: str) -> bool:
    return digits.isdigit() and PHONE_MIN_DIGITS <= len(digits) <= PHONE_MAX_DIGITS


@dataclass(frozen=True)
class SignupContact:
    """Единственный канал связи, выбранный при регистрации"""
    email: Optional[str] = None
    phone: Optional[str] = None

    @classmethod
    def from_email(cls, value: str) -> "SignupContact":
        return cls(email=normalize_email(value))

    @classmethod
    def from_phone(cls, value: str) -> "SignupContact":
        return cls(phone=normalize_phone(value))

    @property
    def kind(self) -> str:
        return "email" if self.email else "phone"
