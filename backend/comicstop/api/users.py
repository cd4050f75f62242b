"""
Проверка уникальности для форм регистрации (фронтенд дёргает на blur).
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from comicstop.core.database import get_db
from comicstop.core.errors import ValidationError
from comicstop.repositories.user_repository import UserRepository
from comicstop.schemas import envelope
from comicstop.utils.identifiers import (
    combine_phone,
    is_valid_phone_digits,
    is_valid_username,
    looks_like_email,
    normalize_email,
)

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/check-email")
def check_email(email: Optional[str] = Query(None), db: Session = Depends(get_db)):
    value = normalize_email(email or "")
    if not value or not looks_like_email(value):
        raise ValidationError("Invalid email", data={"unique": False})
    return envelope(unique=not UserRepository.email_exists(db, value))


@router.get("/check-username")
def check_username(username: Optional[str] = Query(None), db: Session = Depends(get_db)):
    value = (username or "").strip()
    if not is_valid_username(value):
        raise ValidationError("Invalid username", data={"unique": False})
    return envelope(unique=not UserRepository.username_exists(db, value))


@router.get("/check-phone")
def check_phone(
    phone: Optional[str] = Query(None),
    isd_code: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    digits = combine_phone(isd_code, phone)
    if not is_valid_phone_digits(digits):
        raise ValidationError("Invalid phone", data={"unique": False})
    return envelope(unique=not UserRepository.phone_exists(db, digits))
