from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from comicstop import config
from comicstop.api.dependencies import get_current_user
from comicstop.core.database import get_db
from comicstop.core.errors import ValidationError
from comicstop.core.models import User
from comicstop.schemas import (
    CreatorHubRequest,
    CreatorModeRequest,
    ForgotPasswordPhoneRequest,
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordPhoneRequest,
    ResetPasswordRequest,
    SignupRequest,
    UpdateEmailRequest,
    UpdatePasswordRequest,
    UpdatePhoneRequest,
    UpdateProfileRequest,
    UpdateUsernameRequest,
    envelope,
    serialize_settings,
    serialize_user,
)
from comicstop.services.auth_service import RESET_REQUESTED, AuthService
from comicstop.services.rate_limiter import FORGOT_PASSWORD_POLICY, LOGIN_POLICY, SIGNUP_POLICY, rate_limit

router = APIRouter(prefix="/auth", tags=["Authentication"])


# ============= SIGNUP / LOGIN =============

@router.post(
    "/signup",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit(SIGNUP_POLICY))],
)
def signup(request: SignupRequest, db: Session = Depends(get_db)):
    """Регистрация по email или телефону"""
    user, token = AuthService.signup(db, request)
    return envelope("User registered successfully", user=serialize_user(user), token=token)


@router.post("/login", dependencies=[Depends(rate_limit(LOGIN_POLICY))])
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    """Вход по username, email или телефону"""
    user, token = AuthService.login(db, credentials.identifier, credentials.password)
    return envelope("Login successful", user=serialize_user(user), token=token)


@router.post("/logout")
def logout(current_user: User = Depends(get_current_user)):
    """Токены stateless - клиент просто удаляет свой"""
    return envelope("Logout successful. Please remove the token from client storage.")


# ============= ПРОФИЛЬ =============

@router.get("/profile")
def profile(current_user: User = Depends(get_current_user)):
    return envelope(user=serialize_user(current_user))


@router.get("/settings")
def settings(current_user: User = Depends(get_current_user)):
    return envelope(settings=serialize_settings(current_user))


@router.patch("/profile")
def update_profile(
    request: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Ровно одно из: username, email, phone, password"""
    user = AuthService.update_profile_one_of(db, current_user, request)
    return envelope("Profile updated", user=serialize_user(user))


@router.patch("/profile/username")
def update_username(
    request: UpdateUsernameRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = AuthService.update_username(db, current_user, request.username)
    return envelope("Username updated", user=serialize_user(user))


@router.patch("/profile/email")
def update_email(
    request: UpdateEmailRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = AuthService.update_email(db, current_user, str(request.email))
    return envelope("Email updated", user=serialize_user(user))


@router.patch("/profile/phone")
def update_phone(
    request: UpdatePhoneRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = AuthService.update_phone(db, current_user, request.phone)
    return envelope("Phone updated", user=serialize_user(user))


@router.patch("/profile/password")
def update_password(
    request: UpdatePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    user = AuthService.update_password(db, current_user, request.password)
    return envelope("Password updated", user=serialize_user(user))


@router.post("/verify-email")
def verify_email(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    user = AuthService.verify_email(db, current_user)
    return envelope(user=serialize_user(user))


# ============= CREATOR =============

@router.post("/creator-mode")
def creator_mode(
    request: Optional[CreatorModeRequest] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    # Пустое тело - включить, как и {"enable": true}
    enable = request.enable if request is not None else True
    user = AuthService.set_creator_mode(db, current_user, enable)
    return envelope(user=serialize_user(user))


@router.post("/creator-hub")
def creator_hub(
    request: CreatorHubRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if request.enabled is None:
        raise ValidationError("enabled parameter is required")

    user = AuthService.set_creator_hub(db, current_user, request.enabled)
    if request.enabled:
        message = "CreatorHub enabled successfully"
    else:
        message = f"CreatorHub disabled. Data will be retained for {config.CREATOR_DATA_RETENTION_DAYS} days."
    return envelope(message, user=serialize_user(user))


@router.post("/cleanup-expired-creator-data")
def cleanup_expired_creator_data(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    # TODO: ограничить ролью администратора, когда в модели появятся роли
    deleted = AuthService.cleanup_expired_creator_data(db)
    return envelope(f"Cleaned up {deleted} expired creator profiles", deletedCount=deleted)


@router.delete("/me")
def delete_me(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    AuthService.delete_account(db, current_user)
    return envelope("Account deleted. Please remove client token.", loggedOut=True)


# ============= СБРОС ПАРОЛЯ =============

@router.post("/forgot-password", dependencies=[Depends(rate_limit(FORGOT_PASSWORD_POLICY))])
def forgot_password(request: ForgotPasswordRequest, db: Session = Depends(get_db)):
    data = AuthService.forgot_password(db, str(request.email))
    return envelope(RESET_REQUESTED, **data)


@router.post("/reset-password")
def reset_password(request: ResetPasswordRequest, db: Session = Depends(get_db)):
    AuthService.reset_password(db, request.token, request.password)
    return envelope("Password has been reset")


@router.post("/forgot-password/phone", dependencies=[Depends(rate_limit(FORGOT_PASSWORD_POLICY))])
def forgot_password_phone(request: ForgotPasswordPhoneRequest, db: Session = Depends(get_db)):
    data = AuthService.forgot_password_phone(db, request.phone)
    return envelope(RESET_REQUESTED, **data)


@router.post("/reset-password/phone")
def reset_password_phone(request: ResetPasswordPhoneRequest, db: Session = Depends(get_db)):
    AuthService.reset_password_phone(db, request.phone, request.pin, request.password)
    return envelope("Password has been reset")
