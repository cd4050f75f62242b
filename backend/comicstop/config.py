"""
Конфигурация бэкенда.
"""

from pathlib import Path
from dotenv import load_dotenv
import os

load_dotenv()

# Корневая директория проекта и базовые настройки
BASE_DIR = Path(__file__).parent.parent  # backend/
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOGS_DIR = Path(os.getenv("LOGS_DIR", str(BASE_DIR / "logs")))
ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()


# ============= DATA =============
DATA_DIR = BASE_DIR / "data"

DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{str(DATA_DIR / 'app.db')}")


# ============= БЕЗОПАСНОСТЬ =============
DEFAULT_SECRET_KEY = "fallback_secret_change_in_production"

ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(7 * 24 * 60)))
ALGORITHM = os.getenv("ALGORITHM", "HS256")
SECRET_KEY = os.getenv("SECRET_KEY", DEFAULT_SECRET_KEY)
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))


# ============= API =============
API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", "8000"))
API_PREFIX = os.getenv("API_PREFIX", "/api")
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]


# ============= СБРОС ПАРОЛЯ =============
RESET_TOKEN_TTL_MINUTES = int(os.getenv("RESET_TOKEN_TTL_MINUTES", "60"))
RESET_PIN_TTL_MINUTES = int(os.getenv("RESET_PIN_TTL_MINUTES", "15"))
RESET_PIN_LENGTH = 6


# ============= RATE LIMITING =============
# (лимит, окно в секундах) на пару (клиент, категория)
LOGIN_RATE_LIMIT = int(os.getenv("LOGIN_RATE_LIMIT", "5"))
LOGIN_RATE_WINDOW_SECONDS = int(os.getenv("LOGIN_RATE_WINDOW_SECONDS", str(10 * 60)))

SIGNUP_RATE_LIMIT = int(os.getenv("SIGNUP_RATE_LIMIT", "3"))
SIGNUP_RATE_WINDOW_SECONDS = int(os.getenv("SIGNUP_RATE_WINDOW_SECONDS", str(60 * 60)))

FORGOT_PASSWORD_RATE_LIMIT = int(os.getenv("FORGOT_PASSWORD_RATE_LIMIT", "3"))
FORGOT_PASSWORD_RATE_WINDOW_SECONDS = int(os.getenv("FORGOT_PASSWORD_RATE_WINDOW_SECONDS", str(30 * 60)))

# В тестах запросы без X-Test-Key почти не ограничиваются
RATE_LIMIT_TEST_CEILING = 1000
TEST_KEY_HEADER = "X-Test-Key"


# ============= CREATORHUB =============
CREATOR_DATA_RETENTION_DAYS = int(os.getenv("CREATOR_DATA_RETENTION_DAYS", "180"))


# ============= РЕЖИМЫ =============
# Функции читают ENVIRONMENT при каждом вызове, чтобы тесты могли его подменять

def is_test_mode() -> bool:
    return ENVIRONMENT == "test"


def is_production() -> bool:
    return ENVIRONMENT == "production"


def expose_reset_secrets() -> bool:
    """Возвращать ли токен/PIN сброса прямо в ответе (только для автотестов)"""
    return is_test_mode()


def honor_test_key() -> bool:
    """Учитывать ли заголовок X-Test-Key при выборе ключа клиента"""
    return is_test_mode()
