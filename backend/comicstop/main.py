"""
ComicStop API - главный файл приложения.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from comicstop import config
from comicstop.api.auth import router as auth_router
from comicstop.api.users import router as users_router
from comicstop.core.database import engine, Base
from comicstop.core.errors import register_exception_handlers
from comicstop.core.logging_config import setup_logging
import comicstop.core.models  # noqa: F401 - регистрирует таблицы в Base.metadata


# ===== НАСТРОЙКА ЛОГИРОВАНИЯ =====
setup_logging()
logger = logging.getLogger(__name__)


# ============= LIFESPAN EVENT =============

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Выполняется при запуске и остановке приложения.

    Код ДО yield - выполняется при старте (startup).
    Код ПОСЛЕ yield - выполняется при остановке (shutdown).
    """
    # ===== STARTUP =====
    logger.info(f"ComicStop API запускается (ENVIRONMENT={config.ENVIRONMENT})...")

    if config.is_production() and config.SECRET_KEY == config.DEFAULT_SECRET_KEY:
        raise RuntimeError("SECRET_KEY is not set. Please configure it in the environment.")
    if config.expose_reset_secrets():
        logger.warning("⚠️ Токены и PIN сброса пароля возвращаются в ответах (test-режим)")

    # Создание таблиц в БД
    Base.metadata.create_all(bind=engine)
    logger.info(f"База данных: {config.DATABASE_URL}")

    logger.info(f"Документация: http://{config.API_HOST}:{config.API_PORT}/docs")
    logger.info("API готов к работе!")

    yield  # Приложение работает

    # ===== SHUTDOWN =====
    logger.info("Остановка приложения...")
    engine.dispose()
    logger.info("Приложение остановлено")


# ============= СОЗДАНИЕ ПРИЛОЖЕНИЯ =============

app = FastAPI(
    title="ComicStop API",
    description="Comic publishing backend: accounts, authentication and password recovery",
    version="1.0.0",
    lifespan=lifespan
)

register_exception_handlers(app)


# ============= CORS =============

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============= ROUTERS =============

app.include_router(auth_router, prefix=config.API_PREFIX)
app.include_router(users_router, prefix=config.API_PREFIX)


# ============= HEALTH CHECK =============

@app.get("/", tags=["Health"])
async def root():
    """Проверка что API работает"""
    logger.debug("GET / вызван")
    return {
        "message": "ComicStop API",
        "status": "healthy",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health", tags=["Health"])
def health():
    """Проверка состояния БД"""
    database_ok = True
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Health check: БД недоступна: %s", str(e))
        database_ok = False

    return {
        "status": "ok" if database_ok else "degraded",
        "services": {
            "database": database_ok,
        }
    }
