"""
Настройка подключения к базе данных.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from comicstop import config


def _engine_kwargs(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {}

    kwargs = {"connect_args": {"check_same_thread": False}}  # Только для SQLite
    # In-memory SQLite живёт, пока жив коннект - держим один на весь процесс
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    return kwargs


if config.DATABASE_URL.startswith("sqlite:///") and ":memory:" not in config.DATABASE_URL:
    config.DATA_DIR.mkdir(parents=True, exist_ok=True)

# Создаём движок БД
engine = create_engine(config.DATABASE_URL, **_engine_kwargs(config.DATABASE_URL))

# Сессия для работы с БД
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Базовый класс для моделей
Base = declarative_base()


def get_db():
    """
    Dependency для получения сессии БД в endpoint'ах.

    Использование:
        @router.post("/users")
        def create_user(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
