import logging
import sys
from pathlib import Path

from comicstop import config

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Логгеры, чьи предупреждения дублируются в security.log:
# неудачные входы, превышения лимитов, попытки сброса пароля
SECURITY_LOGGERS = (
    "comicstop.services.auth_service",
    "comicstop.services.rate_limiter",
    "comicstop.api.dependencies",
)


class SecurityEventFilter(logging.Filter):
    """Пропускает только WARNING+ от auth-логгеров"""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.WARNING and record.name.startswith(SECURITY_LOGGERS)


def _file_handler(path: Path, level: int, formatter: logging.Formatter) -> logging.FileHandler:
    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging():
    """
    Настройка логирования для приложения.

    - Консоль: LOG_LEVEL (в test-режиме только WARNING и выше)
    - app.log: все логи (DEBUG)
    - errors.log: только ошибки
    - security.log: события аутентификации и rate limiting
    """
    log_dir = config.LOGS_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    # Корневой логгер
    root_logger = logging.getLogger()
    root_logger.setLevel(config.LOG_LEVEL)

    # Очищаем старые хэндлеры (если есть)
    root_logger.handlers.clear()

    # ===== CONSOLE HANDLER =====
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.WARNING if config.is_test_mode() else config.LOG_LEVEL)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # ===== FILE HANDLERS =====
    root_logger.addHandler(_file_handler(log_dir / "app.log", logging.DEBUG, formatter))
    root_logger.addHandler(_file_handler(log_dir / "errors.log", logging.ERROR, formatter))

    security_handler = _file_handler(log_dir / "security.log", logging.WARNING, formatter)
    security_handler.addFilter(SecurityEventFilter())
    root_logger.addHandler(security_handler)

    # Отключаем слишком болтливые библиотеки
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)
    logging.getLogger("multipart").setLevel(logging.WARNING)

    return root_logger
