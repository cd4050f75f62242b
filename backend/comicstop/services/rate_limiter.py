"""
Rate limiter с фиксированным окном.

Считает запросы по паре (ключ клиента, категория) внутри фиксированного окна
и отклоняет запрос, когда бюджет категории исчерпан. Успешные и неуспешные
запросы считаются одинаково. Когда окно истекает, счётчик начинается с нуля.
"""
import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from fastapi import Request

from comicstop import config
from comicstop.core.errors import RateLimitError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitPolicy:
    """Бюджет одной категории endpoint'ов"""
    category: str
    limit: int
    window_seconds: int


LOGIN_POLICY = RateLimitPolicy("login", config.LOGIN_RATE_LIMIT, config.LOGIN_RATE_WINDOW_SECONDS)
SIGNUP_POLICY = RateLimitPolicy("signup", config.SIGNUP_RATE_LIMIT, config.SIGNUP_RATE_WINDOW_SECONDS)
# Общий для forgot-password по email и по телефону
FORGOT_PASSWORD_POLICY = RateLimitPolicy(
    "forgot-password", config.FORGOT_PASSWORD_RATE_LIMIT, config.FORGOT_PASSWORD_RATE_WINDOW_SECONDS
)


class RateLimitStore(ABC):
    """Хранилище счётчиков окон"""

    @abstractmethod
    def hit(self, key: Tuple[str, str], window_seconds: int, now: float) -> Tuple[int, float]:
        """
        Атомарно учитывает один запрос для key.

        Returns:
            (счётчик в текущем окне с учётом этого запроса, начало окна)
        """

    @abstractmethod
    def reset(self) -> None:
        """Сбрасывает все счётчики"""


class InMemoryRateLimitStore(RateLimitStore):
    """
    Хранилище в памяти процесса. После рестарта счётчики теряются -
    для одного процесса этого достаточно.

    Когда записей не меньше sweep_threshold, истёкшие окна вычищаются,
    но не чаще, чем истекает самое короткое из оставшихся окон.
    """

    def __init__(self, sweep_threshold: int = 1000):
        # key -> (начало окна, счётчик, длина окна)
        self._windows: Dict[Tuple[str, str], Tuple[float, int, int]] = {}
        self._lock = threading.Lock()
        self._sweep_threshold = sweep_threshold
        self._next_sweep_at = 0.0

    def hit(self, key: Tuple[str, str], window_seconds: int, now: float) -> Tuple[int, float]:
        with self._lock:
            window_start, count, _ = self._windows.get(key, (now, 0, window_seconds))
            if now >= window_start + window_seconds:
                window_start, count = now, 0
            count += 1
            self._windows[key] = (window_start, count, window_seconds)

            if len(self._windows) >= self._sweep_threshold and now >= self._next_sweep_at:
                self._sweep(now)
            return count, window_start

    def _sweep(self, now: float) -> None:
        expired = [
            key for key, (start, _, window) in self._windows.items()
            if now >= start + window
        ]
        for key in expired:
            del self._windows[key]
        self._next_sweep_at = now + min(
            (start + window - now for start, _, window in self._windows.values()),
            default=0,
        )
        if expired:
            logger.debug("Rate limiter: удалено истёкших окон %d, осталось %d", len(expired), len(self._windows))

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()
            self._next_sweep_at = 0.0


class RateLimiter:
    """
    Пример:
        limiter = RateLimiter(InMemoryRateLimitStore())
        limiter.check("10.0.0.1", LOGIN_POLICY)  # 6-й вызов бросит RateLimitError
    """

    def __init__(self, store: RateLimitStore, clock: Callable[[], float] = time.time):
        self.store = store
        self.clock = clock

    def check(self, client_key: str, policy: RateLimitPolicy, limit: Optional[int] = None) -> int:
        """
        Учитывает запрос и бросает RateLimitError, если бюджет превышен.

        Args:
            client_key: Ключ клиента (IP или тестовый ключ)
            policy: Бюджет категории
            limit: Переопределение policy.limit

        Returns:
            Сколько запросов осталось в текущем окне
        """
        limit = policy.limit if limit is None else limit
        now = self.clock()
        count, window_start = self.store.hit((client_key, policy.category), policy.window_seconds, now)

        if count > limit:
            retry_after = max(1, int(window_start + policy.window_seconds - now))
            logger.warning(
                "⚠️ Превышен лимит запросов: category=%s client=%s count=%d limit=%d",
                policy.category, client_key, count, limit,
            )
            raise RateLimitError(headers={"Retry-After": str(retry_after)})

        return limit - count


# Глобальный лимитер; тесты подменяют clock и сбрасывают store через него
limiter = RateLimiter(InMemoryRateLimitStore())


def client_key_for(request: Request) -> Tuple[str, bool]:
    """
    Возвращает (ключ клиента, пришёл ли он из тестового заголовка).
    Вне test-режима заголовок игнорируется.
    """
    if config.honor_test_key():
        test_key = request.headers.get(config.TEST_KEY_HEADER)
        if test_key:
            return f"test:{test_key}", True

    host = request.client.host if request.client else "unknown"
    return host, False


def rate_limit(policy: RateLimitPolicy):
    """Фабрика FastAPI dependency: Depends(rate_limit(LOGIN_POLICY))"""

    def dependency(request: Request) -> None:
        client_key, from_test_key = client_key_for(request)
        limit = policy.limit
        if config.is_test_mode() and not from_test_key:
            # Тестовый трафик без ключа практически не ограничиваем
            limit = config.RATE_LIMIT_TEST_CEILING
        limiter.check(client_key, policy, limit=limit)

    return dependency
