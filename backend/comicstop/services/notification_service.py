# backend/comicstop/services/notification_service.py
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List

from comicstop import config
from comicstop.core.models import utcnow

logger = logging.getLogger(__name__)


@dataclass
class OutgoingMessage:
    channel: str  # "email" | "sms"
    to: str
    subject: str
    body: str
    created_at: datetime = field(default_factory=utcnow)


class NotificationService:
    """
    Исходящие письма и SMS.

    Транспорт (SMTP/SMS-шлюз) не подключён: вне production сообщение целиком
    пишется в лог и складывается в outbox, в production в лог попадает только
    строка без тела (там секреты сброса).
    """

    def __init__(self):
        self.outbox: List[OutgoingMessage] = []

    def _deliver(self, message: OutgoingMessage) -> None:
        if config.is_production():
            logger.warning(
                "Транспорт для %s не настроен, сообщение '%s' для %s не отправлено",
                message.channel, message.subject, message.to,
            )
            return

        self.outbox.append(message)
        logger.info(f"📧 [{message.channel}] {message.subject} -> {message.to}")
        logger.info(message.body)

    def send_email(self, to: str, subject: str, body: str) -> None:
        self._deliver(OutgoingMessage("email", to, subject, body))

    def send_sms(self, to: str, body: str) -> None:
        self._deliver(OutgoingMessage("sms", to, "SMS", body))

    def clear(self) -> None:
        self.outbox.clear()

    # ============= ШАБЛОНЫ =============

    def send_password_reset_email(self, email: str, token: str, expires: datetime) -> None:
        body = (
            "We received a request to reset your ComicStop password.\n"
            f"Reset token: {token}\n"
            f"The token expires at {expires:%Y-%m-%d %H:%M} UTC. "
            "If you did not request a reset, ignore this email."
        )
        self.send_email(email, "Reset your ComicStop password", body)

    def send_password_reset_pin(self, phone: str, pin: str) -> None:
        body = f"Your ComicStop password reset PIN is {pin}. It expires in {config.RESET_PIN_TTL_MINUTES} minutes."
        self.send_sms(phone, body)

    def send_creator_hub_enabled(self, user) -> None:
        if not user.email:
            return
        body = (
            f"Hi {user.username},\n"
            "Your CreatorHub has been enabled. You can now upload comics, "
            "manage series and customize your creator profile."
        )
        self.send_email(user.email, "CreatorHub Enabled - Welcome to ComicStop Creators!", body)

    def send_creator_hub_disabled(self, user) -> None:
        if not user.email:
            return
        body = (
            f"Hi {user.username},\n"
            "Your CreatorHub has been disabled.\n"
            f"Data Retention Policy: your creator data is kept for {config.CREATOR_DATA_RETENTION_DAYS} days. "
            "Re-enable CreatorHub within this period to restore it."
        )
        self.send_email(user.email, "CreatorHub Disabled - Data Retention Information", body)


notification_service = NotificationService()
