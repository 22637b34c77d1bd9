"""알림 발송 유틸리티 - SMTP (aiosmtplib).

Notification utilities. ``Notifier`` is the interface the auth service
depends on; ``SmtpNotifier`` hands messages to the SMTP relay configured
by the ``SMTP_*`` settings.
"""

import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Protocol

import aiosmtplib

from cloudarc.config import Settings, settings
from cloudarc.utils.exceptions import NotificationError

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """메시지 발송 인터페이스 (Message delivery interface)."""

    async def send(self, to: str, subject: str, body: str, html: str | None = None) -> None:
        """메시지를 발송합니다. 실패 시 NotificationError (Raises NotificationError on failure)."""
        ...


class SmtpNotifier:
    """aiosmtplib 기반 이메일 발송기.

    Sends email through an SMTP relay. Transport failures are wrapped in
    ``NotificationError``.
    """

    def __init__(self, config: Settings) -> None:
        self.config: Settings = config

    async def send(self, to: str, subject: str, body: str, html: str | None = None) -> None:
        """이메일 발송.

        Args:
            to: 수신자 이메일 주소 (Recipient address)
            subject: 제목 (Subject)
            body: 플레인텍스트 본문 (Plain text body)
            html: HTML 본문, 선택 (Optional HTML alternative)

        Raises:
            NotificationError: SMTP 전달 실패 (Relay rejected or unreachable)
        """
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{self.config.SMTP_FROM_NAME} <{self.config.SMTP_FROM_EMAIL}>"
        msg["To"] = to

        msg.attach(MIMEText(body, "plain", "utf-8"))
        if html:
            msg.attach(MIMEText(html, "html", "utf-8"))

        try:
            await aiosmtplib.send(
                msg,
                hostname=self.config.SMTP_HOST,
                port=self.config.SMTP_PORT,
                username=self.config.SMTP_USER or None,
                password=self.config.SMTP_PASSWORD or None,
                start_tls=self.config.SMTP_START_TLS,
            )
        except (aiosmtplib.SMTPException, OSError) as exc:
            raise NotificationError(f"failed to send email: {type(exc).__name__}") from exc
        logger.info("email sent", extra={"subject": subject})


def render_password_reset_email(reset_url: str, expire_minutes: int) -> tuple[str, str]:
    """비밀번호 재설정 메일 본문을 만듭니다.

    Build the plain text and HTML bodies of the password reset email.

    Returns:
        tuple[str, str]: (텍스트 본문, HTML 본문) (Text body, HTML body)
    """
    text: str = (
        "You requested a password reset.\n\n"
        f"Open this link to choose a new password: {reset_url}\n\n"
        f"The link expires in {expire_minutes} minutes. "
        "If you did not request this, you can ignore this email."
    )
    html: str = (
        "<p>You requested a password reset.</p>"
        f'<p><a href="{reset_url}">Choose a new password</a></p>'
        f"<p>The link expires in {expire_minutes} minutes. "
        "If you did not request this, you can ignore this email.</p>"
    )
    return text, html


# 싱글턴 인스턴스 - Singleton instance
smtp_notifier: SmtpNotifier = SmtpNotifier(settings)
