import logging
import os
import smtplib
from email.message import EmailMessage

from .. import config

logger = logging.getLogger(__name__)

APP_NAME = "Job Portal"


def _env_bool(name: str, default: str = "1") -> bool:
    v = (os.getenv(name, default) or default).strip().lower()
    return v in {"1", "true", "yes", "y", "on"}


def _send(*, to_email: str, subject: str, lines: list[str]) -> None:
    """
    Send a plain-text email over SMTP.

    Env vars:
      SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASS, SMTP_FROM, SMTP_TLS
    """
    if not config.EMAIL_ENABLED:
        logger.info("Email disabled; skipping %r to %s", subject, to_email)
        return

    host = (os.getenv("SMTP_HOST") or "").strip()
    port = int((os.getenv("SMTP_PORT") or "587").strip())
    user = (os.getenv("SMTP_USER") or "").strip()
    password = (os.getenv("SMTP_PASS") or "").strip()
    mail_from = (os.getenv("SMTP_FROM") or user).strip()
    use_tls = _env_bool("SMTP_TLS", "1")

    if not host or not user or not password or not mail_from:
        raise RuntimeError("SMTP is not configured (missing SMTP_HOST/SMTP_USER/SMTP_PASS/SMTP_FROM).")

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = mail_from
    msg["To"] = to_email
    msg.set_content("\n".join(lines))

    logger.debug("Connecting to %s:%s (TLS=%s)", host, port, use_tls)
    with smtplib.SMTP(host, port, timeout=15) as smtp:
        smtp.ehlo()
        if use_tls:
            smtp.starttls()
            smtp.ehlo()
        smtp.login(user, password)
        smtp.send_message(msg)
    logger.info("Email %r sent to %s", subject, to_email)


def send_verification_email(*, to_email: str, display_name: str | None, token: str) -> None:
    link = f"{config.FRONTEND_URL}/auth/verify-email?token={token}"
    name = (display_name or "there").strip()
    _send(
        to_email=to_email,
        subject=f"Verify your {APP_NAME} email",
        lines=[
            f"Hi {name},",
            "",
            f"Welcome to {APP_NAME}. Please confirm your email address:",
            link,
            "",
            f"This link expires in {config.ACTION_TOKEN_EXPIRE_MINUTES} minutes.",
            "",
            "Best regards,",
            APP_NAME,
        ],
    )


def send_password_reset_email(*, to_email: str, display_name: str | None, token: str) -> None:
    link = f"{config.FRONTEND_URL}/auth/reset-password?token={token}"
    name = (display_name or "there").strip()
    _send(
        to_email=to_email,
        subject=f"Reset your {APP_NAME} password",
        lines=[
            f"Hi {name},",
            "",
            "We received a request to reset your password. Use the link below to choose a new one:",
            link,
            "",
            f"This link expires in {config.ACTION_TOKEN_EXPIRE_MINUTES} minutes.",
            "If you didn't request this, you can ignore this email.",
            "",
            "Best regards,",
            APP_NAME,
        ],
    )
