"""Outgoing email over SMTP."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

from flask import current_app

logger = logging.getLogger(__name__)

VERIFICATION_HTML = """\
<div style="max-width: 600px; margin: auto; padding: 20px; font-family: Arial, sans-serif;">
  <h1 style="text-align: center;">Email verification</h1>
  <h2 style="text-align: center;">Hi, {username}</h2>
  <p style="text-align: center;">Thanks for signing up to <strong>Rentari</strong>!
     Enter this code on the website to finish your registration:</p>
  <p style="text-align: center; font-size: 28px; font-weight: bold; letter-spacing: 5px;">{code}</p>
  <p style="text-align: center; color: #666;">The code is valid until {expires} ({tz}).
     If you did not ask for it, ignore this email.</p>
</div>
"""


class MailService:
    """Builds and sends messages using the SMTP_* settings of the current app."""

    @staticmethod
    def _build_message(to: str, subject: str, text: str, html: str) -> EmailMessage:
        cfg = current_app.config
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = cfg["SMTP_FROM_EMAIL"] or cfg["SMTP_USERNAME"]
        message["To"] = to
        message.set_content(text)
        message.add_alternative(html, subtype="html")
        return message

    @staticmethod
    def send(to: str, subject: str, text: str, html: str) -> bool:
        """
        Deliver one message. Returns False without sending when SMTP_HOST
        is not configured (development); raises RuntimeError on SMTP failures.
        """
        cfg = current_app.config
        if not cfg["SMTP_HOST"]:
            logger.info("SMTP not configured; skipping email '%s' to %s", subject, to)
            return False

        message = MailService._build_message(to, subject, text, html)
        try:
            if cfg["SMTP_USE_SSL"]:
                client = smtplib.SMTP_SSL(cfg["SMTP_HOST"], cfg["SMTP_PORT"], timeout=cfg["SMTP_TIMEOUT"])
            else:
                client = smtplib.SMTP(cfg["SMTP_HOST"], cfg["SMTP_PORT"], timeout=cfg["SMTP_TIMEOUT"])
            with client:
                if not cfg["SMTP_USE_SSL"] and cfg["SMTP_USE_TLS"]:
                    client.starttls()
                if cfg["SMTP_USERNAME"] and cfg["SMTP_PASSWORD"]:
                    client.login(cfg["SMTP_USERNAME"], cfg["SMTP_PASSWORD"])
                client.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:  # pragma: no cover - network dependent
            raise RuntimeError("Failed to deliver email") from exc
        logger.info("Email '%s' sent to %s", subject, to)
        return True

    @staticmethod
    def send_verification(username: str, email: str, code: str, expires: str, tz: str) -> bool:
        text = f"Hi {username}, your Rentari verification code is {code} (valid until {expires} {tz})."
        html = VERIFICATION_HTML.format(username=username, code=code, expires=expires, tz=tz)
        return MailService.send(email, "Please verify your account", text, html)
