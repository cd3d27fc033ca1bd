"""
Email delivery through SendGrid plus the moderation notice templates.
"""

from html import escape
from typing import Optional
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail
from starlette.concurrency import run_in_threadpool
from app.config import settings
import logging

logger = logging.getLogger(__name__)

APPROVAL_SUBJECT = "تمت الموافقة على عقارك"
DENIAL_SUBJECT = "تحديث بخصوص عقارك"
DEFAULT_DENIAL_REASON = "غير محدد"


class EmailService:
    """
    Sends HTML mail. ``send`` never raises; it reports success as a bool so
    callers can log failures without aborting their own work.
    """

    def __init__(self, api_key: Optional[str] = None, sender: Optional[str] = None):
        self.api_key = api_key or settings.sendgrid_api_key
        self.sender = sender or settings.mail_from
        self._client = SendGridAPIClient(self.api_key) if self.api_key else None

    async def send(self, to: str, subject: str, html: str) -> bool:
        if self._client is None:
            logger.warning(f"Email to {to} not sent: SendGrid is not configured")
            return False

        message = Mail(
            from_email=self.sender,
            to_emails=to,
            subject=subject,
            html_content=html
        )

        try:
            response = await run_in_threadpool(self._client.send, message)
        except Exception as e:
            logger.error(f"Failed to send email to {to}: {e}")
            return False

        if response.status_code >= 400:
            logger.error(f"SendGrid rejected email to {to}: status {response.status_code}")
            return False

        logger.info(f"Email '{subject}' sent to {to}")
        return True


def _layout(heading: str, accent: str, body: str) -> str:
    return (
        '<div dir="rtl" style="font-family: Tahoma, Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        f'<div style="background: {accent}; color: #ffffff; padding: 24px; text-align: center;">'
        f'<h1 style="margin: 0; font-size: 24px;">{heading}</h1>'
        '<p style="margin: 8px 0 0;">منصة سكنلي</p>'
        '</div>'
        f'<div style="padding: 24px; color: #2c3e50; line-height: 1.6;">{body}</div>'
        '</div>'
    )


def approval_email(contact_name: Optional[str], title: str) -> str:
    """HTML body telling the owner their listing is published."""
    link = f"{settings.client_url}"
    body = (
        f"<p>مرحباً <strong>{escape(contact_name or '')}</strong>،</p>"
        "<p>تمت الموافقة على عقارك بعنوان:</p>"
        f"<h3>{escape(title)}</h3>"
        "<p>عقارك الآن منشور ومتاح للعرض على المنصة.</p>"
        f'<p><a href="{escape(link)}">زيارة سكنلي</a></p>'
    )
    return _layout(APPROVAL_SUBJECT, "#667eea", body)


def denial_email(contact_name: Optional[str], title: str, reason: Optional[str]) -> str:
    """HTML body telling the owner their listing was rejected and why."""
    link = f"{settings.client_url}/uploadProperty"
    body = (
        f"<p>مرحباً <strong>{escape(contact_name or '')}</strong>،</p>"
        "<p>نعتذر، لم يتم قبول عقارك بعنوان:</p>"
        f"<h3>{escape(title)}</h3>"
        f"<p><strong>سبب الرفض:</strong> {escape(reason or DEFAULT_DENIAL_REASON)}</p>"
        "<p>يمكنك تعديل البيانات وإعادة رفع العقار مرة أخرى.</p>"
        f'<p><a href="{escape(link)}">إعادة رفع العقار</a></p>'
    )
    return _layout(DENIAL_SUBJECT, "#ee5a52", body)
