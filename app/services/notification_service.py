"""Parent alert delivery by email (Resend).

To send to any recipient, verify a domain at resend.com/domains and set
EMAIL_FROM to an address at that domain.
"""

import html
import logging

from app.config import settings

logger = logging.getLogger(__name__)


def _should_skip_email(to_email: str) -> bool:
    """Skip sending in test env or to test domains (Resend sandbox restricts recipients)."""
    if settings.ENVIRONMENT == "test":
        return True
    test_domains = ("@test.com", "@test.example.com", "@resend.dev")
    return any(to_email.lower().endswith(d) for d in test_domains)


def send_alert_email(to_email: str, first_name: str, title: str, message: str) -> bool:
    """
    Email a parent about an alert on one of their children.
    Returns True if sent, False if skipped (no API key) or failed.
    The stored alert is unaffected either way.
    """
    if not settings.RESEND_API_KEY:
        logger.info("Email skipped (RESEND_API_KEY not set): alert '%s' to %s", title, to_email)
        return False
    if _should_skip_email(to_email):
        logger.info("Email skipped (test env or test domain): alert '%s' to %s", title, to_email)
        return True

    safe_title = html.escape(title)
    body = f"""
<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{safe_title}</title></head>
<body style="font-family: sans-serif; line-height: 1.6; color: #333; max-width: 560px; margin: 0 auto; padding: 20px;">
  <h2 style="color: #b91c1c;">{safe_title}</h2>
  <p>Hi {html.escape(first_name or "")},</p>
  <p>{html.escape(message)}</p>
  <p style="margin: 24px 0;">
    <a href="{settings.FRONTEND_ALERTS_URL}" style="background: #4f46e5; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px; display: inline-block;">Review activity</a>
  </p>
  <hr style="border: none; border-top: 1px solid #e2e8f0; margin: 24px 0;">
  <p style="color: #94a3b8; font-size: 12px;">{settings.APP_NAME}</p>
</body>
</html>
"""

    try:
        import resend

        resend.api_key = settings.RESEND_API_KEY
        resend.Emails.send(
            {
                "from": settings.EMAIL_FROM,
                "to": [to_email],
                "subject": title,
                "html": body,
            }
        )
        logger.info("Alert email sent to %s", to_email)
        return True
    except Exception as e:
        logger.exception("Failed to send alert email to %s: %s", to_email, e)
        return False
