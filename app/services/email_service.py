"""Email service for sending notifications."""

import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from app.core.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    """Service for sending emails via SMTP."""

    def __init__(self):
        """Initialize email service with SMTP configuration."""
        self.smtp_host = settings.smtp_host
        self.smtp_port = settings.smtp_port
        self.smtp_user = settings.smtp_user
        self.smtp_password = settings.smtp_password
        self.from_email = settings.email_from or settings.smtp_user

    def _validate_config(self) -> bool:
        """Validate email configuration."""
        if not all([self.smtp_host, self.smtp_user, self.smtp_password]):
            logger.warning("Email service not configured properly")
            return False
        return True

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: str | None = None,
    ) -> bool:
        """Send an email via SMTP.

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML content of the email
            text_content: Plain text content (fallback)

        Returns:
            True if email sent successfully, False otherwise
        """
        if not self._validate_config():
            logger.error("Cannot send email - configuration invalid")
            return False

        try:
            msg = MIMEMultipart("alternative")
            msg["Subject"] = subject
            msg["From"] = self.from_email
            msg["To"] = to_email

            if text_content:
                msg.attach(MIMEText(text_content, "plain"))
            msg.attach(MIMEText(html_content, "html"))

            logger.info("Sending email to %s with subject: %s", to_email, subject)

            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                server.starttls()
                server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg)

            logger.info("Email sent successfully to %s", to_email)
            return True

        except smtplib.SMTPAuthenticationError as e:
            logger.error("SMTP authentication failed: %s", e)
            return False
        except smtplib.SMTPException as e:
            logger.error("SMTP error sending email: %s", e)
            return False
        except OSError as e:
            logger.error("Could not reach SMTP server: %s", e)
            return False

    def send_share_notification(
        self,
        to_email: str,
        actor_email: str,
        item_name: str,
        permission_level: str,
    ) -> bool:
        """Tell ``to_email`` that ``actor_email`` shared ``item_name`` with them.

        Returns:
            True if email sent successfully, False otherwise
        """
        subject = f"{actor_email} shared '{item_name}' with you"
        text_content = (
            f"Hi,\n\n{actor_email} has granted you {permission_level} access to '{item_name}'.\n\n"
            f"Open your drive to find it under \"Shared with me\".\n"
        )
        html_content = self._generate_share_html(actor_email, item_name, permission_level)
        return self.send_email(to_email, subject, html_content, text_content)

    def _generate_share_html(self, actor_email: str, item_name: str, permission_level: str) -> str:
        app_url = settings.allowed_origins_list[0] if settings.allowed_origins_list else "http://localhost:3000"
        return f"""
        <!DOCTYPE html>
        <html>
        <head><meta charset="UTF-8"><title>Item shared with you</title></head>
        <body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Arial, sans-serif; background-color: #f3f4f6;">
            <div style="max-width: 600px; margin: 0 auto; padding: 20px; background-color: white; border-radius: 12px;">
                <h1 style="color: #1f2937; font-size: 22px;">{html.escape(item_name)}</h1>
                <p style="color: #374151; font-size: 15px;">
                    <strong>{html.escape(actor_email)}</strong> gave you
                    <strong>{html.escape(permission_level)}</strong> access.
                </p>
                <a href="{app_url}/dashboard/shared"
                   style="display: inline-block; background-color: #2563eb; color: white; text-decoration: none; padding: 10px 24px; border-radius: 8px;">
                    Open shared items
                </a>
            </div>
        </body>
        </html>
        """


# Create singleton instance
email_service = EmailService()
