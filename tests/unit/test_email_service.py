"""Unit tests for EmailService."""

import smtplib
from unittest.mock import MagicMock, patch

import pytest

from app.services.email_service import EmailService


@pytest.fixture
def configured_service():
    service = EmailService()
    service.smtp_host = "smtp.example.com"
    service.smtp_port = 587
    service.smtp_user = "mailer@example.com"
    service.smtp_password = "secret"
    service.from_email = "drive@example.com"
    return service


class TestEmailService:
    """Test cases for EmailService."""

    def test_unconfigured_service_does_not_send(self):
        service = EmailService()
        service.smtp_host = None

        with patch("app.services.email_service.smtplib.SMTP") as mock_smtp:
            assert service.send_email("bob@example.com", "Hi", "<p>Hi</p>") is False
        mock_smtp.assert_not_called()

    def test_send_email(self, configured_service):
        with patch("app.services.email_service.smtplib.SMTP") as mock_smtp:
            server = mock_smtp.return_value.__enter__.return_value

            assert configured_service.send_email("bob@example.com", "Hi", "<p>Hi</p>", "Hi") is True

        mock_smtp.assert_called_once_with("smtp.example.com", 587)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("mailer@example.com", "secret")
        message = server.send_message.call_args[0][0]
        assert message["To"] == "bob@example.com"
        assert message["From"] == "drive@example.com"

    def test_authentication_failure(self, configured_service):
        with patch("app.services.email_service.smtplib.SMTP") as mock_smtp:
            server = mock_smtp.return_value.__enter__.return_value
            server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")

            assert configured_service.send_email("bob@example.com", "Hi", "<p>Hi</p>") is False

    def test_unreachable_server(self, configured_service):
        with patch("app.services.email_service.smtplib.SMTP", side_effect=OSError("refused")):
            assert configured_service.send_email("bob@example.com", "Hi", "<p>Hi</p>") is False

    def test_share_notification_content(self, configured_service):
        configured_service.send_email = MagicMock(return_value=True)

        assert configured_service.send_share_notification(
            "bob@example.com", "alice@example.com", "<Docs>", "VIEW"
        ) is True

        to_email, subject, html_content, text_content = configured_service.send_email.call_args[0]
        assert to_email == "bob@example.com"
        assert subject == "alice@example.com shared '<Docs>' with you"
        assert "&lt;Docs&gt;" in html_content
        assert "VIEW access" in text_content
