"""
Email notifications for settlement reminders.
"""
import html
import logging
import smtplib
from email.message import EmailMessage
from typing import Optional, Protocol, Tuple
from tripledger.core.config import settings
from tripledger.core.exceptions import DeliveryError

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Anything that can deliver a one-off HTML message."""

    def send(self, to_address: str, subject: str, html_body: str, bcc: Optional[str] = None) -> None:
        ...


class EmailNotifier:
    """SMTP notifier configured from settings."""

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: Optional[bool] = None,
        sender: Optional[str] = None,
        timeout: float = 10.0
    ):
        self.host = host if host is not None else settings.SMTP_HOST
        self.port = port if port is not None else settings.SMTP_PORT
        self.username = username if username is not None else settings.SMTP_USERNAME
        self.password = password if password is not None else settings.SMTP_PASSWORD
        self.use_tls = use_tls if use_tls is not None else settings.SMTP_USE_TLS
        self.sender = sender or settings.EMAIL_FROM or self.username
        self.timeout = timeout

    def send(self, to_address: str, subject: str, html_body: str, bcc: Optional[str] = None) -> None:
        """Send one message. Raises DeliveryError on any failure."""
        if not self.host or not self.sender:
            raise DeliveryError("Email service configuration missing")

        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to_address
        message["Subject"] = subject
        if bcc:
            # send_message delivers to Bcc addresses and strips the header
            message["Bcc"] = bcc
        message.set_content("This message requires an HTML capable mail client.")
        message.add_alternative(html_body, subtype="html")

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError(f"Failed to send email: {e}")

        logger.info(f"Sent '{subject}' to {to_address}")


def render_reminder(
    debtor_name: str,
    creditor_name: str,
    amount: str,
    initiated_by: str,
    trip_name: str
) -> Tuple[str, str]:
    """Build (subject, html_body) for a payment reminder."""
    subject = f"Payment Request: Settle {amount} with {creditor_name}"
    html_body = f"""
        <h2>Payment Request</h2>
        <p>Hello {html.escape(debtor_name)},</p>
        <p>You need to settle {html.escape(amount)} with {html.escape(creditor_name)}
        for the trip "{html.escape(trip_name)}".</p>
        <p>This request was initiated by {html.escape(initiated_by)}.</p>
        <p>Please make the payment at your earliest convenience.</p>
        <p>Thank you!</p>
    """
    return subject, html_body
