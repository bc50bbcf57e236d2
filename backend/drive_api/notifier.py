"""
Email delivery of scrape results.

Failures are logged and reported in the returned NotificationResult;
they never propagate into the scrape run.
"""

from dataclasses import dataclass
from datetime import datetime
from email.message import EmailMessage
from pathlib import Path
from typing import List, Optional
import logging
import smtplib

from .config import Settings

logger = logging.getLogger(__name__)

XLSX_MAINTYPE = "application"
XLSX_SUBTYPE = "vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@dataclass
class NotificationResult:
    success: bool
    message: str


def _timestamp() -> str:
    return datetime.now().strftime("%m/%d/%Y, %I:%M:%S %p")


def _send(message: EmailMessage, settings: Settings):
    with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as smtp:
        smtp.starttls()
        if settings.email_user:
            smtp.login(settings.email_user, settings.email_pass)
        smtp.send_message(message)


def build_message(
    subject: str,
    body: str,
    recipients: List[str],
    sender: str,
    attachment: Optional[Path] = None,
    file_name: Optional[str] = None,
) -> EmailMessage:
    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = sender
    message["To"] = ", ".join(recipients)
    message.set_content(body)

    if attachment is not None:
        message.add_attachment(
            Path(attachment).read_bytes(),
            maintype=XLSX_MAINTYPE,
            subtype=XLSX_SUBTYPE,
            filename=file_name or Path(attachment).name,
        )
    return message


def send_email_with_attachment(
    file_path: Path,
    file_name: str,
    recipients: List[str],
    settings: Settings,
) -> NotificationResult:
    """Send the generated spreadsheet to every recipient."""
    if not recipients:
        logger.warning("No recipients configured - skipping email")
        return NotificationResult(False, "No recipients configured")

    try:
        message = build_message(
            subject=f"Yango Drive Data Scrape - {_timestamp()}",
            body="Attached is the scraped Yango Drive data in Excel format.",
            recipients=recipients,
            sender=settings.email_user,
            attachment=file_path,
            file_name=file_name,
        )
        _send(message, settings)
        logger.info(f"Email sent with attachment {file_name} to {', '.join(recipients)}")
        return NotificationResult(True, "Email sent successfully")
    except Exception as e:
        logger.error(f"Error sending email: {e}")
        return NotificationResult(False, f"Failed to send email: {e}")


def send_failure_email(reason: str, recipients: List[str], settings: Settings) -> NotificationResult:
    """Tell recipients that a run produced no data."""
    if not recipients:
        logger.warning("No recipients configured - skipping failure email")
        return NotificationResult(False, "No recipients configured")

    try:
        message = build_message(
            subject=f"Car Data Scrape Failed - {_timestamp()}",
            body=f"Scraping failed with message: {reason}",
            recipients=recipients,
            sender=settings.email_user,
        )
        _send(message, settings)
        return NotificationResult(True, "Failure email sent")
    except Exception as e:
        logger.error(f"Error sending failure email: {e}")
        return NotificationResult(False, f"Failed to send failure email: {e}")
