import smtplib
import ssl
import time
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional, List, Dict, Any, Union
from contextlib import contextmanager

from fastapi import Request

from app.config import settings
from app.core.logging_config import get_logger

logger = get_logger(__name__)


class EmailService:
    """SMTP email sender for verification codes and booking notices"""

    def __init__(self):
        self.smtp_server = settings.SMTP_SERVER
        self.smtp_port = settings.SMTP_PORT
        self.smtp_username = settings.SMTP_USERNAME
        self.smtp_password = settings.SMTP_PASSWORD
        self.smtp_use_tls = settings.SMTP_USE_TLS
        self.smtp_use_ssl = settings.SMTP_USE_SSL
        self.app_name = settings.APP_NAME
        self.email_enabled = settings.EMAIL_ENABLED
        self.retry_attempts = max(settings.EMAIL_RETRY_ATTEMPTS, 1)
        self.retry_delay = settings.EMAIL_RETRY_DELAY

        self.sender_email = settings.SENDER_EMAIL
        self.sender_name = settings.SENDER_NAME
        self.support_email = settings.SUPPORT_EMAIL

        self.is_configured = self._validate_config()

        self._emails_sent = 0
        self._emails_failed = 0

    def _validate_config(self) -> bool:
        """Validate SMTP configuration"""
        if not self.email_enabled:
            logger.info("Email service is disabled by configuration")
            return False

        if not all([self.smtp_server, self.smtp_port, self.smtp_username,
                    self.smtp_password, self.sender_email]):
            logger.warning("SMTP configuration incomplete. Email notifications will be disabled.")
            return False

        logger.info(f"Email service configured with {self.smtp_server}:{self.smtp_port} using sender: {self.sender_email}")
        return True

    @contextmanager
    def _create_smtp_connection(self):
        """Create and return SMTP connection"""
        server = None
        try:
            if self.smtp_use_ssl:
                context = ssl.create_default_context()
                server = smtplib.SMTP_SSL(self.smtp_server, self.smtp_port, context=context)
            else:
                server = smtplib.SMTP(self.smtp_server, self.smtp_port)
                if self.smtp_use_tls:
                    server.starttls()

            server.login(self.smtp_username, self.smtp_password)
            yield server

        except smtplib.SMTPAuthenticationError as e:
            logger.error(f"SMTP authentication failed: {str(e)}")
            raise
        except smtplib.SMTPException as e:
            logger.error(f"SMTP error: {str(e)}")
            raise
        finally:
            if server:
                try:
                    server.quit()
                except smtplib.SMTPException:
                    logger.debug("SMTP connection already closed")

    def _create_message(
        self,
        to_emails: List[str],
        subject: str,
        html_content: Optional[str] = None,
        text_content: Optional[str] = None,
    ) -> MIMEMultipart:
        msg = MIMEMultipart('alternative')
        msg['Subject'] = subject
        msg['From'] = f"{self.sender_name} <{self.sender_email}>"
        msg['To'] = ', '.join(to_emails)
        msg['Reply-To'] = self.support_email or self.sender_email

        if text_content:
            msg.attach(MIMEText(text_content, 'plain', 'utf-8'))
        if html_content:
            msg.attach(MIMEText(html_content, 'html', 'utf-8'))

        return msg

    def send_email(
        self,
        to_emails: Union[str, List[str]],
        subject: str,
        html_content: Optional[str] = None,
        text_content: Optional[str] = None,
    ) -> bool:
        """
        Send an email, retrying on SMTP/socket failures.

        Returns:
            bool: True if the email was sent, False otherwise
        """
        if not self.is_configured:
            logger.error("Email service not configured. Cannot send email.")
            return False

        if isinstance(to_emails, str):
            to_emails = [to_emails]

        if not to_emails or not subject:
            logger.error("to_emails and subject are required")
            return False

        if not html_content and not text_content:
            logger.error("Either html_content or text_content is required")
            return False

        for attempt in range(self.retry_attempts):
            try:
                msg = self._create_message(to_emails, subject, html_content, text_content)
                with self._create_smtp_connection() as server:
                    server.send_message(msg, to_addrs=to_emails)

                self._emails_sent += 1
                logger.info(f"Email sent successfully to {', '.join(to_emails)} - Subject: {subject}")
                return True

            except (smtplib.SMTPException, OSError) as e:
                logger.warning(f"Email send attempt {attempt + 1}/{self.retry_attempts} failed: {str(e)}")
                if attempt < self.retry_attempts - 1:
                    time.sleep(self.retry_delay)

        self._emails_failed += 1
        logger.error(f"Failed to send email to {', '.join(to_emails)} after {self.retry_attempts} attempts")
        return False

    def get_email_stats(self) -> Dict[str, int]:
        return {
            'emails_sent': self._emails_sent,
            'emails_failed': self._emails_failed,
        }

    def send_verification_code_email(self, user_email: str, user_name: str, code: str, ttl_minutes: int) -> bool:
        """Send a password reset verification code"""
        html_content = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
            <h2 style="color: #c0392b;">Password Reset Code</h2>
            <p>Hello {user_name},</p>
            <p>Use the code below to reset your {self.app_name} password:</p>
            <div style="font-size: 32px; letter-spacing: 8px; font-weight: bold; text-align: center;
                        background-color: #f9f9f9; padding: 20px; border-radius: 5px; margin: 20px 0;">
                {code}
            </div>
            <p>This code expires in {ttl_minutes} minutes. If you did not request a reset, ignore this email.</p>
            <p>Best regards,<br>The {self.app_name} Team</p>
        </div>
        """
        text_content = (
            f"Hello {user_name},\n\nYour {self.app_name} password reset code is {code}. "
            f"It expires in {ttl_minutes} minutes."
        )

        return self.send_email(
            to_emails=user_email,
            subject=f"{self.app_name} Password Reset Code",
            html_content=html_content,
            text_content=text_content,
        )

    def send_booking_notice_email(self, user_email: str, booking_data: Dict[str, Any], headline: str) -> bool:
        """Send a booking status notice (cancellation approved, extension approved, ...)"""
        rows = "".join(
            f"<p><strong>{label}:</strong> {booking_data.get(key)}</p>"
            for label, key in (
                ("Booking", "booking_id"),
                ("Car", "car"),
                ("Start date", "start_date"),
                ("End date", "end_date"),
                ("Total amount", "total_amount"),
                ("Balance", "balance"),
            )
            if booking_data.get(key) is not None
        )
        html_content = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2 style="color: #c0392b;">{headline}</h2>
            <p>Hello {booking_data.get('customer_name', '')},</p>
            <div style="background-color: #f9f9f9; padding: 20px; border-radius: 5px; margin: 20px 0;">
                {rows}
            </div>
            <p>For any questions, contact us at <a href="mailto:{self.support_email}">{self.support_email}</a></p>
            <p>Best regards,<br>The {self.app_name} Team</p>
        </div>
        """

        return self.send_email(
            to_emails=user_email,
            subject=f"{headline} - Booking #{booking_data.get('booking_id')}",
            html_content=html_content,
        )

    def send_waitlist_notice_email(self, user_email: str, customer_name: str, car: str, dates: Optional[str]) -> bool:
        when = f" for {dates}" if dates else ""
        html_content = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <h2 style="color: #27ae60;">Your Waitlisted Car Is Available</h2>
            <p>Hello {customer_name},</p>
            <p>The {car} you are waiting for is now available{when}. Book it soon; other customers
            may book it first.</p>
            <p>For any questions, contact us at <a href="mailto:{self.support_email}">{self.support_email}</a></p>
            <p>Best regards,<br>The {self.app_name} Team</p>
        </div>
        """

        return self.send_email(
            to_emails=user_email,
            subject=f"{car} is now available - {self.app_name}",
            html_content=html_content,
        )


def get_email_service(request: Request) -> EmailService:
    """Email service built at startup"""
    return request.app.state.email_service
