"""
SMS Service for Car Rental
Sends verification codes via Twilio
"""
from typing import Optional

from fastapi import Request
from twilio.rest import Client
from twilio.base.exceptions import TwilioException

from app.config import settings
from app.core.logging_config import get_logger

logger = get_logger(__name__)


def normalize_phone(phone: str, country_code: Optional[str] = None) -> Optional[str]:
    """
    Convert a local mobile number to E.164.

    "09171234567" and "9171234567" both become "+639171234567" with the
    default +63 country code. Returns None when the number cannot be read.
    """
    country_code = country_code or settings.DEFAULT_COUNTRY_CODE
    digits = "".join(ch for ch in (phone or "") if ch.isdigit())
    if not digits:
        return None

    if phone.strip().startswith("+"):
        return f"+{digits}"
    if digits.startswith(country_code.lstrip("+")) and len(digits) > 10:
        return f"+{digits}"
    if len(digits) == 11 and digits.startswith("0"):
        return f"{country_code}{digits[1:]}"
    if len(digits) == 10:
        return f"{country_code}{digits}"
    return None


class SMSService:
    """
    SMS service wrapper for Twilio.

    Disabled cleanly when TWILIO_ENABLED is false or credentials are missing.
    """

    def __init__(self):
        self.enabled = settings.TWILIO_ENABLED
        self.account_sid = settings.TWILIO_ACCOUNT_SID
        self.auth_token = settings.TWILIO_AUTH_TOKEN
        self.phone_number = settings.TWILIO_PHONE_NUMBER
        self.client = None

        if self.enabled and not all([self.account_sid, self.auth_token, self.phone_number]):
            logger.warning("[sms_service] Twilio credentials incomplete, SMS disabled")
            self.enabled = False

        if self.enabled:
            self.client = Client(self.account_sid, self.auth_token)
            logger.info("[sms_service] Twilio SMS service initialized successfully")
        else:
            logger.info("[sms_service] SMS service is disabled in configuration")

    def send_sms(self, to_phone: str, message: str, max_length: int = 1600) -> bool:
        """
        Send SMS message to a phone number

        Returns:
            bool: True if sent successfully, False otherwise
        """
        if not self.enabled:
            logger.warning("[sms_service] SMS service is disabled, skipping send")
            return False

        normalized = normalize_phone(to_phone)
        if not normalized:
            logger.warning(f"[sms_service] Invalid phone format: {to_phone}")
            return False

        if len(message) > max_length:
            message = message[:max_length - 3] + "..."
            logger.warning(f"[sms_service] Message truncated to {max_length} characters")

        try:
            message_obj = self.client.messages.create(
                body=message,
                from_=self.phone_number,
                to=normalized
            )
        except TwilioException as e:
            logger.error(f"[sms_service] Failed to send SMS to {normalized[:8]}...: {e}")
            return False

        logger.info(
            f"[sms_service] SMS sent successfully to {normalized[:8]}... | "
            f"SID: {message_obj.sid} | Status: {message_obj.status}"
        )
        return True

    def send_verification_code(self, to_phone: str, code: str, ttl_minutes: int) -> bool:
        message = (
            f"Your {settings.APP_NAME} password reset code is {code}. "
            f"It expires in {ttl_minutes} minutes."
        )
        return self.send_sms(to_phone, message)


def get_sms_service(request: Request) -> SMSService:
    """SMS service built at startup"""
    return request.app.state.sms_service
