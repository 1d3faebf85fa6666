"""
Forgot-password workflow: verification codes and reset tokens.

    issue_code -> verify_code -> reset_password

Rate limits, lifetimes and the development conveniences (echoing codes,
tolerating delivery failures, wiping state) all come from the injected
``ResetPolicy``.
"""
import hmac
import secrets
from datetime import datetime
from typing import Dict, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from app.config import ResetPolicy, settings
from app.core.email_service import EmailService, get_email_service
from app.core.exceptions import (
    AttemptsExceededError,
    DeliveryError,
    ExpiredError,
    ForbiddenError,
    InvalidCodeError,
    InvalidTokenError,
    NotFoundError,
    RateLimitedError,
    ValidationError,
)
from app.core.logging_config import get_logger
from app.crud.users import find_account, get_account
from app.database.session import get_db
from app.models.verification import PasswordResetToken, VerificationCode
from app.services.sms_service import SMSService, get_sms_service
from common_utils import utc_now
from common_utils.auth.utils import hash_password

logger = get_logger(__name__)

PASSWORD_RESET = "password_reset"


def get_reset_policy() -> ResetPolicy:
    return settings.reset_policy


def _mask_email(email: str) -> str:
    local, _, domain = email.partition("@")
    if len(local) <= 2:
        return f"{local[:1]}***@{domain}"
    return f"{local[:2]}***@{domain}"


def _mask_phone(phone: str) -> str:
    return f"{'*' * max(len(phone) - 4, 0)}{phone[-4:]}"


class PasswordResetService:
    def __init__(
        self,
        db: Session,
        policy: ResetPolicy,
        email_service: Optional[EmailService] = None,
        sms_service: Optional[SMSService] = None,
    ):
        self.db = db
        self.policy = policy
        self.email_service = email_service
        self.sms_service = sms_service

    def _resolve(self, identifier: str):
        found = find_account(self.db, identifier)
        if found is None:
            raise NotFoundError(
                "No account found with that email, username or contact number",
                error_code="USER_NOT_FOUND",
            )
        return found

    def _check_rate_limit(self, email: str, now: datetime) -> None:
        window_start = now - self.policy.rate_limit_window
        recent = (
            self.db.query(VerificationCode)
            .filter(
                VerificationCode.identifier == email,
                VerificationCode.purpose == PASSWORD_RESET,
                VerificationCode.created_at >= window_start,
            )
            .order_by(VerificationCode.created_at.asc())
            .all()
        )
        if len(recent) >= self.policy.max_requests:
            reopens_at = recent[0].created_at + self.policy.rate_limit_window
            retry_after = max(int((reopens_at - now).total_seconds()), 1)
            logger.warning(f"Reset code rate limit hit for {_mask_email(email)}")
            raise RateLimitedError(
                "Too many reset requests. Please try again later.",
                details={"retry_after": retry_after},
            )

    def _deliver(self, method: str, account, code: str) -> bool:
        ttl_minutes = int(self.policy.code_ttl.total_seconds() // 60)
        if method == "sms":
            if self.sms_service is None:
                return False
            return self.sms_service.send_verification_code(account.contact_no, code, ttl_minutes)
        if self.email_service is None:
            return False
        return self.email_service.send_verification_code_email(
            account.email, account.first_name, code, ttl_minutes
        )

    def issue_code(self, identifier: str, method: str = "email", now: datetime = None) -> Dict:
        now = now or utc_now()
        user_type, account, user_id = self._resolve(identifier)

        if method == "sms" and not account.contact_no:
            raise ValidationError("No contact number on file for this account")

        self._check_rate_limit(account.email, now)

        code = f"{secrets.randbelow(10 ** 6):06d}"
        self.db.add(VerificationCode(
            user_id=user_id,
            user_type=user_type,
            identifier=account.email,
            code=code,
            type=method,
            purpose=PASSWORD_RESET,
            attempts=0,
            max_attempts=self.policy.code_max_attempts,
            verified=False,
            expires_at=now + self.policy.code_ttl,
            created_at=now,
        ))
        self.db.commit()
        logger.info(f"Reset code issued for {user_type} {user_id} via {method}")

        if not self._deliver(method, account, code):
            if not self.policy.swallow_delivery_errors:
                raise DeliveryError(f"Failed to send the verification code by {method}")
            logger.warning(f"Reset code delivery by {method} failed for {user_type} {user_id}; continuing")

        result = {
            "method": method,
            "destination": _mask_phone(account.contact_no) if method == "sms" else _mask_email(account.email),
            "expires_in_minutes": int(self.policy.code_ttl.total_seconds() // 60),
        }
        if self.policy.expose_codes:
            result["code"] = code
        return result

    def verify_code(self, identifier: str, code: str, now: datetime = None) -> Dict:
        now = now or utc_now()
        user_type, account, user_id = self._resolve(identifier)

        record = (
            self.db.query(VerificationCode)
            .filter(
                VerificationCode.identifier == account.email,
                VerificationCode.purpose == PASSWORD_RESET,
                VerificationCode.verified.is_(False),
            )
            .order_by(VerificationCode.created_at.desc(), VerificationCode.id.desc())
            .first()
        )
        if record is None:
            raise ValidationError("No active verification code. Please request a new one.")

        if now > record.expires_at:
            raise ExpiredError("Verification code has expired. Please request a new one.")

        if record.attempts >= record.max_attempts:
            raise AttemptsExceededError("Too many failed attempts. Please request a new code.")

        record.attempts += 1
        self.db.commit()

        if not hmac.compare_digest(record.code, (code or "").strip()):
            attempts_left = max(record.max_attempts - record.attempts, 0)
            logger.info(f"Wrong reset code for {user_type} {user_id}, {attempts_left} attempts left")
            raise InvalidCodeError(
                "Invalid verification code",
                details={"attempts_left": attempts_left},
            )

        record.verified = True
        token = secrets.token_urlsafe(32)
        self.db.add(PasswordResetToken(
            user_id=user_id,
            user_type=user_type,
            email=account.email,
            token=token,
            used=False,
            expires_at=now + self.policy.reset_token_ttl,
            created_at=now,
        ))
        self.db.commit()
        logger.info(f"Reset code verified for {user_type} {user_id}")

        return {
            "reset_token": token,
            "expires_in_minutes": int(self.policy.reset_token_ttl.total_seconds() // 60),
        }

    def reset_password(
        self, token: str, new_password: str, confirm_password: str, now: datetime = None
    ) -> None:
        now = now or utc_now()
        if new_password != confirm_password:
            raise ValidationError("Passwords do not match")
        if len(new_password or "") < settings.MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {settings.MIN_PASSWORD_LENGTH} characters long"
            )

        record = (
            self.db.query(PasswordResetToken)
            .filter(PasswordResetToken.token == token)
            .first()
        )
        if record is None or record.used or now > record.expires_at:
            raise InvalidTokenError("Invalid or expired reset token")

        account = get_account(self.db, record.user_type, record.user_id)
        if account is None:
            raise NotFoundError("Account no longer exists", error_code="USER_NOT_FOUND")

        account.password = hash_password(new_password)
        record.used = True
        (
            self.db.query(VerificationCode)
            .filter(
                VerificationCode.identifier == record.email,
                VerificationCode.purpose == PASSWORD_RESET,
                VerificationCode.verified.is_(False),
            )
            .update({VerificationCode.verified: True}, synchronize_session=False)
        )
        self.db.commit()
        logger.info(f"Password reset for {record.user_type} {record.user_id}")

    def clear_verification_state(self) -> Dict[str, int]:
        if not self.policy.allow_clear:
            raise ForbiddenError("Clearing verification data is disabled in this environment")

        codes = self.db.query(VerificationCode).delete(synchronize_session=False)
        tokens = self.db.query(PasswordResetToken).delete(synchronize_session=False)
        self.db.commit()
        logger.warning(f"Cleared {codes} verification codes and {tokens} reset tokens")
        return {"verification_codes": codes, "reset_tokens": tokens}


def get_password_reset_service(
    db: Session = Depends(get_db),
    policy: ResetPolicy = Depends(get_reset_policy),
    email_service: EmailService = Depends(get_email_service),
    sms_service: SMSService = Depends(get_sms_service),
) -> PasswordResetService:
    return PasswordResetService(db, policy, email_service, sms_service)
