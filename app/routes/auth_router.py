from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.crud.users import find_account
from app.database.session import get_db
from app.models.admin import Admin
from app.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    TokenResponse,
    VerifyResetCodeRequest,
)
from app.services.password_reset_service import PasswordResetService, get_password_reset_service
from common_utils.auth.utils import create_access_token, verify_password
from app.core.logging_config import get_logger
from app.utils.response_utils import ResponseWrapper, handle_route_error

logger = get_logger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"]
)

PROFILE_FIELDS = ("email", "username", "first_name", "last_name", "contact_no")


def _profile(user_type: str, account, user_id: int) -> dict:
    profile = {f"{user_type}_id": user_id, "user_type": user_type}
    profile.update({field: getattr(account, field, None) for field in PROFILE_FIELDS})
    if isinstance(account, Admin):
        profile["role"] = account.role.value
    return profile


def _invalid_credentials() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=ResponseWrapper.error(
            message="Incorrect username or password",
            error_code="INVALID_CREDENTIALS",
        ),
    )


@router.post("/login")
def login(form_data: LoginRequest, db: Session = Depends(get_db)):
    """Login for customers, admins/staff and drivers"""
    logger.info(f"Login attempt for: {form_data.username}")
    try:
        found = find_account(db, form_data.username)
        if found is None:
            logger.warning(f"Login failed - account not found: {form_data.username}")
            raise _invalid_credentials()

        user_type, account, user_id = found
        if not verify_password(form_data.password, account.password):
            logger.warning(f"Login failed - invalid password for {user_type} {user_id}")
            raise _invalid_credentials()

        if not account.is_active:
            logger.warning(f"Login failed - inactive {user_type} {user_id}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=ResponseWrapper.error(
                    message="Account is inactive",
                    error_code="ACCOUNT_INACTIVE",
                ),
            )

        role = account.role.value if isinstance(account, Admin) else user_type
        access_token = create_access_token(user_id=str(user_id), user_type=user_type, role=role)
        logger.info(f"Login successful for {user_type} {user_id} ({role})")

        response = TokenResponse(
            access_token=access_token,
            user_type=user_type,
            user=_profile(user_type, account, user_id),
        )
        return ResponseWrapper.success(data=response.model_dump(), message="Login successful")
    except Exception as e:
        raise handle_route_error(db, e, "log in")


@router.post("/forgot-password", status_code=status.HTTP_200_OK)
def forgot_password(
    request: ForgotPasswordRequest,
    service: PasswordResetService = Depends(get_password_reset_service),
):
    try:
        result = service.issue_code(request.identifier, request.method)
        return ResponseWrapper.success(
            data=result,
            message=f"Verification code sent via {request.method}",
        )
    except Exception as e:
        raise handle_route_error(service.db, e, "issue reset code")


@router.post("/verify-reset-code", status_code=status.HTTP_200_OK)
def verify_reset_code(
    request: VerifyResetCodeRequest,
    service: PasswordResetService = Depends(get_password_reset_service),
):
    try:
        result = service.verify_code(request.identifier, request.code)
        return ResponseWrapper.success(data=result, message="Verification code accepted")
    except Exception as e:
        raise handle_route_error(service.db, e, "verify reset code")


@router.post("/reset-password", status_code=status.HTTP_200_OK)
def reset_password(
    request: ResetPasswordRequest,
    service: PasswordResetService = Depends(get_password_reset_service),
):
    try:
        service.reset_password(request.reset_token, request.new_password, request.confirm_password)
        return ResponseWrapper.success(message="Password has been reset successfully")
    except Exception as e:
        raise handle_route_error(service.db, e, "reset password")


@router.delete("/verification-codes", status_code=status.HTTP_200_OK)
def clear_verification_codes(
    service: PasswordResetService = Depends(get_password_reset_service),
):
    """Wipe all reset codes and tokens; only enabled outside production"""
    try:
        counts = service.clear_verification_state()
        return ResponseWrapper.success(data=counts, message="Verification data cleared")
    except Exception as e:
        raise handle_route_error(service.db, e, "clear verification data")
