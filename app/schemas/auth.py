from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, Literal, Dict, Any


class LoginRequest(BaseModel):
    """Login with email, username or contact number"""
    username: str = Field(..., min_length=1, description="Email, username or contact number")
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_type: str
    user: Dict[str, Any]

    model_config = ConfigDict(from_attributes=True)


class ForgotPasswordRequest(BaseModel):
    identifier: str = Field(..., min_length=1, description="Email, username or contact number")
    method: Literal["email", "sms"] = "email"


class VerifyResetCodeRequest(BaseModel):
    identifier: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1, max_length=10)


class ResetPasswordRequest(BaseModel):
    reset_token: str = Field(..., alias="resetToken")
    new_password: str = Field(..., alias="newPassword")
    confirm_password: str = Field(..., alias="confirmPassword")

    model_config = ConfigDict(populate_by_name=True)
