from typing import Dict

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.core.logging_config import get_logger
from app.utils.response_utils import ResponseWrapper
from common_utils.auth.utils import decode_token

logger = get_logger(__name__)

security = HTTPBearer(auto_error=False)


def _unauthorized(message: str, error_code: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=ResponseWrapper.error(message=message, error_code=error_code),
        headers={"WWW-Authenticate": "Bearer"},
    )


def validate_bearer_token():
    async def get_token_data(
        credentials: HTTPAuthorizationCredentials = Depends(security),
    ) -> Dict:
        if credentials is None or not credentials.credentials:
            raise _unauthorized("Authentication required", "AUTH_REQUIRED")

        try:
            payload = decode_token(credentials.credentials)
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired access token")
            raise _unauthorized("Session expired, please log in again", "TOKEN_EXPIRED")
        except jwt.PyJWTError as e:
            logger.error(f"JWT validation error: {str(e)}")
            raise _unauthorized("Invalid authentication token", "INVALID_TOKEN")

        user_id = payload.get("user_id")
        if not user_id or payload.get("token_type") != "access":
            raise _unauthorized("Invalid authentication token", "INVALID_TOKEN")

        return {
            "user_id": int(user_id),
            "user_type": payload.get("user_type"),
            "role": payload.get("role"),
            "permissions": payload.get("permissions", []),
        }

    return get_token_data
