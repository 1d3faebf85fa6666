from fastapi import Depends, HTTPException, status
from typing import List

from app.core.logging_config import get_logger
from app.utils.response_utils import ResponseWrapper

from .token_validation import validate_bearer_token

logger = get_logger(__name__)


class PermissionChecker:
    """
    Route dependency requiring at least one of ``required_permissions``.

    Permissions are "module.action" strings expanded from the token's
    ``permissions`` claim. Returns the token data on success.
    """
    def __init__(self, required_permissions: List[str]):
        self.required_permissions = required_permissions

    async def __call__(self, user_data=Depends(validate_bearer_token())):
        user_permissions = []
        for p in user_data.get("permissions", []):
            module = p.get("module", "")
            actions = p.get("action", [])
            user_permissions.extend([f"{module}.{action}" for action in actions])

        if not any(p in user_permissions for p in self.required_permissions):
            logger.warning(
                f"Permission denied for user {user_data.get('user_id')} ({user_data.get('role')}). "
                f"Required: {self.required_permissions}"
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=ResponseWrapper.error(
                    message="Insufficient permissions",
                    error_code="FORBIDDEN",
                ),
            )

        return user_data
