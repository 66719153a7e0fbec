"""Authentication dependencies for FastAPI"""

import logging
from typing import Optional

from authlib.jose.errors import InvalidTokenError
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from gatepass.auth.jwt_utils import jwt_utils
from gatepass.auth.models import User

# auto_error=False so a missing header is answered with 401, not 403
security = HTTPBearer(auto_error=False)

logger = logging.getLogger(__name__)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> User:
    """
    FastAPI dependency to extract and validate the manager from an Auth0 JWT

    Args:
        credentials: HTTP Bearer token credentials from Authorization header

    Returns:
        User with user ID extracted from valid Auth0 JWT token

    Raises:
        HTTPException: 401 if token is missing, invalid, or expired
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return await jwt_utils.extract_user(credentials.credentials)
    except InvalidTokenError as e:
        logger.info(f"Rejected bearer token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )
