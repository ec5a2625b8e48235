from typing import Optional
import logging

from jose import JWTError, jwt

from config import ApplicationConfig

logger = logging.getLogger(__name__)


def verify_jwt(token: str) -> Optional[dict]:
    """
    Verify and decode the session JWT issued by the CRM

    Args:
        token: JWT token string

    Returns:
        Decoded payload dict with user_id, or None if invalid
    """
    try:
        return jwt.decode(token, ApplicationConfig.JWT_SECRET, algorithms=["HS256"])
    except JWTError as e:
        logger.warning(f"JWT verification failed: {type(e).__name__} - {str(e)}")
        return None
