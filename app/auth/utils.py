import logging
import os
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt

logger = logging.getLogger(__name__)

DEFAULT_ALGORITHM = "HS256"


def jwt_settings():
    """ Shared secret and algorithm used to verify bearer tokens """
    secret = os.getenv("JWT_SECRET_KEY")
    if not secret:
        raise RuntimeError("JWT_SECRET_KEY is not configured.")
    return secret, os.getenv("JWT_ALGORITHM", DEFAULT_ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """ Verified claims of a token, or None if it is expired or invalid """
    secret, algorithm = jwt_settings()
    try:
        return jwt.decode(token, secret, algorithms=[algorithm])
    except ExpiredSignatureError:
        logger.warning("JWT decode failed: token has expired.")
    except JWTError as e:
        logger.warning(f"JWT decode failed: {str(e)}")
    return None
