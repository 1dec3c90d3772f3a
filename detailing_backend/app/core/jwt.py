"""
JWT token utilities for session verification.

Access tokens are issued by the auth platform; this module verifies them
and can mint equivalent tokens for local development and tests.
"""

from datetime import datetime, timedelta
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from detailing_backend.app.core.config import settings
from detailing_backend.app.core.exceptions import ConfigurationError


def _secret() -> str:
    if not settings.jwt_secret:
        raise ConfigurationError("JWT secret")
    return settings.jwt_secret


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token shaped like the auth platform's.

    Args:
        data: Data payload to encode in the token (should include: sub, email)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string

    Example payload:
        {
            "sub": "6f1c...-profile-uuid",
            "email": "detailer@example.com",
            "aud": "authenticated",
            "exp": 1234567890
        }
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(hours=1)

    to_encode.setdefault("aud", settings.jwt_audience)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, _secret(), algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and validate a JWT access token.

    Returns:
        Decoded payload (includes: sub, email, exp) if valid, None otherwise
    """
    try:
        return jwt.decode(
            token,
            _secret(),
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
        )
    except JWTError:
        return None
