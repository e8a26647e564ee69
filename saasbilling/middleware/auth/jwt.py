"""Session token utilities.

Session tokens are HS256 JWTs carrying the user's id, email, and role. They
are issued at login, stored in an http-only cookie, and checked on every
authenticated request.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Any, Optional

import jwt
from fastapi import HTTPException, status

from ...config import env
from ...config.logging import get_logger
from ...models.iam import User

logger = get_logger("saasbilling.auth.jwt")


class JWTConfig:
  """JWT configuration management."""

  ALGORITHM = "HS256"

  @staticmethod
  def get_jwt_secret() -> str:
    """Get JWT secret key."""
    secret = env.JWT_SECRET_KEY
    if not secret:
      raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="JWT secret key is not set",
      )
    return secret

  @staticmethod
  def get_expiry_seconds() -> int:
    return env.SESSION_EXPIRY_DAYS * 24 * 60 * 60


def create_session_token(user: User) -> str:
  """Create a signed session token for a user.

  Args:
    user: The authenticated user

  Returns:
    The encoded JWT
  """
  secret_key = JWTConfig.get_jwt_secret()
  now = datetime.now(timezone.utc)

  payload = {
    "userId": user.id,
    "email": user.email,
    "role": user.role,
    "jti": str(uuid.uuid4()),
    "exp": now + timedelta(seconds=JWTConfig.get_expiry_seconds()),
    "iat": now,
    "iss": env.JWT_ISSUER,
    "aud": env.JWT_AUDIENCE,
  }
  return jwt.encode(payload, secret_key, algorithm=JWTConfig.ALGORITHM)


def verify_session_token(token: Optional[str]) -> Optional[Dict[str, Any]]:
  """Verify a session token and return its payload.

  Fails closed: any decode, signature, expiry, or configuration problem
  returns None instead of raising.

  Args:
    token: The JWT to verify

  Returns:
    The payload with userId, email, and role, or None if the token is invalid
  """
  if not token:
    return None

  try:
    payload = jwt.decode(
      token,
      JWTConfig.get_jwt_secret(),
      algorithms=[JWTConfig.ALGORITHM],
      issuer=env.JWT_ISSUER,
      audience=env.JWT_AUDIENCE,
    )
  except jwt.ExpiredSignatureError:
    logger.info("Session token verification failed: token expired")
    return None
  except jwt.InvalidTokenError as e:
    logger.info(f"Session token verification failed: {type(e).__name__}")
    return None
  except Exception as e:
    logger.error(f"Unexpected error verifying session token: {e}")
    return None

  if not payload.get("userId") or not payload.get("role"):
    logger.info("Session token verification failed: missing identity claims")
    return None

  return payload
