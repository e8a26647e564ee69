"""
Password utilities for the SaaS Billing service.

Hashing and verification use bcrypt; temporary passwords for invited users
are drawn from the ``secrets`` module.
"""

import secrets
import string

import bcrypt

from ..config import env


class PasswordSecurity:
  """Password hashing, verification, and generation."""

  MIN_LENGTH = 8

  # Cost factor; lowered through BCRYPT_ROUNDS in tests
  BCRYPT_ROUNDS = env.BCRYPT_ROUNDS

  SPECIAL_CHARS = "!@#$%^&*-_=+"

  @classmethod
  def hash_password(cls, password: str) -> str:
    """
    Hash a password using bcrypt.

    Args:
        password: Plain text password

    Returns:
        Bcrypt hash string
    """
    salt = bcrypt.gensalt(rounds=cls.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

  @classmethod
  def verify_password(cls, password: str, hashed: str) -> bool:
    """
    Verify a password against its bcrypt hash.

    Malformed hashes verify as False rather than raising.
    """
    try:
      return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError, AttributeError):
      return False

  @classmethod
  def generate_temporary_password(cls, length: int = 16) -> str:
    """
    Generate a random temporary password for invited users.

    The result always contains an uppercase letter, a lowercase letter, a digit,
    and a special character.
    """
    length = max(length, cls.MIN_LENGTH)
    pools = [
      string.ascii_uppercase,
      string.ascii_lowercase,
      string.digits,
      cls.SPECIAL_CHARS,
    ]
    chars = [secrets.choice(pool) for pool in pools]
    all_chars = "".join(pools)
    chars.extend(secrets.choice(all_chars) for _ in range(length - len(chars)))
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)
