"""Security utilities."""

from .password import PasswordSecurity

__all__ = ["PasswordSecurity"]
