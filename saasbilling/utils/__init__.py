"""Shared utilities."""

from .ulid import generate_prefixed_ulid

__all__ = ["generate_prefixed_ulid"]
