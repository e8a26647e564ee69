"""
Centralized configuration package for the SaaS Billing service.

This package provides a single source of truth for configuration settings:
environment variables, static constants, the default tier catalog, and
startup validation.
"""

from .billing import DEFAULT_SUBSCRIPTION_TIERS, BillingConfig
from .env import EnvConfig, env
from .validation import ConfigValidationError, EnvValidator

__all__ = [
  "DEFAULT_SUBSCRIPTION_TIERS",
  # Billing exports
  "BillingConfig",
  # Environment exports
  "EnvConfig",
  "env",
  # Validation exports
  "ConfigValidationError",
  "EnvValidator",
]
