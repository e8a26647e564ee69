"""
Environment variable validation for startup checks.

This module provides validation functions to ensure all required
environment variables are properly configured at application startup.
"""

from typing import List, Dict, Any
import logging

logger = logging.getLogger(__name__)


class ConfigValidationError(Exception):
  """Raised when configuration validation fails."""

  pass


class EnvValidator:
  """Validates environment configuration at startup."""

  @staticmethod
  def validate_required_vars(env_config) -> None:
    """
    Validate that all required environment variables are set.

    Args:
        env_config: The EnvConfig instance to validate

    Raises:
        ConfigValidationError: If validation fails
    """
    errors: List[str] = []
    warnings: List[str] = []

    if env_config.is_production():
      required_prod_vars = {
        "DATABASE_URL": "PostgreSQL connection string",
        "JWT_SECRET_KEY": "Session signing key",
        "APP_URL": "Public application URL",
      }

      for var_name, description in required_prod_vars.items():
        value = getattr(env_config, var_name, None)
        if not value:
          errors.append(f"{var_name}: {description} is required in production")
        elif var_name == "JWT_SECRET_KEY" and len(str(value)) < 32:
          errors.append(f"{var_name}: Must be at least 32 characters for security")

    stripe_vars = {
      "STRIPE_SECRET_KEY": "Stripe payment processing",
      "STRIPE_WEBHOOK_SECRET": "Stripe webhook verification",
    }
    for var_name, description in stripe_vars.items():
      value = getattr(env_config, var_name, None)
      if not value:
        message = f"{var_name}: {description} is not configured"
        if env_config.is_production():
          errors.append(message)
        else:
          warnings.append(message)
      elif var_name == "STRIPE_SECRET_KEY":
        if value.startswith("sk_test_") and env_config.is_production():
          errors.append(
            f"{var_name}: Cannot use test key (sk_test_) in production environment"
          )
        elif not value.startswith(("sk_live_", "sk_test_", "rk_live_", "rk_test_")):
          errors.append(f"{var_name}: Must be a valid Stripe secret key")
      elif var_name == "STRIPE_WEBHOOK_SECRET":
        if not value.startswith("whsec_"):
          errors.append(f"{var_name}: Must be a valid Stripe webhook secret")

    if not getattr(env_config, "EMAIL_FROM_ADDRESS", None):
      warnings.append(
        "EMAIL_FROM_ADDRESS: Not configured - notification emails will not be sent"
      )

    EnvValidator._validate_numeric_ranges(env_config, errors)
    EnvValidator._validate_urls(env_config, errors)

    if warnings:
      for warning in warnings:
        logger.warning(f"Config validation warning: {warning}")

    if errors:
      logger.error("Configuration validation failed:")
      for error in errors:
        logger.error(f"  - {error}")
      raise ConfigValidationError(
        f"Configuration validation failed with {len(errors)} errors. "
        "Please check environment variables."
      )

    logger.info("Configuration validation passed")

  @staticmethod
  def _validate_numeric_ranges(env_config, errors: List[str]) -> None:
    """Validate numeric configuration values are within reasonable ranges."""
    validations = [
      ("SESSION_EXPIRY_DAYS", 1, 90, "Session expiry"),
      ("INVOICE_DUE_DAYS", 0, 120, "Invoice due days"),
      ("USAGE_WINDOW_DAYS", 1, 366, "Usage window"),
      ("BCRYPT_ROUNDS", 4, 31, "bcrypt cost factor"),
    ]

    for var_name, min_val, max_val, description in validations:
      value = getattr(env_config, var_name, None)
      if value is not None and not (min_val <= value <= max_val):
        errors.append(
          f"{var_name}: {description} must be between {min_val} and {max_val}, got {value}"
        )

  @staticmethod
  def _validate_urls(env_config, errors: List[str]) -> None:
    """Validate URL format for configured endpoints."""
    url_prefixes = {
      "DATABASE_URL": ("postgresql://", "postgres://", "postgresql+psycopg2://", "sqlite://"),
      "APP_URL": ("http://", "https://"),
    }

    for var_name, prefixes in url_prefixes.items():
      value = getattr(env_config, var_name, None)
      if value and not value.startswith(prefixes):
        errors.append(f"{var_name}: Invalid URL format - {value}")

  @staticmethod
  def get_config_summary(env_config) -> Dict[str, Any]:
    """Get a summary of the current configuration for logging."""
    return {
      "environment": env_config.ENVIRONMENT,
      "debug": env_config.DEBUG,
      "database": {
        "type": "postgresql",
        "configured": bool(env_config.DATABASE_URL),
      },
      "billing": {
        "stripe_configured": bool(env_config.STRIPE_SECRET_KEY),
        "webhooks_configured": bool(env_config.STRIPE_WEBHOOK_SECRET),
        "invoice_due_days": env_config.INVOICE_DUE_DAYS,
      },
      "email": {
        "configured": bool(env_config.EMAIL_FROM_ADDRESS),
        "region": env_config.AWS_REGION,
      },
      "sessions": {
        "expiry_days": env_config.SESSION_EXPIRY_DAYS,
        "cookie_name": env_config.SESSION_COOKIE_NAME,
      },
    }
