"""
Custom Exception Types for the SaaS Billing service.

Business logic raises these exceptions; routers translate them into HTTP
responses through ``to_http_exception``. Each exception carries an HTTP status
code and a client-safe detail so internal reasons (provider error text,
missing configuration keys) stay in the server logs.
"""

from typing import Optional, Dict, Any

from fastapi import HTTPException, status


class SaaSBillingError(Exception):
  """
  Base exception for all SaaS Billing application errors.

  Attributes:
      message: Human-readable error message
      error_code: Application-specific error code for categorization
      details: Additional error context and metadata
  """

  status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

  def __init__(
    self,
    message: str,
    error_code: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
  ):
    super().__init__(message)
    self.message = message
    self.error_code = error_code or self.__class__.__name__
    self.details = details or {}

  @property
  def public_message(self) -> str:
    """Message that is safe to return to API clients."""
    return self.message


# ============================================================================
# Authentication and Authorization Exceptions
# ============================================================================


class AuthError(SaaSBillingError):
  """Base exception for authentication/authorization errors."""

  status_code = status.HTTP_401_UNAUTHORIZED


class AuthenticationError(AuthError):
  """Raised when authentication fails."""

  def __init__(self, reason: str = "Invalid email or password"):
    super().__init__(
      reason,
      error_code="AUTHENTICATION_FAILED",
      details={"auth_type": "credentials"},
    )


class InsufficientPermissionsError(AuthError):
  """Raised when a role lacks the required permission."""

  status_code = status.HTTP_403_FORBIDDEN

  def __init__(
    self,
    required_permission: str,
    role: Optional[str] = None,
    user_id: Optional[str] = None,
  ):
    details = {"required_permission": required_permission}
    if role:
      details["role"] = role
    if user_id:
      details["user_id"] = user_id
    super().__init__(
      f"Insufficient permissions: {required_permission} required",
      error_code="INSUFFICIENT_PERMISSIONS",
      details=details,
    )


# ============================================================================
# Validation and Entity Exceptions
# ============================================================================


class ValidationError(SaaSBillingError):
  """Raised when request data fails a business validation rule."""

  status_code = status.HTTP_400_BAD_REQUEST

  def __init__(self, message: str, field: Optional[str] = None):
    super().__init__(
      message,
      error_code="VALIDATION_ERROR",
      details={"field": field} if field else {},
    )


class EntityNotFoundError(SaaSBillingError):
  """Raised when an entity is not found."""

  status_code = status.HTTP_404_NOT_FOUND

  def __init__(self, entity_id: Optional[str], entity_type: str = "Entity"):
    self.entity_type = entity_type
    super().__init__(
      f"{entity_type} with ID '{entity_id}' not found",
      error_code="ENTITY_NOT_FOUND",
      details={"entity_id": entity_id, "entity_type": entity_type},
    )

  @property
  def public_message(self) -> str:
    return f"{self.entity_type} not found"


class DuplicateEntityError(SaaSBillingError):
  """Raised when attempting to create a duplicate entity."""

  status_code = status.HTTP_400_BAD_REQUEST

  def __init__(
    self,
    identifier: str,
    entity_type: str = "Entity",
    message: Optional[str] = None,
  ):
    super().__init__(
      message or f"{entity_type} with identifier '{identifier}' already exists",
      error_code="DUPLICATE_ENTITY",
      details={"identifier": identifier, "entity_type": entity_type},
    )


# ============================================================================
# External Service and Configuration Exceptions
# ============================================================================


class PaymentProviderError(SaaSBillingError):
  """Raised when a payment provider call fails."""

  status_code = status.HTTP_400_BAD_REQUEST

  def __init__(
    self,
    operation: str,
    reason: str,
    provider: str = "stripe",
    public_message: Optional[str] = None,
  ):
    self._public_message = (
      public_message or "Payment processing error. Please try again."
    )
    super().__init__(
      f"Payment provider {operation} failed: {reason}",
      error_code="PAYMENT_PROVIDER_ERROR",
      details={"provider": provider, "operation": operation},
    )

  @property
  def public_message(self) -> str:
    return self._public_message


class ConfigurationError(SaaSBillingError):
  """Raised when required configuration is missing or invalid."""

  status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

  def __init__(self, config_key: str, reason: str):
    super().__init__(
      f"Configuration error for '{config_key}': {reason}",
      error_code="CONFIGURATION_ERROR",
      details={"config_key": config_key, "reason": reason},
    )

  @property
  def public_message(self) -> str:
    return "Payment configuration error"


# ============================================================================
# HTTP Translation
# ============================================================================


def to_http_exception(error: SaaSBillingError) -> HTTPException:
  """Translate a domain exception into the matching HTTPException."""
  return HTTPException(status_code=error.status_code, detail=error.public_message)
