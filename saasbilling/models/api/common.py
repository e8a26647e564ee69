"""
Common API models shared across multiple routers.

This module contains shared Pydantic models used throughout the API
for consistent response structures and error handling.
"""

from typing import Any

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
  """Standard error response format used across all API endpoints."""

  detail: str = Field(
    ...,
    description="Human-readable error message explaining what went wrong",
    examples=["Subscription tier not found"],
  )
  request_id: str | None = Field(
    None,
    description="Unique request ID for tracking and debugging",
  )


class SuccessResponse(BaseModel):
  """Standard success response for operations without specific return data."""

  success: bool = Field(
    True, description="Indicates the operation completed successfully"
  )
  message: str | None = Field(None, description="Human-readable success message")
  data: dict[str, Any] | None = Field(
    None, description="Optional additional data related to the operation"
  )


class StatusResponse(BaseModel):
  """Service health response."""

  status: str
  environment: str
  version: str
  timestamp: str
