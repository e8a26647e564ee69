"""API models for usage metering."""

from typing import Optional

from pydantic import BaseModel, Field


class TrackUsageRequest(BaseModel):
  """Record a usage sample for the current user."""

  metric: Optional[str] = Field(
    None, description="Metric name (e.g., 'STORAGE_GB', 'API_CALLS')"
  )
  value: Optional[float] = Field(None, description="Non-negative sample value")


class TrackUsageResponse(BaseModel):
  success: bool = True


class UsageTotal(BaseModel):
  """Summed usage of one metric over the trailing window."""

  metric: str
  total: float
