"""Authentication API models."""

from pydantic import BaseModel, Field

from ..iam import User


class LoginRequest(BaseModel):
  """Login request model."""

  # Plain str so malformed emails get the same 401 as unknown ones
  email: str = Field(..., description="User's email address")
  password: str = Field(..., description="User's password")


class UserInfo(BaseModel):
  """Public user fields returned by auth endpoints."""

  id: str
  email: str
  name: str
  role: str

  @classmethod
  def from_model(cls, user: User) -> "UserInfo":
    return cls(id=user.id, email=user.email, name=user.name, role=user.role)


class AuthResponse(BaseModel):
  """Authentication response model."""

  user: UserInfo = Field(..., description="User information")
  message: str = Field(..., description="Success message")
  token: str | None = Field(
    default=None,
    description="Session token (also set as an http-only cookie)",
  )
  expires_in: int | None = Field(
    default=None, description="Token lifetime in seconds"
  )


class LogoutResponse(BaseModel):
  message: str
