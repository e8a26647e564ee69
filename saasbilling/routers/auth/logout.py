"""User logout endpoint."""

from fastapi import APIRouter, Response, status

from ...config import env
from ...models.api.auth import LogoutResponse

router = APIRouter()


@router.post(
  "/logout",
  response_model=LogoutResponse,
  status_code=status.HTTP_200_OK,
  summary="User Logout",
  description="Clear the session cookie.",
  operation_id="logoutUser",
)
async def logout(response: Response) -> LogoutResponse:
  """Clear the session cookie. Succeeds with or without a session."""
  response.delete_cookie(key=env.SESSION_COOKIE_NAME, path="/")
  return LogoutResponse(message="Logout successful")
