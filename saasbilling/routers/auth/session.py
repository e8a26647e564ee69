"""Current session endpoint."""

from fastapi import APIRouter, Depends, status

from ...middleware.auth.dependencies import get_current_user
from ...models.api.auth import UserInfo
from ...models.api.common import ErrorResponse
from ...models.iam import User

router = APIRouter()


@router.get(
  "/me",
  response_model=UserInfo,
  status_code=status.HTTP_200_OK,
  summary="Get Current User",
  description="Return the user behind the current session.",
  operation_id="getCurrentAuthUser",
  responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)
async def get_me(current_user: User = Depends(get_current_user)) -> UserInfo:
  return UserInfo.from_model(current_user)
