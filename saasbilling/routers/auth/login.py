"""User login endpoint."""

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from ...config import env
from ...database import get_db_session
from ...exceptions import AuthenticationError, to_http_exception
from ...logger import logger, log_auth_event
from ...middleware.auth.dependencies import get_client_ip
from ...middleware.auth.jwt import JWTConfig, create_session_token
from ...models.api.auth import AuthResponse, LoginRequest, UserInfo
from ...models.api.common import ErrorResponse
from ...models.iam import User
from ...security import PasswordSecurity

router = APIRouter()

INVALID_CREDENTIALS = "Invalid email or password"


def set_session_cookie(response: Response, token: str) -> None:
  """Attach the session token as an http-only cookie."""
  response.set_cookie(
    key=env.SESSION_COOKIE_NAME,
    value=token,
    max_age=JWTConfig.get_expiry_seconds(),
    httponly=True,
    secure=env.is_production() or env.is_staging(),
    samesite="lax",
    path="/",
  )


def authenticate_user(session: Session, email: str, password: str) -> User:
  """
  Look up a user by normalized email and check the password.

  Raises:
      AuthenticationError: Unknown email, wrong password or inactive account
  """
  user = User.get_by_email(email, session)
  if user is None:
    raise AuthenticationError(INVALID_CREDENTIALS)
  if not user.is_active or not PasswordSecurity.verify_password(
    password, user.password_hash
  ):
    error = AuthenticationError(INVALID_CREDENTIALS)
    error.details["user_id"] = user.id
    raise error
  return user


@router.post(
  "/login",
  response_model=AuthResponse,
  status_code=status.HTTP_200_OK,
  summary="User Login",
  description="Authenticate with email and password and start a session.",
  operation_id="loginUser",
  responses={
    401: {"model": ErrorResponse, "description": "Invalid credentials"},
  },
)
async def login(
  request: LoginRequest,
  response: Response,
  fastapi_request: Request,
  session: Session = Depends(get_db_session),
) -> AuthResponse:
  """
  Authenticate user with email and password.

  Unknown email, wrong password and inactive accounts all produce the same
  401 so the response does not reveal which accounts exist.
  """
  client_ip = get_client_ip(fastapi_request)

  try:
    user = authenticate_user(session, request.email, request.password)
  except AuthenticationError as e:
    log_auth_event(
      "login",
      user_id=e.details.get("user_id"),
      ip_address=client_ip,
      success=False,
      metadata={"reason": "invalid_credentials"},
    )
    raise to_http_exception(e)

  token = create_session_token(user)
  set_session_cookie(response, token)

  log_auth_event("login", user_id=user.id, ip_address=client_ip, success=True)
  logger.info(f"User {user.id} logged in")

  return AuthResponse(
    user=UserInfo.from_model(user),
    message="Login successful",
    token=token,
    expires_in=JWTConfig.get_expiry_seconds(),
  )
