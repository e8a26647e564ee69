import asyncio
import contextvars
import threading

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, scoped_session, sessionmaker

from saasbilling.config import env


def get_database_url():
  """Get database URL with SSL configuration if needed."""
  database_url = env.DATABASE_URL

  if not (env.is_staging() or env.is_production()) or not database_url:
    return database_url
  if database_url.startswith("sqlite"):
    return database_url

  if "?" not in database_url:
    database_url += "?sslmode=require"
  elif "sslmode" not in database_url:
    database_url += "&sslmode=require"

  return database_url


def get_engine_options(database_url: str) -> dict:
  """Pool options for the engine; SQLite uses its own single-file pool."""
  options = {"pool_pre_ping": True, "echo": env.DATABASE_ECHO}
  if database_url.startswith("sqlite"):
    options["connect_args"] = {"check_same_thread": False}
    return options

  options.update(
    pool_size=env.DATABASE_POOL_SIZE,
    max_overflow=env.DATABASE_MAX_OVERFLOW,
    pool_timeout=env.DATABASE_POOL_TIMEOUT,
    pool_recycle=env.DATABASE_POOL_RECYCLE,
  )
  return options


_request_scope = contextvars.ContextVar("db_request_scope", default=None)


def activate_request_scope():
  """
  Activate a request-scoped SQLAlchemy session context.

  Returns:
      ContextVar token if a new scope was set, otherwise None.
  """
  if _request_scope.get() is not None:
    return None
  return _request_scope.set(object())


def deactivate_request_scope(token):
  """Reset request scope context if it was set."""
  if token is None:
    return
  try:
    _request_scope.reset(token)
  except ValueError:
    # Context may differ if the dependency ran in a worker thread.
    _request_scope.set(None)


def _session_scope():
  """
  Return an identifier for the current execution context.

  Requests share threads through asyncio tasks, so the current task scopes the
  session; synchronous callers fall back to the thread id.
  """
  scope_id = _request_scope.get()
  if scope_id is not None:
    return scope_id

  try:
    current_task = asyncio.current_task()
  except RuntimeError:
    current_task = None

  if current_task is not None:
    return current_task

  return threading.get_ident()


_database_url = get_database_url()
engine = create_engine(_database_url, **get_engine_options(_database_url))
SessionFactory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
session = scoped_session(SessionFactory, scopefunc=_session_scope)


class Base(DeclarativeBase):
  """Base class for all models."""

  pass


Model = Base
Model.query = session.query_property()


def get_db_session():
  """Get database session for FastAPI dependency injection."""
  db = session()
  try:
    yield db
  finally:
    session.remove()
