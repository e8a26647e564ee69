"""Alembic environment configuration."""

from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool

from alembic import context

from saasbilling.database import Model, get_database_url

# Registers every table on Model.metadata
import saasbilling.models  # noqa: F401

# this is the Alembic Config object, which provides
# access to the values within the .ini file in use.
config = context.config

if config.config_file_name is not None:
  fileConfig(config.config_file_name)

# Set the database URL from environment variable with SSL configuration
database_url = get_database_url()
if database_url:
  config.set_main_option("sqlalchemy.url", database_url)

target_metadata = Model.metadata


def run_migrations_offline() -> None:
  """Run migrations in 'offline' mode.

  Configures the context with just a URL, so no DBAPI is needed; calls to
  context.execute() emit SQL to the script output.
  """
  url = config.get_main_option("sqlalchemy.url")
  context.configure(
    url=url,
    target_metadata=target_metadata,
    literal_binds=True,
    dialect_opts={"paramstyle": "named"},
  )

  with context.begin_transaction():
    context.run_migrations()


def run_migrations_online() -> None:
  """Run migrations in 'online' mode against a live connection."""
  connectable = engine_from_config(
    config.get_section(config.config_ini_section, {}),
    prefix="sqlalchemy.",
    poolclass=pool.NullPool,
  )

  with connectable.connect() as connection:
    context.configure(connection=connection, target_metadata=target_metadata)

    with context.begin_transaction():
      context.run_migrations()


if context.is_offline_mode():
  run_migrations_offline()
else:
  run_migrations_online()
