"""
Alembic env.py: resolves the database URL through opmc_ops Settings.

Credentials follow the same rules as the API (LOCAL_DB_* in development,
DB_HOST/DB_PASSWORD or Secrets Manager elsewhere), so the package must be
installed (pip install -e .) before running Alembic.

Usage:
  # Development (local Postgres):
  ENVIRONMENT=development alembic upgrade head

  # Production (credentials from Secrets Manager):
  ENVIRONMENT=production alembic upgrade head
"""
import logging
import sys
from pathlib import Path

from alembic import context
from dotenv import load_dotenv
from sqlalchemy import engine_from_config, pool

# ---------------------------------------------------------------------------
# Load .env from repo root before Settings is built
# ---------------------------------------------------------------------------
_repo_root = Path(__file__).resolve().parent.parent
load_dotenv(dotenv_path=_repo_root / ".env", override=False)

from opmc_ops.core.config import get_settings  # noqa: E402

logger = logging.getLogger("alembic.env")

config = context.config

# Interpret the config file for Python logging
if config.config_file_name is not None:
    import logging.config
    logging.config.fileConfig(config.config_file_name)

try:
    # configparser treats % as interpolation
    config.set_main_option("sqlalchemy.url", get_settings().database_url_sync.replace("%", "%%"))
except RuntimeError as exc:
    logger.error("Cannot resolve database URL: %s", exc)
    sys.exit(1)

target_metadata = None  # Raw SQL migrations; ORM models are not autogenerated from


def run_migrations_offline() -> None:
    """Emit the SQL script without a DB connection."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
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
