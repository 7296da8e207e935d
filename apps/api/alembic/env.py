import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from crm_api.core.config import Settings
from crm_api.core.database import Base
from crm_api.crm import models as crm_models  # noqa: F401
from crm_api.identity import models as identity_models  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def _database_url() -> str:
    # DATABASE_URL from the environment wins over the ini file, as it does for the app.
    configured = config.get_main_option("sqlalchemy.url")
    if os.getenv("DATABASE_URL") or not configured:
        return Settings().database_url
    return configured


def run_migrations_offline() -> None:
    context.configure(
        url=_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    engine = create_engine(_database_url(), poolclass=pool.NullPool)
    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, compare_type=True)
        with context.begin_transaction():
            context.run_migrations()
    engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
