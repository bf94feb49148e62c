"""
Alembic migration environment for the villa booking schema.

The URL comes from application settings (DATABASE_URL_SYNC, or DATABASE_URL
with the async driver stripped). Autogenerate compares column types and skips
writing a revision when nothing changed.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from villa_booking.core.config import get_settings
from villa_booking.db.base import Base
from villa_booking.models import Booking, CalendarEvent, Payment, PricingRule, Villa  # noqa: F401

config = context.config
config.set_main_option("sqlalchemy.url", get_settings().migration_database_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def skip_empty_revisions(context, revision, directives) -> None:
    if getattr(config.cmd_opts, "autogenerate", False) and directives[0].upgrade_ops.is_empty():
        directives[:] = []


def configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        process_revision_directives=skip_empty_revisions,
        **kwargs,
    )


def run_migrations_offline() -> None:
    configure(
        url=config.get_main_option("sqlalchemy.url"),
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
        configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
