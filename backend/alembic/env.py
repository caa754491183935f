"""Alembic: migrações do schema do FlowiFy."""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from flowify import models  # noqa: F401
from flowify.config import settings
from flowify.database import Base

config = context.config

DATABASE_URL = settings.database_url
# ConfigParser interpreta "%"; senhas URL-encoded precisam de escape
config.set_main_option("sqlalchemy.url", DATABASE_URL.replace("%", "%%"))

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Gera o SQL das migrações sem conectar no banco."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Aplica as migrações no banco configurado."""
    connect_args = {"client_encoding": "utf8"} if DATABASE_URL.startswith("postgresql") else {}
    connectable = create_engine(DATABASE_URL, poolclass=pool.NullPool, connect_args=connect_args)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
