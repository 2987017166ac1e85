# alembic/env.py

import sys
from os.path import abspath, dirname
# Чтобы проект импортировался, когда alembic запускают из корня репозитория
sys.path.insert(0, abspath(dirname(dirname(__file__))))

from logging.config import fileConfig
from sqlalchemy import engine_from_config
from sqlalchemy.pool import NullPool
from alembic import context

# URL базы берётся из настроек приложения (.env), а не из alembic.ini
from app.core.config import settings
from app.db.session import Base
# Все модели нужно импортировать, чтобы их таблицы попали в Base.metadata
from app.models.user import Account
from app.models.referral import Referral
from app.models.order import Order, OrderItem
from app.models.notification import Notification

target_metadata = Base.metadata

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)


def run_migrations_offline() -> None:
    """Миграции в режиме 'offline'."""
    url = settings.DATABASE_URL
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Миграции в режиме 'online'."""
    connectable = engine_from_config(
        {"sqlalchemy.url": settings.DATABASE_URL},
        prefix="sqlalchemy.",
        poolclass=NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection, target_metadata=target_metadata
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
