from alembic import context
from sqlalchemy import engine_from_config, pool
from sqlalchemy.engine import make_url

# Импортируем базовую модель SQLAlchemy
from src.api.core.config import settings
from src.api.models import Base  # Это подтянет все модели через __init__
from src.core_shared.logging_setup import intercept_std_logging, setup_logger

# Настройка логирования

# Логгер для использования внутри этого файла
logger = setup_logger("Alembic", log_level_override=settings.LOG_LEVEL, enable_file_logging=False)

# Перенаправляем логи alembic и sqlalchemy (модуль logging) в Loguru
intercept_std_logging(service_name="Alembic")


# this is the Alembic Config object, which provides
# access to the values within the .ini file in use.
config = context.config

# Указываем Alembic на метаданные базовой модели
target_metadata = Base.metadata


def get_database_url() -> str:
    """
    Возвращает синхронный URL базы данных для миграций.

    Приложение работает через асинхронные драйверы, миграции - через синхронный движок:
    для SQLite драйвер aiosqlite заменяется на стандартный sqlite3
    (psycopg поддерживает оба режима и не требует замены).
    """
    url = make_url(settings.DATABASE_URL)

    if url.drivername == "sqlite+aiosqlite":
        url = url.set(drivername="sqlite")

    return url.render_as_string(hide_password=False)


# Сначала пытаемся получить URL базы данных из существующей конфигурации
# Это позволяет тестам переопределять его
current_db_url = config.get_main_option("sqlalchemy.url") or get_database_url()
logger.info(f"Миграции для базы данных: {make_url(current_db_url).render_as_string(hide_password=True)}")


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode.

    This configures the context with just a URL
    and not an Engine, though an Engine is acceptable
    here as well.  By skipping the Engine creation
    we don't even need a DBAPI to be available.

    Calls to context.execute() here emit the given string to the
    script output.

    """
    context.configure(
        url=current_db_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=current_db_url.startswith("sqlite"),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode.

    In this scenario we need to create an Engine
    and associate a connection with the context.

    """
    # Собираем конфигурацию вручную для надежности
    connectable_config = config.get_section(config.config_ini_section, {})
    connectable_config["sqlalchemy.url"] = current_db_url

    # Создаем движок
    connectable = engine_from_config(
        connectable_config,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        # SQLite не умеет ALTER для большинства операций, используем batch-режим
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
