"""Настройка Sentry SDK."""

from logging import ERROR, INFO  # Стандартные уровни логирования для Sentry
from typing import Protocol  # Используем Protocol для определения "контракта" настроек

from sentry_sdk import init as sentry_init
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.loguru import LoguruIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from .logging_setup import setup_logger


class SentrySettingsProtocol(Protocol):
    """Протокол для объекта настроек, используемых Sentry."""

    SENTRY_DSN: str | None
    PRODUCTION: bool
    PROJECT_NAME: str
    API_VERSION: str
    LOG_LEVEL: str
    LOG_FILE_ENABLED: bool


def setup_sentry(settings: SentrySettingsProtocol, service_name: str = "API") -> bool:
    """
    Инициализирует Sentry SDK, если задан DSN.

    Определяет environment, sample rates и другие параметры на основе settings.

    Args:
        settings (SentrySettingsProtocol): Объект настроек.
        service_name (str): Имя сервиса, для которого включается мониторинг.

    Returns:
        bool: True, если SDK был инициализирован.
    """
    sentry_log = setup_logger(
        service_name=f"{service_name}Sentry",
        log_level_override=settings.LOG_LEVEL,
        enable_file_logging=settings.LOG_FILE_ENABLED,
    )

    sentry_dsn = settings.SENTRY_DSN

    if not sentry_dsn:
        sentry_log.info("SENTRY_DSN не установлен, Sentry SDK не будет инициализирован.")
        return False

    environment = "production" if settings.PRODUCTION else "development"

    # 10% трейсов и профилей для production, 100% для development
    sample_rate = 0.1 if settings.PRODUCTION else 1.0

    sentry_log.info(
        f"Инициализация Sentry SDK для '{service_name}'. DSN: {'***' + sentry_dsn[-6:]}, "
        f"Environment: {environment}, Sample rate: {sample_rate}"
    )

    try:
        sentry_init(
            dsn=sentry_dsn,
            integrations=[
                StarletteIntegration(transaction_style="endpoint"),
                FastApiIntegration(transaction_style="endpoint"),
                SqlalchemyIntegration(),
                # Breadcrumbs с INFO, события в Sentry с ERROR
                LoguruIntegration(level=INFO, event_level=ERROR),
            ],
            environment=environment,
            traces_sample_rate=sample_rate,
            profiles_sample_rate=sample_rate,
            release=f"{settings.PROJECT_NAME}@{settings.API_VERSION}",
        )
    except Exception as exc:
        sentry_log.exception(f"Ошибка инициализации Sentry SDK: {exc}")
        return False

    sentry_log.info("Sentry SDK успешно инициализирован.")
    return True
