"""Централизованная настройка логирования для API и миграций."""

import logging
import os
import sys
from typing import TYPE_CHECKING

from loguru import logger as global_loguru_logger
from pydantic import BaseModel, Field

# Импортируем Logger только для проверки типов
if TYPE_CHECKING:
    from loguru import Logger


class LogConfig(BaseModel):
    """Конфигурация логирования."""

    level: str = Field(default="INFO", description="Уровень логирования")
    format: str = Field(
        default=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[service_name]}</cyan> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
        ),
        description="Формат лог сообщения",
    )
    rotation: str = Field(default="10 MB", description="Ротация лог-файлов по размеру")
    retention: str = Field(default="7 days", description="Время хранения лог-файлов")
    serialize: bool = Field(default=False, description="Сериализовать логи в JSON")
    enable_file_logging: bool = Field(default=True, description="Включить логирование в файл")
    log_file_path: str = Field(
        default="logs/{service_name}_{time:YYYY-MM-DD}.log",
        description="Путь к файлу логов",
    )


class InterceptHandler(logging.Handler):
    """Перехватывает логи стандартного модуля logging и перенаправляет их в Loguru."""

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self.service_name = service_name

    def emit(self, record: logging.LogRecord) -> None:
        # Получаем соответствующий уровень логгера Loguru
        try:
            level: str | int = global_loguru_logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Ищем, откуда был вызван лог, чтобы правильно отобразить stack trace
        frame, depth = logging.currentframe(), 2

        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger_opt = global_loguru_logger.bind(service_name=self.service_name).opt(
            depth=depth, exception=record.exc_info
        )
        logger_opt.log(level, record.getMessage())


def intercept_std_logging(service_name: str, level: int = logging.INFO) -> None:
    """
    Перенаправляет стандартный logging (uvicorn, alembic, sqlalchemy) в Loguru.

    Args:
        service_name: Имя сервиса, под которым будут видны перехваченные сообщения.
        level: Минимальный уровень перехватываемых сообщений.
    """
    logging.basicConfig(handlers=[InterceptHandler(service_name)], level=level, force=True)

    # Отключаем лишний шум, SQL-запросы логирует сам движок при echo=True
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def setup_logger(
    service_name: str,
    log_config: LogConfig | None = None,
    log_level_override: str | None = None,
    enable_file_logging: bool | None = None,
) -> "Logger":
    """
    Настраивает Loguru логгер для указанного сервиса и возвращает его экземпляр.

    Удаляет все предыдущие обработчики перед добавлением новых,
    чтобы избежать дублирования при повторных вызовах (например, в тестах).

    Args:
        service_name: Имя сервиса (например, "API", "Alembic").
        log_config: Объект конфигурации LogConfig. Если None, используются значения по умолчанию.
        log_level_override: Переопределяет уровень логирования из конфигурации.
        enable_file_logging: Переопределяет флаг записи логов в файл.

    Returns:
        Сконфигурированный экземпляр логгера Loguru.
    """
    current_config = LogConfig() if log_config is None else log_config.model_copy()

    # Применяем переопределения, если они есть
    current_config.level = (log_level_override or current_config.level).upper()

    if enable_file_logging is not None:
        current_config.enable_file_logging = enable_file_logging

    # Удаляем все предыдущие обработчики, чтобы избежать дублирования
    global_loguru_logger.remove()

    # Используем `bind` для добавления service_name в `extra` словарь логгера.
    # Это позволяет использовать {extra[service_name]} в формате.
    service_specific_logger = global_loguru_logger.bind(service_name=service_name)

    # Обработчик для вывода в консоль (stderr)
    service_specific_logger.add(
        sys.stderr,
        level=current_config.level,
        format=current_config.format,
        colorize=True,
        serialize=current_config.serialize,
    )

    # Обработчик для записи в файл (если включено)
    if current_config.enable_file_logging:
        log_file_path_formatted = current_config.log_file_path.replace("{service_name}", service_name.lower())

        # Отсекаем динамическую часть имени файла, чтобы получить директорию
        log_dir = os.path.dirname(log_file_path_formatted.split("{time")[0])

        try:
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
        except OSError as exc:
            # Если не удалось создать директорию, продолжаем только с консолью
            service_specific_logger.warning(
                f"Не удалось создать директорию для логов '{log_dir}': {exc}. "
                f"Логирование в файл для сервиса '{service_name}' будет отключено."
            )
        else:
            service_specific_logger.add(
                log_file_path_formatted,
                level=current_config.level,
                format=current_config.format,
                rotation=current_config.rotation,
                retention=current_config.retention,
                serialize=current_config.serialize,
                encoding="utf-8",
            )

    service_specific_logger.info(f"Loguru сконфигурирован. Уровень: {current_config.level}")
    return service_specific_logger


__all__ = ["setup_logger", "intercept_std_logging", "InterceptHandler", "LogConfig"]
