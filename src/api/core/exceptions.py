"""Исключения приложения и их обработчики для FastAPI."""

from typing import Any, Sequence

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .logging import api_log as log


class AppException(Exception):
    """
    Базовое исключение приложения.

    Attributes:
        message: Человекочитаемое сообщение об ошибке.
        error_type: Машиночитаемый тип ошибки (например, "habit_not_found").
        status_code: HTTP статус, с которым ошибка будет отдана клиенту.
        loc: Путь до поля/параметра, вызвавшего ошибку (опционально).
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_error_type: str = "app_error"

    def __init__(
        self,
        message: str,
        error_type: str | None = None,
        loc: Sequence[str | int] | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_type = error_type or self.default_error_type
        self.loc = list(loc) if loc else []
        if status_code is not None:
            self.status_code = status_code

    def to_detail(self) -> dict[str, Any]:
        """Формирует элемент списка `detail` в формате, совместимом с ошибками валидации FastAPI."""
        return {"msg": self.message, "type": self.error_type, "loc": self.loc}


class BadRequestException(AppException):
    """Некорректный запрос (400)."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_error_type = "bad_request"


class NotFoundException(AppException):
    """Сущность не найдена (404)."""

    status_code = status.HTTP_404_NOT_FOUND
    default_error_type = "not_found"


async def app_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Преобразует AppException в JSON-ответ."""
    if not isinstance(exc, AppException):  # pragma: no cover
        raise exc

    log.warning(f"{request.method} {request.url.path} -> {exc.status_code} [{exc.error_type}]: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": [exc.to_detail()]})


async def validation_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Логирует ошибки валидации Pydantic и отдает их в стандартном формате FastAPI (422)."""
    if not isinstance(exc, RequestValidationError):  # pragma: no cover
        raise exc

    errors = exc.errors()
    log.info(f"{request.method} {request.url.path} -> 422, ошибок валидации: {len(errors)}")

    # ctx может содержать исключения (ValueError), которые не сериализуются в JSON
    details = [{key: value for key, value in error.items() if key != "ctx"} for error in errors]

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": jsonable_encoder(details)},
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """
    Регистрирует обработчики исключений приложения.

    Args:
        app (FastAPI): Экземпляр приложения FastAPI.
    """
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)


__all__ = [
    "AppException",
    "BadRequestException",
    "NotFoundException",
    "setup_exception_handlers",
]
