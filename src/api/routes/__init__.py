"""Основной API роутер, объединяющий все остальные роутеры."""

from fastapi import APIRouter

from . import habits, occurrences, progress, stats, storage

# Основной роутер API, объединяющий все остальные
api_router = APIRouter(prefix="/v1")  # Префикс /v1 для всех API эндпоинтов

api_router.include_router(habits.router)
api_router.include_router(progress.router)
api_router.include_router(occurrences.router)
api_router.include_router(stats.router)
api_router.include_router(storage.router)

__all__ = ["api_router"]
