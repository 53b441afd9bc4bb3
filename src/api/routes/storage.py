"""
Эндпоинты импорта и экспорта снимка хранилища "ключ-значение".
"""

from fastapi import APIRouter, status

from src.api.core.dependencies import DBSession, StorageSvc
from src.api.schemas import StorageImportResultSchema, StorageSnapshotSchema

router = APIRouter(prefix="/storage", tags=["Storage"])


@router.post(
    "/import",
    response_model=StorageImportResultSchema,
    status_code=status.HTTP_200_OK,
    summary="Импорт снимка хранилища",
    description=(
        "Импортирует привычки, удаленные вхождения, переопределения и прогресс. "
        "Некорректный JSON ключа считается пустой коллекцией, повторный импорт ничего не меняет."
    ),
)
async def import_snapshot(
    db_session: DBSession,
    storage_service: StorageSvc,
    snapshot: StorageSnapshotSchema,
) -> StorageImportResultSchema:
    return await storage_service.import_snapshot(db_session, snapshot=snapshot)


@router.get(
    "/export",
    response_model=StorageSnapshotSchema,
    status_code=status.HTTP_200_OK,
    summary="Экспорт снимка хранилища",
)
async def export_snapshot(db_session: DBSession, storage_service: StorageSvc) -> StorageSnapshotSchema:
    return await storage_service.export_snapshot(db_session)
