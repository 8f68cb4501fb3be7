"""File endpoints: listing, explorer, upload signing, deletion and folders"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from bucket_panel.config import settings
from bucket_panel.errors import BadRequestError, ConflictError, SetupRequiredError, ValidationError
from bucket_panel.middleware.session import require_editor, require_permissions, require_session
from bucket_panel.schemas import CreateFolderRequest, UploadSignRequest
from bucket_panel.services.activity_service import ActivityAction, activity_service
from bucket_panel.services.credential_service import StorageCredentials, credential_service
from bucket_panel.services.file_explorer_service import (
    build_listing,
    empty_listing,
    explore,
    normalize_prefix,
)
from bucket_panel.services.permission_service import Permission
from bucket_panel.services.storage_service import StorageService, create_storage_service
from bucket_panel.services.token_service import AuthSession
from bucket_panel.utils.file_types import format_bytes
from bucket_panel.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/files", tags=["files"])


async def _require_credentials() -> StorageCredentials:
    credentials = await credential_service.get_storage_credentials()
    if credentials is None:
        raise SetupRequiredError()
    return credentials


async def _list_files(storage: StorageService):
    objects = await storage.list_objects()
    credentials = storage.credentials
    return build_listing(objects, credentials.bucket_name, credentials.region, credentials.cdn_host)


@router.get("")
async def list_files(session: AuthSession = Depends(require_session)):
    credentials = await credential_service.get_storage_credentials()
    if credentials is None:
        return empty_listing()

    return await _list_files(create_storage_service(credentials))


@router.get("/explorer")
async def explore_files(
    prefix: Optional[str] = Query(default=None),
    search: Optional[str] = Query(default=None),
    session: AuthSession = Depends(require_session),
):
    """One folder level of the bucket, filtered by ``search``"""
    credentials = await credential_service.get_storage_credentials()
    if credentials is None:
        result = explore([], prefix, search)
        result["setupRequired"] = True
        return result

    listing = await _list_files(create_storage_service(credentials))
    result = explore(listing["files"], prefix, search)
    result["setupRequired"] = False
    return result


@router.post("", dependencies=[Depends(require_permissions(Permission.UPLOAD.value))])
async def sign_upload(body: UploadSignRequest, session: AuthSession = Depends(require_editor)):
    """
    Issue a presigned PUT URL. Bytes never pass through the panel: the client
    uploads straight to the bucket.
    """
    file_name = (body.file_name or "").strip().strip("/")
    if not file_name:
        raise BadRequestError("Informe o nome do arquivo para gerar o upload.")

    if body.size is not None and body.size > settings.max_upload_size_bytes:
        raise ValidationError(
            f"O arquivo excede o tamanho máximo permitido ({format_bytes(settings.max_upload_size_bytes)})."
        )

    credentials = await _require_credentials()
    storage = create_storage_service(credentials)

    prefix = normalize_prefix(body.prefix)
    key = "/".join(part for part in (prefix, file_name) if part)

    result = await storage.presign_upload(key, content_type=(body.content_type or None))

    details = file_name if body.size is None else f"{file_name} ({format_bytes(body.size)})"
    await activity_service.record(session, ActivityAction.FILE_UPLOAD_PREPARED, target_key=key, details=details)

    logger.info("upload_signed", user_id=session.id, key=key)
    return result


@router.delete("")
async def delete_file(
    key: Optional[str] = Query(default=None),
    session: AuthSession = Depends(require_permissions(Permission.DELETE.value)),
):
    if not key:
        raise ValidationError("Informe o parâmetro ?key= do arquivo a ser removido.")

    credentials = await _require_credentials()
    await create_storage_service(credentials).delete_object(key)

    await activity_service.record(session, ActivityAction.FILE_DELETED, target_key=key)
    return {"message": "Arquivo removido com sucesso."}


@router.post("/folders")
async def create_folder(body: CreateFolderRequest, session: AuthSession = Depends(require_editor)):
    credentials = await _require_credentials()

    folder_name = normalize_prefix(body.folder_name)
    if not folder_name:
        raise ValidationError("Informe um nome para a nova pasta.")
    if "/" in folder_name or "\\" in folder_name:
        raise ValidationError("O nome da pasta não pode conter barras.")
    if folder_name in (".", ".."):
        raise ValidationError("Escolha um nome de pasta válido.")

    prefix = normalize_prefix(body.prefix)
    folder_key = "/".join(part for part in (prefix, folder_name) if part) + "/"

    storage = create_storage_service(credentials)
    if await storage.prefix_exists(folder_key):
        raise ConflictError("Já existe uma pasta com este nome neste nível.")

    await storage.create_folder_placeholder(folder_key)
    await activity_service.record(session, ActivityAction.FOLDER_CREATED, target_key=folder_key)

    return JSONResponse(
        status_code=201,
        content={"message": "Pasta criada com sucesso.", "key": folder_key},
    )
