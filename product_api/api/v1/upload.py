# ==============================================================================
# UPLOAD ENDPOINTS - Signed Object Store Uploads
# ==============================================================================
# Every route requires an active account
# ==============================================================================

from __future__ import annotations

from fastapi import APIRouter, Depends

from product_api.api.dependencies import UploadServiceDep, get_active_user
from product_api.core.constants import SuccessMessages
from product_api.schemas.base import MessageResponse
from product_api.schemas.upload import (
    FileListResponse,
    SignUrlRequest,
    SignUrlResponse,
)

router = APIRouter(
    prefix="/upload",
    tags=["Upload"],
    dependencies=[Depends(get_active_user)],
)


@router.post(
    "/sign-url",
    response_model=SignUrlResponse,
    summary="Get pre-signed upload URL",
    description="Authorize one direct upload after checking the content type.",
)
async def sign_upload_url(
    request: SignUrlRequest,
    service: UploadServiceDep,
) -> SignUrlResponse:
    return await service.create_signed_upload(request)


@router.get(
    "/list",
    response_model=FileListResponse,
    summary="List files in the default folder",
)
async def list_default_files(service: UploadServiceDep) -> FileListResponse:
    return await service.list_files()


@router.get(
    "/list/{folder}",
    response_model=FileListResponse,
    summary="List files in a folder",
)
async def list_files(folder: str, service: UploadServiceDep) -> FileListResponse:
    return await service.list_files(folder)


@router.delete(
    "/{file_name:path}",
    response_model=MessageResponse,
    summary="Delete file",
    description="Remove one object. Keys may contain '/'.",
)
async def delete_file(file_name: str, service: UploadServiceDep) -> MessageResponse:
    await service.delete_file(file_name)
    return MessageResponse(message=SuccessMessages.FILE_DELETED)
