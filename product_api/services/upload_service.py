# ==============================================================================
# UPLOAD SERVICE - Pre-Signed Object Store Uploads
# ==============================================================================
# Issues time-limited upload URLs and manages uploaded objects in S3.
# boto3 is blocking, so network calls run in FastAPI's threadpool.
# ==============================================================================

from __future__ import annotations

import logging
from typing import Any, Optional
from uuid import uuid4

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from product_api.core.constants import ErrorMessages, UploadConstants
from product_api.core.exceptions import ObjectStoreError, ValidationError
from product_api.core.settings import settings
from product_api.schemas.upload import (
    FileInfo,
    FileListResponse,
    SignUrlRequest,
    SignUrlResponse,
)

logger = logging.getLogger(__name__)


def create_s3_client() -> Any:
    """Build an S3 client from settings, falling back to boto3's credential chain."""
    return boto3.client(
        "s3",
        region_name=settings.AWS_REGION,
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
        endpoint_url=settings.S3_ENDPOINT_URL,
    )


class UploadService:
    """
    Object store operations for client uploads.

    Attributes:
        _client: boto3 S3 client
        _bucket: Target bucket
        _region: Bucket region, used to build public URLs

    Example:
        >>> service = UploadService()
        >>> await service.create_signed_upload(
        ...     SignUrlRequest(file_type="image/png", file_name="cat.png")
        ... )
    """

    def __init__(
        self,
        client: Optional[Any] = None,
        bucket: Optional[str] = None,
        region: Optional[str] = None,
    ) -> None:
        self._client = client or create_s3_client()
        self._bucket = bucket or settings.S3_BUCKET_NAME
        self._region = region or settings.AWS_REGION

    def public_url(self, key: str) -> str:
        """URL an uploaded object is served from."""
        return f"https://{self._bucket}.s3.{self._region}.amazonaws.com/{key}"

    async def create_signed_upload(self, request: SignUrlRequest) -> SignUrlResponse:
        """
        Authorize one direct upload.

        The object key is ``<folder>/<uuid4>.<extension>`` so uploads never
        overwrite each other.

        Raises:
            ValidationError: If the content type is not allowed
            ObjectStoreError: If the URL cannot be signed
        """
        if request.file_type not in UploadConstants.ALLOWED_CONTENT_TYPES:
            raise ValidationError(
                message=ErrorMessages.FILE_TYPE_NOT_ALLOWED,
                errors={"fileType": request.file_type},
            )

        folder = request.folder or settings.UPLOAD_DEFAULT_FOLDER
        extension = request.file_name.rsplit(".", 1)[-1]
        key = f"{folder}/{uuid4()}.{extension}"

        try:
            signed_url = self._client.generate_presigned_url(
                "put_object",
                Params={
                    "Bucket": self._bucket,
                    "Key": key,
                    "ContentType": request.file_type,
                    "ACL": settings.S3_ACL,
                },
                ExpiresIn=settings.S3_SIGNED_URL_EXPIRATION,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to sign upload for {key}: {e}")
            raise ObjectStoreError(message="Could not sign upload URL", operation="sign")

        logger.info(f"Signed upload URL for {key}")
        return SignUrlResponse(
            signed_url=signed_url,
            file_url=self.public_url(key),
            file_name=key,
        )

    async def delete_file(self, key: str) -> None:
        """
        Remove one object.

        Raises:
            ObjectStoreError: If the store rejects the request
        """
        try:
            await run_in_threadpool(
                self._client.delete_object,
                Bucket=self._bucket,
                Key=key,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to delete {key}: {e}")
            raise ObjectStoreError(message="Could not delete file", operation="delete")

        logger.info(f"Deleted object {key}")

    async def list_files(self, folder: Optional[str] = None) -> FileListResponse:
        """
        List objects under ``<folder>/``.

        Raises:
            ObjectStoreError: If the store rejects the request
        """
        prefix = f"{folder or settings.UPLOAD_DEFAULT_FOLDER}/"
        try:
            result = await run_in_threadpool(
                self._client.list_objects_v2,
                Bucket=self._bucket,
                Prefix=prefix,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Failed to list {prefix}: {e}")
            raise ObjectStoreError(message="Could not list files", operation="list")

        return FileListResponse(
            files=[
                FileInfo(
                    key=item["Key"],
                    last_modified=item.get("LastModified"),
                    size=item.get("Size", 0),
                    url=self.public_url(item["Key"]),
                )
                for item in result.get("Contents", [])
            ]
        )
