# ==============================================================================
# UPLOAD SCHEMAS - Signed Object Store Uploads
# ==============================================================================

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from product_api.schemas.base import BaseSchema


class SignUrlRequest(BaseSchema):
    """Request for a pre-signed upload URL."""

    file_type: str = Field(
        ...,
        min_length=1,
        description="MIME type the client will upload",
        examples=["image/png"],
    )
    file_name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Original file name, used for its extension",
    )
    folder: Optional[str] = Field(
        None,
        max_length=100,
        pattern=r"^[A-Za-z0-9_\-]+$",
        description="Key prefix (defaults to the configured upload folder)",
    )


class SignUrlResponse(BaseSchema):
    """Pre-signed upload authorization for a single object key."""

    signed_url: str = Field(..., description="Pre-signed PUT URL")
    file_url: str = Field(..., description="Public URL once uploaded")
    file_name: str = Field(..., description="Object key")


class FileInfo(BaseSchema):
    """One object under a listed prefix."""

    key: str
    last_modified: Optional[datetime] = None
    size: int = 0
    url: str


class FileListResponse(BaseSchema):
    """Objects under a prefix."""

    files: List[FileInfo] = Field(default_factory=list)
