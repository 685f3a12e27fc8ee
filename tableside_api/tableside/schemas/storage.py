from __future__ import annotations

from pydantic import BaseModel, Field


class UploadResult(BaseModel):
    """Stored file location."""
    bucket: str = Field(...)
    path: str = Field(..., description="Path inside the bucket, e.g. <restaurant_id>/<file>")
    url: str = Field(..., description="Public URL serving the file")
    size: int = Field(..., description="Size in bytes")
    content_type: str = Field(...)
