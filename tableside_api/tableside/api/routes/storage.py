from __future__ import annotations

from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status

from tableside.api.routes.public import get_public_restaurant
from tableside.core.deps import MANAGER, get_restaurant_id, require_roles
from tableside.core.settings import get_app_settings
from tableside.db.models.restaurants import Restaurant
from tableside.schemas.storage import UploadResult
from tableside.services import storage
from tableside.services.errors import DomainValidationError

router = APIRouter(tags=["Storage"])

# Mounted at the application root so that public URLs are {PUBLIC_API_URL}/storage/...
files_router = APIRouter(tags=["Storage"])

StaffBucket = Literal["menu-images", "models"]


async def _read_limited(file: UploadFile) -> bytes:
    """Read at most MAX_UPLOAD_BYTES + 1 bytes; anything longer is rejected before it is buffered."""
    max_bytes = get_app_settings().MAX_UPLOAD_BYTES
    if file.size is not None and file.size > max_bytes:
        raise DomainValidationError("File is too large", details={"max_bytes": max_bytes})
    content = await file.read(max_bytes + 1)
    if len(content) > max_bytes:
        raise DomainValidationError("File is too large", details={"max_bytes": max_bytes})
    return content


# PUBLIC_INTERFACE
@router.post(
    "/storage/{bucket}",
    response_model=UploadResult,
    status_code=status.HTTP_201_CREATED,
    summary="Upload file",
    description="Upload a menu image or 3D model. Files are stored under the restaurant's folder.",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def upload_file(
    bucket: StaffBucket,
    file: UploadFile = File(...),
    restaurant_id: UUID = Depends(get_restaurant_id),
) -> UploadResult:
    content = await _read_limited(file)
    return await storage.save_upload(bucket, file.filename, content, folder=str(restaurant_id))


# PUBLIC_INTERFACE
@router.delete(
    "/storage/{bucket}/{path:path}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete file",
    dependencies=[Depends(require_roles(*MANAGER))],
)
async def delete_file(
    bucket: StaffBucket,
    path: str,
    restaurant_id: UUID = Depends(get_restaurant_id),
) -> Response:
    if not path.startswith(f"{restaurant_id}/"):
        raise HTTPException(status_code=403, detail="File belongs to another restaurant")
    if not await storage.delete_file(bucket, path):
        raise HTTPException(status_code=404, detail="File not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# PUBLIC_INTERFACE
@router.post(
    "/public/restaurants/{slug}/payment-proof",
    response_model=UploadResult,
    status_code=status.HTTP_201_CREATED,
    summary="Upload payment proof",
    description="Customer upload of a bank transfer screenshot or PDF for a delivery order.",
)
async def upload_payment_proof(
    file: UploadFile = File(...),
    restaurant: Restaurant = Depends(get_public_restaurant),
) -> UploadResult:
    content = await _read_limited(file)
    return await storage.save_upload("payment-proofs", file.filename, content, folder=str(restaurant.id))


# PUBLIC_INTERFACE
@files_router.get(
    "/storage/{bucket}/{path:path}",
    summary="Serve stored file",
    response_description="The file content",
)
async def serve_file(bucket: str, path: str) -> Response:
    content = await storage.read_file(bucket, path)
    if content is None:
        raise HTTPException(status_code=404, detail="File not found")
    return Response(
        content,
        media_type=storage.content_type_for(path),
        headers={"Cache-Control": "public, max-age=3600"},
    )
