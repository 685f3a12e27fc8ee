"""File storage for uploaded menu images, 3D models and payment proofs."""
from __future__ import annotations

import logging
import mimetypes
import secrets
import string
import time
from pathlib import Path, PurePosixPath
from typing import Optional

import aiofiles
import aiofiles.os

from tableside.core.settings import get_app_settings
from tableside.schemas.storage import UploadResult
from tableside.services.errors import DomainValidationError, NotFoundError

logger = logging.getLogger(__name__)

BUCKETS: dict[str, frozenset[str]] = {
    "menu-images": frozenset({"jpg", "jpeg", "png", "webp", "gif"}),
    "models": frozenset({"glb", "gltf", "usdz"}),
    "payment-proofs": frozenset({"jpg", "jpeg", "png", "webp", "pdf"}),
}

_NAME_ALPHABET = string.ascii_lowercase + string.digits


def _storage_root() -> Path:
    return Path(get_app_settings().STORAGE_DIR)


def _check_bucket(bucket: str) -> None:
    if bucket not in BUCKETS:
        raise NotFoundError(f"Unknown bucket '{bucket}'")


def _safe_relative(path: str) -> PurePosixPath:
    """Reject absolute paths and parent references inside a bucket path."""
    rel = PurePosixPath(path)
    if not path or rel.is_absolute() or any(part in ("..", "") for part in rel.parts):
        raise DomainValidationError("Invalid file path")
    return rel


def _extension(filename: Optional[str]) -> str:
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1].lower()


# PUBLIC_INTERFACE
def generate_file_name(extension: str) -> str:
    """`<epoch ms>-<7 random chars>.<ext>`."""
    suffix = "".join(secrets.choice(_NAME_ALPHABET) for _ in range(7))
    return f"{int(time.time() * 1000)}-{suffix}.{extension}"


# PUBLIC_INTERFACE
def public_url(bucket: str, path: str) -> str:
    base = get_app_settings().PUBLIC_API_URL.rstrip("/")
    return f"{base}/storage/{bucket}/{path}"


# PUBLIC_INTERFACE
async def save_upload(bucket: str, filename: Optional[str], content: bytes, folder: Optional[str] = None) -> UploadResult:
    """
    Store an uploaded file under a generated name.

    Raises DomainValidationError for an empty or oversized file or an
    extension the bucket does not accept.
    """
    _check_bucket(bucket)
    ext = _extension(filename)
    if ext not in BUCKETS[bucket]:
        raise DomainValidationError(
            f"File type '.{ext}' is not allowed in {bucket}",
            details={"allowed": sorted(BUCKETS[bucket])},
        )
    if not content:
        raise DomainValidationError("File is empty")
    max_bytes = get_app_settings().MAX_UPLOAD_BYTES
    if len(content) > max_bytes:
        raise DomainValidationError("File is too large", details={"max_bytes": max_bytes})

    name = generate_file_name(ext)
    rel = _safe_relative(f"{folder.strip('/')}/{name}" if folder else name)
    target = _storage_root() / bucket / Path(*rel.parts)
    await aiofiles.os.makedirs(target.parent, exist_ok=True)
    async with aiofiles.open(target, "wb") as f:
        await f.write(content)

    logger.info("Stored %s/%s (%d bytes)", bucket, rel, len(content))
    return UploadResult(
        bucket=bucket,
        path=str(rel),
        url=public_url(bucket, str(rel)),
        size=len(content),
        content_type=mimetypes.guess_type(name)[0] or "application/octet-stream",
    )


# PUBLIC_INTERFACE
async def read_file(bucket: str, path: str) -> Optional[bytes]:
    _check_bucket(bucket)
    file_path = _storage_root() / bucket / Path(*_safe_relative(path).parts)
    if await aiofiles.os.path.isfile(file_path):
        async with aiofiles.open(file_path, "rb") as f:
            return await f.read()
    return None


# PUBLIC_INTERFACE
async def delete_file(bucket: str, path: str) -> bool:
    _check_bucket(bucket)
    file_path = _storage_root() / bucket / Path(*_safe_relative(path).parts)
    if await aiofiles.os.path.isfile(file_path):
        await aiofiles.os.remove(file_path)
        logger.info("Deleted %s/%s", bucket, path)
        return True
    return False


def content_type_for(path: str) -> str:
    return mimetypes.guess_type(path)[0] or "application/octet-stream"
