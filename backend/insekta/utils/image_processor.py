import logging
import os
import secrets
import time
from io import BytesIO
from typing import Optional

import aiofiles
from fastapi import HTTPException, UploadFile
from PIL import Image, ImageOps, UnidentifiedImageError

from insekta.config import PUBLIC_DIR, UPLOAD_DIR

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp")

_EXTENSIONS = {"jpeg": "jpg", "png": "png", "webp": "webp"}
_CENTERING = {"center": (0.5, 0.5), "top": (0.5, 0.0)}


async def read_upload(upload: Optional[UploadFile], max_mb: int) -> Optional[bytes]:
    """Bytes of an uploaded image, or None when nothing was uploaded"""
    if upload is None or not upload.filename:
        return None

    if (upload.content_type or "").lower() not in ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail="Format file tidak didukung! Hanya JPG, JPEG, PNG, WEBP.",
        )

    data = await upload.read()
    if len(data) > max_mb * 1024 * 1024:
        raise HTTPException(status_code=400, detail=f"Ukuran file maksimal {max_mb}MB.")
    return data


def _resize(image: Image.Image, size: int, fmt: str, fit: str, position: str) -> Image.Image:
    transparent = fmt in ("png", "webp")
    image = image.convert("RGBA" if transparent else "RGB")
    centering = _CENTERING.get(position, _CENTERING["center"])

    if fit == "contain":
        # letterbox into the box; transparent padding where the format allows it
        color = (0, 0, 0, 0) if transparent else (255, 255, 255)
        return ImageOps.pad(image, (size, size), color=color, centering=centering)
    return ImageOps.fit(image, (size, size), centering=centering)


async def save_image(
    data: bytes,
    folder: str,
    size: int = 500,
    fmt: str = "jpeg",
    fit: str = "cover",
    position: str = "center",
) -> str:
    """
    Resize `data` into a size x size box, re-encode it and store it under
    PUBLIC_DIR/uploads/<folder>. Returns the public path to keep in the database.
    """
    try:
        with Image.open(BytesIO(data)) as image:
            image.load()
            resized = _resize(image, size, fmt, fit, position)
    except (UnidentifiedImageError, OSError) as e:
        raise HTTPException(status_code=400, detail=f"Gagal memproses gambar: {e}")

    buffer = BytesIO()
    if fmt == "png":
        resized.save(buffer, format="PNG", optimize=True, compress_level=8)
    elif fmt == "webp":
        resized.save(buffer, format="WEBP", quality=80)
    else:
        resized.save(buffer, format="JPEG", quality=80, optimize=True)

    filename = f"{folder}-{int(time.time() * 1000)}-{secrets.randbelow(10**9)}.{_EXTENSIONS[fmt]}"
    upload_dir = os.path.join(UPLOAD_DIR, folder)
    os.makedirs(upload_dir, exist_ok=True)

    async with aiofiles.open(os.path.join(upload_dir, filename), "wb") as f:
        await f.write(buffer.getvalue())

    return f"/uploads/{folder}/{filename}"


def public_path(relative_path: str) -> str:
    return os.path.join(PUBLIC_DIR, relative_path.lstrip("/"))


def delete_image(relative_path: Optional[str]):
    """Remove a stored upload; a missing file is not an error"""
    if not relative_path or not relative_path.startswith("/uploads/"):
        return
    full_path = public_path(relative_path)
    try:
        if os.path.exists(full_path):
            os.remove(full_path)
    except OSError as e:
        logger.warning("[UPLOAD] could not delete %s: %s", relative_path, e)
