import logging
import os
import uuid
from typing import Optional
from urllib.parse import urlparse

import cloudinary
import cloudinary.uploader

from ..config import settings

logger = logging.getLogger(__name__)

UPLOAD_DIR = os.path.join(os.path.dirname(__file__), os.pardir, "static", "uploads")
LOCAL_URL_PREFIX = "/static/uploads/"


def _sniff_image_type(data: bytes) -> str | None:
    """Return a lowercase extension if bytes look like a common image, else None."""
    if not data or len(data) < 12:
        return None
    if data.startswith(b"\xFF\xD8\xFF"):
        return "jpg"
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "png"
    if data[:6] in (b"GIF87a", b"GIF89a"):
        return "gif"
    if data.startswith(b"RIFF") and data[8:12] == b"WEBP":
        return "webp"
    return None


def _ensure_cloudinary_configured() -> bool:
    """
    Configure cloudinary from CLOUDINARY_URL if available.
    Returns True if Cloudinary is configured and usable.
    """
    url = getattr(settings, "CLOUDINARY_URL", "") or os.getenv("CLOUDINARY_URL", "")
    if not url:
        return False
    try:
        cloudinary.config(cloudinary_url=url)
        return True
    except Exception:
        logger.warning("Invalid CLOUDINARY_URL; falling back to local uploads")
        return False


def save_image(file_bytes: bytes, original_filename: str | None = None, folder: str = "hostelhub") -> Optional[str]:
    """Save image to Cloudinary if configured; otherwise fallback to local uploads.

    Returns the public URL (secure) of the stored image, or None if input is not an
    image or is larger than UPLOAD_IMAGE_MAX_BYTES.
    """
    if not file_bytes:
        return None
    if len(file_bytes) > settings.UPLOAD_IMAGE_MAX_BYTES:
        logger.info("Rejected upload %s: %d bytes over limit", original_filename, len(file_bytes))
        return None

    kind = _sniff_image_type(file_bytes)
    if not kind:
        return None

    # Try Cloudinary first
    if _ensure_cloudinary_configured():
        try:
            public_id = uuid.uuid4().hex
            upload_res = cloudinary.uploader.upload(
                file_bytes,
                folder=folder,
                public_id=public_id,
                resource_type="image",
                overwrite=True,
            )
            url = upload_res.get("secure_url") or upload_res.get("url")
            if url:
                return url
        except Exception:
            logger.exception("Cloudinary upload failed for %s; saving locally", original_filename)

    # Fallback: local file save in hostelhub/static/uploads
    try:
        os.makedirs(UPLOAD_DIR, exist_ok=True)
        fname = f"{uuid.uuid4().hex}.{kind}"
        with open(os.path.join(UPLOAD_DIR, fname), "wb") as f:
            f.write(file_bytes)
        return f"{LOCAL_URL_PREFIX}{fname}"
    except OSError:
        logger.exception("Could not store upload %s locally", original_filename)
        return None


def cloudinary_public_id(url: str) -> str | None:
    """
    Extract the public id from a Cloudinary delivery URL, e.g.
    https://res.cloudinary.com/demo/image/upload/v1712/hostels/7/abc.jpg -> hostels/7/abc
    """
    path = urlparse(url).path
    if "/upload/" not in path:
        return None
    tail = path.split("/upload/", 1)[1]
    parts = tail.split("/")
    if parts and parts[0].startswith("v") and parts[0][1:].isdigit():
        parts = parts[1:]
    if not parts or not parts[-1]:
        return None
    parts[-1] = os.path.splitext(parts[-1])[0]
    return "/".join(parts)


def delete_image(url: str | None) -> bool:
    """Best-effort removal of a stored image. Never raises; returns True if something was deleted."""
    if not url:
        return False
    if url.startswith(LOCAL_URL_PREFIX):
        fname = os.path.basename(url[len(LOCAL_URL_PREFIX):])
        try:
            os.remove(os.path.join(UPLOAD_DIR, fname))
            return True
        except OSError:
            logger.warning("Could not delete local image %s", url)
            return False
    public_id = cloudinary_public_id(url)
    if not public_id or not _ensure_cloudinary_configured():
        logger.info("Skipping cleanup of non-managed image %s", url)
        return False
    try:
        res = cloudinary.uploader.destroy(public_id, resource_type="image")
        return res.get("result") == "ok"
    except Exception:
        logger.warning("Cloudinary delete failed for %s", url, exc_info=True)
        return False
