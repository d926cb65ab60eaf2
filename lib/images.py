# =============================================================================
# lib/images.py - Image Archive Correlation
# =============================================================================
# Matches images inside a ZIP archive to supplier codes and uploads them.
#
# Filename convention:
#   F001-front.jpg -> F001   (text before the first hyphen)
#   F001.png       -> F001   (no hyphen: text before the first dot)
#
# Correlation is case-sensitive: "F001-a.jpg" and "f001-b.PNG" produce two
# different keys. Uploads run concurrently; a failed upload is logged and
# skipped without affecting the other files.
#
# Usage:
#   correlation = await correlate_images(zip_bytes, uploader)
#   correlation.image_map  # {"F001": ["https://.../F001/ab12.jpg"]}
# =============================================================================

from __future__ import annotations

import asyncio
import io
import logging
import mimetypes
import posixpath
import uuid
import zipfile
from dataclasses import dataclass, field
from typing import Callable

from core.models.imports import ImageMap
from lib.utils import ApplicationError

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp"}

# (storage_path, content, content_type) -> public URL; raises on failure
ImageUploader = Callable[[str, bytes, str], str]


class ArchiveReadError(ApplicationError):
    """Raised when the uploaded archive is not a readable ZIP file."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(
            message,
            code="ARCHIVE_READ_ERROR",
            suggestion="Upload a .zip file containing images named <code>-<suffix>.<ext>",
            details=details,
        )


@dataclass
class ArchiveImage:
    """One image entry from the archive, already correlated to a code."""
    entry_name: str
    supplier_code: str
    extension: str
    content: bytes


@dataclass
class ImageCorrelation:
    """Outcome of correlating and uploading an archive."""
    image_map: ImageMap = field(default_factory=dict)
    uploaded: int = 0
    failed: int = 0
    failed_files: list[str] = field(default_factory=list)


def file_extension(filename: str) -> str:
    """Lowercased extension without the dot ("" if none)."""
    base = posixpath.basename(filename)
    return base.rsplit(".", 1)[-1].lower() if "." in base else ""


def is_image_filename(filename: str) -> bool:
    """True for jpg/jpeg/png/gif/webp, case-insensitive."""
    return file_extension(filename) in IMAGE_EXTENSIONS


def derive_supplier_code(filename: str) -> str | None:
    """
    Derive the supplier code from an image filename.

    Only the basename is used, so folders inside the archive don't matter.

    Args:
        filename: Archive entry name, e.g. "fotos/F001-1.jpg"

    Returns:
        The code ("F001"), or None if it would be empty

    Example:
        derive_supplier_code("F001-img1.jpg")  # "F001"
        derive_supplier_code("F002.png")       # "F002"
        derive_supplier_code("-x.png")         # None
    """
    base = posixpath.basename(filename)
    if "-" in base:
        code = base.split("-", 1)[0]
    else:
        code = base.split(".", 1)[0]
    code = code.strip()
    return code or None


def _open_archive(archive: bytes) -> zipfile.ZipFile:
    try:
        return zipfile.ZipFile(io.BytesIO(archive))
    except (zipfile.BadZipFile, OSError) as e:
        raise ArchiveReadError(f"Invalid ZIP archive: {e}") from e


def iter_archive_images(archive: bytes) -> list[ArchiveImage]:
    """
    Read every correlatable image in the archive.

    Skips directories, non-image files and entries with no derivable code.

    Raises:
        ArchiveReadError: If the archive cannot be opened or read
    """
    images: list[ArchiveImage] = []

    with _open_archive(archive) as zf:
        for info in zf.infolist():
            if info.is_dir():
                continue
            if not is_image_filename(info.filename):
                continue

            code = derive_supplier_code(info.filename)
            if code is None:
                logger.debug(f"Skipping {info.filename}: no supplier code")
                continue

            try:
                content = zf.read(info)
            except (zipfile.BadZipFile, OSError) as e:
                raise ArchiveReadError(
                    f"Failed to read '{info.filename}' from archive: {e}",
                    details={"entry": info.filename},
                ) from e

            images.append(ArchiveImage(
                entry_name=info.filename,
                supplier_code=code,
                extension=file_extension(info.filename),
                content=content,
            ))

    return images


def list_archive_codes(archive: bytes) -> set[str]:
    """Supplier codes that have at least one image in the archive (no upload)."""
    codes: set[str] = set()
    with _open_archive(archive) as zf:
        for info in zf.infolist():
            if info.is_dir() or not is_image_filename(info.filename):
                continue
            code = derive_supplier_code(info.filename)
            if code is not None:
                codes.add(code)
    return codes


def build_storage_path(supplier_code: str, extension: str) -> str:
    """Storage path namespaced by code, with a unique filename."""
    return f"{supplier_code}/{uuid.uuid4().hex}.{extension}"


def _content_type(extension: str) -> str:
    return mimetypes.types_map.get(f".{extension}", "application/octet-stream")


async def _upload_one(image: ArchiveImage, uploader: ImageUploader) -> str | None:
    path = build_storage_path(image.supplier_code, image.extension)
    try:
        url = await asyncio.to_thread(uploader, path, image.content, _content_type(image.extension))
    except Exception as e:
        logger.error(f"Failed to upload {image.entry_name}: {e}")
        return None

    if not url:
        logger.error(f"No public URL returned for {image.entry_name}")
        return None
    return url


async def correlate_images(archive: bytes, uploader: ImageUploader) -> ImageCorrelation:
    """
    Extract, upload and correlate every image in an archive.

    Args:
        archive: ZIP file bytes
        uploader: Callable that stores one file and returns its public URL

    Returns:
        ImageCorrelation with the code -> URLs map and upload counters.
        URLs keep archive order per code.

    Raises:
        ArchiveReadError: If the archive itself is unreadable
    """
    images = iter_archive_images(archive)
    urls = await asyncio.gather(*(_upload_one(image, uploader) for image in images))

    correlation = ImageCorrelation()
    for image, url in zip(images, urls):
        if url is None:
            correlation.failed += 1
            correlation.failed_files.append(image.entry_name)
            continue
        correlation.image_map.setdefault(image.supplier_code, []).append(url)
        correlation.uploaded += 1

    logger.info(
        f"Correlated {correlation.uploaded} images to {len(correlation.image_map)} suppliers "
        f"({correlation.failed} failed)"
    )
    return correlation
