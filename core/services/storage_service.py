# =============================================================================
# core/services/storage_service.py - Supabase Storage Operations
# =============================================================================
# Handles file upload/download operations with Supabase Storage:
# - Supplier images (public bucket, served by URL)
# - Staged import files (spreadsheet + archive handed to the worker)
# =============================================================================

import logging
import uuid

from lib.supabase_client import SupabaseClient
from app.config import settings
from app.exceptions import StorageUploadError, StorageDownloadError

logger = logging.getLogger(__name__)


class StorageService:
    """
    Service for Supabase Storage operations.

    Images go to SUPPLIER_IMAGES_BUCKET, staged import files to
    IMPORT_FILES_BUCKET.
    """

    @staticmethod
    def ensure_bucket(name: str, public: bool = True) -> None:
        """
        Create a bucket if it doesn't exist yet.

        Args:
            name: Bucket name
            public: Whether objects are readable by URL without auth
        """
        client = SupabaseClient.get_client()

        try:
            existing = {bucket.name for bucket in client.storage.list_buckets()}
            if name in existing:
                return
            client.storage.create_bucket(name, options={"public": public})
            logger.info(f"Created storage bucket: {name} (public={public})")

        except Exception as e:
            logger.error(f"Failed to ensure bucket {name}: {e}")
            raise StorageUploadError(str(e))

    @staticmethod
    def upload_image(path: str, content: bytes, content_type: str) -> str:
        """
        Upload one supplier image and return its public URL.

        Used as the uploader of lib.images.correlate_images, so it may run
        in worker threads.

        Args:
            path: Storage path, e.g. "F001/ab12.jpg"
            content: Image bytes
            content_type: MIME type

        Returns:
            Public URL of the stored image

        Raises:
            StorageUploadError: If upload fails
        """
        client = SupabaseClient.get_client()

        try:
            client.storage.from_(settings.SUPPLIER_IMAGES_BUCKET).upload(
                path=path,
                file=content,
                file_options={"content-type": content_type, "upsert": "true"}
            )
            logger.debug(f"Uploaded image to storage: {path}")

        except Exception as e:
            logger.error(f"Image upload failed for {path}: {e}")
            raise StorageUploadError(str(e))

        return StorageService.get_public_url(path)

    @staticmethod
    def get_public_url(storage_path: str, bucket: str | None = None) -> str:
        """
        Get a public URL for a storage file.

        Args:
            storage_path: Path in storage bucket
            bucket: Bucket name (defaults to the supplier images bucket)

        Returns:
            Public URL string
        """
        client = SupabaseClient.get_client()
        bucket = bucket or settings.SUPPLIER_IMAGES_BUCKET

        try:
            return client.storage.from_(bucket).get_public_url(storage_path)
        except Exception as e:
            logger.error(f"Failed to get public URL: {e}")
            raise

    @staticmethod
    def upload_import_file(
        file_content: bytes,
        filename: str,
        content_type: str = "application/octet-stream",
    ) -> str:
        """
        Stage an uploaded import file for the background worker.

        Args:
            file_content: File bytes
            filename: Original filename

        Returns:
            Storage path inside IMPORT_FILES_BUCKET

        Raises:
            StorageUploadError: If upload fails
        """
        client = SupabaseClient.get_client()

        # Build storage path: imports/{batch}/{filename}
        path = f"imports/{uuid.uuid4().hex}/{filename}"

        try:
            client.storage.from_(settings.IMPORT_FILES_BUCKET).upload(
                path=path,
                file=file_content,
                file_options={"content-type": content_type, "upsert": "true"}
            )

            logger.info(f"Staged import file in storage: {path}")
            return path

        except Exception as e:
            logger.error(f"Storage upload failed: {e}")
            raise StorageUploadError(str(e))

    @staticmethod
    def download_raw(storage_path: str) -> bytes:
        """
        Download a staged import file.

        Args:
            storage_path: Path in IMPORT_FILES_BUCKET

        Returns:
            File content as bytes

        Raises:
            StorageDownloadError: If download fails
        """
        client = SupabaseClient.get_client()

        try:
            response = client.storage.from_(settings.IMPORT_FILES_BUCKET).download(storage_path)
            logger.info(f"Downloaded raw file from storage: {storage_path}")
            return response

        except Exception as e:
            logger.error(f"Storage download failed: {e}")
            raise StorageDownloadError(storage_path, str(e))

    @staticmethod
    def delete_import_files(paths: list[str]) -> bool:
        """
        Remove staged import files once a run has finished.

        Returns:
            True if deleted successfully
        """
        client = SupabaseClient.get_client()

        try:
            client.storage.from_(settings.IMPORT_FILES_BUCKET).remove(paths)
            logger.info(f"Deleted {len(paths)} staged import file(s)")
            return True

        except Exception as e:
            logger.error(f"Failed to delete staged files: {e}")
            return False
