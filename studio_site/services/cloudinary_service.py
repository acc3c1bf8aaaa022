"""
Cloudinary service for gallery photo uploads.
The SDK is blocking, so calls run in a worker thread to keep the event loop free.
"""
import cloudinary
import cloudinary.uploader
from cloudinary.exceptions import Error as CloudinaryError
import logging
import asyncio
from typing import Any, Dict

from studio_site.config import Settings

logger = logging.getLogger(__name__)


def configure_cloudinary(settings: Settings) -> bool:
    """
    Configure the Cloudinary SDK from settings.

    Returns:
        bool: True if all credentials are present, False otherwise
    """
    cloudinary.config(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=settings.CLOUDINARY_API_SECRET,
        secure=True  # Always use HTTPS for secure URLs
    )

    missing = [
        name for name in ("CLOUDINARY_CLOUD_NAME", "CLOUDINARY_API_KEY", "CLOUDINARY_API_SECRET")
        if not getattr(settings, name)
    ]
    if missing:
        logger.warning(f"Cloudinary not configured, missing: {', '.join(missing)}")
        return False
    return True


async def upload_photo(file: Any, gallery_id: int, max_retries: int = 3) -> Dict[str, Any]:
    """
    Upload a gallery photo with automatic optimization and retry logic.

    Args:
        file: File object or bytes to upload
        gallery_id: Owning gallery, used as the Cloudinary folder
        max_retries: Maximum number of attempts for transient failures

    Returns:
        dict: url and public_id of the uploaded image

    Raises:
        CloudinaryError: If upload fails after all retries
    """
    folder = f"galleries/{gallery_id}"

    for attempt in range(max_retries):
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload,
                file,
                folder=folder,
                fetch_format="auto",  # Auto-select best format (WebP, AVIF, etc.)
                quality="auto",
                transformation=[
                    {"width": 2560, "height": 2560, "crop": "limit"}
                ],
            )

            logger.info(f"Uploaded photo to Cloudinary: {result['public_id']}")
            return {
                "url": result["secure_url"],
                "public_id": result["public_id"],
            }

        except CloudinaryError as e:
            logger.warning(f"Cloudinary upload error (attempt {attempt + 1}/{max_retries}): {str(e)}")

            if attempt < max_retries - 1:
                await asyncio.sleep(2 ** attempt)  # 1s, 2s, 4s backoff
                continue

            logger.error(f"Cloudinary upload failed after {max_retries} attempts: {str(e)}")
            raise
