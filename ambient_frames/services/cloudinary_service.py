"""
Cloudinary service for page imagery managed from the admin dashboard.
Uploads, replaces, deletes and lists images per page section.
"""
import cloudinary
import cloudinary.uploader
from cloudinary.search import Search
from cloudinary.exceptions import Error as CloudinaryError
from ambient_frames.config import settings
from ambient_frames.utils.image_converter import convert_to_webp
import logging
import asyncio
import re
import time
from typing import Optional, Dict, Any, List

logger = logging.getLogger(__name__)

PAGE_SECTIONS = ("home", "about", "gallery", "services", "blog", "projects")

# Gallery images live in their own folder so they don't collide with the public gallery page assets
GALLERY_FOLDER = "ambient-gallery"

cloudinary.config(
    cloud_name=settings.CLOUDINARY_CLOUD_NAME,
    api_key=settings.CLOUDINARY_API_KEY,
    api_secret=settings.CLOUDINARY_API_SECRET,
    secure=True
)


class UploadGatewayError(Exception):
    """Raised when Cloudinary rejects an operation after all retries."""


def is_valid_section(section: Optional[str]) -> bool:
    return section in PAGE_SECTIONS


def sanitize_image_name(image_name: str) -> str:
    """Lower-case the name and collapse every run of non-alphanumerics into one underscore."""
    return re.sub(r"_+", "_", re.sub(r"[^a-z0-9]", "_", image_name.lower()))


def section_folder(section: str) -> str:
    folder = GALLERY_FOLDER if section == "gallery" else section
    return f"{settings.CLOUDINARY_ROOT_FOLDER}/{folder}"


def build_public_id(section: str, image_name: str, timestamp_ms: Optional[int] = None) -> str:
    """
    Storage path for a new upload: `<root>/<folder>/<sanitized-name>_<epoch-ms>`.
    """
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{section_folder(section)}/{sanitize_image_name(image_name)}_{timestamp_ms}"


async def upload_image(
    file_bytes: bytes,
    section: str,
    image_name: str,
    max_retries: int = 3
) -> Dict[str, str]:
    """
    Upload image bytes to the section folder with retry logic.

    Returns:
        dict: {"url": secure URL, "public_id": Cloudinary public ID}

    Raises:
        UploadGatewayError: If upload fails after all retries
    """
    payload, converted = await asyncio.to_thread(convert_to_webp, file_bytes)
    public_id = build_public_id(section, image_name)

    for attempt in range(max_retries):
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload,
                payload,
                public_id=public_id,
                overwrite=True,
                resource_type="image",
                transformation=[
                    {"quality": "auto:best"},
                    {"fetch_format": "auto"},
                ]
            )

            logger.info(f"Uploaded image {result['public_id']} (webp={converted})")
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
            raise UploadGatewayError("Failed to upload image to Cloudinary") from e


async def delete_image(public_id: str, max_retries: int = 3) -> bool:
    """
    Delete an image from Cloudinary.

    Returns:
        bool: True if Cloudinary reports the asset as removed

    Raises:
        UploadGatewayError: If the API call fails after all retries
    """
    for attempt in range(max_retries):
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.destroy,
                public_id,
                invalidate=True,  # Invalidate CDN cache
                resource_type="image"
            )

            if result.get("result") == "ok":
                logger.info(f"Deleted image from Cloudinary: {public_id}")
                return True

            logger.warning(f"Unexpected Cloudinary delete result for {public_id}: {result}")
            return False

        except CloudinaryError as e:
            logger.warning(f"Cloudinary delete error (attempt {attempt + 1}/{max_retries}) for {public_id}: {str(e)}")

            if attempt < max_retries - 1:
                await asyncio.sleep(2 ** attempt)
                continue

            logger.error(f"Cloudinary delete failed after {max_retries} attempts for {public_id}: {str(e)}")
            raise UploadGatewayError("Failed to delete image from Cloudinary") from e


async def replace_image(
    file_bytes: bytes,
    section: str,
    image_name: str,
    old_public_id: Optional[str] = None
) -> Dict[str, Any]:
    """
    Upload a new version of a page image, removing the previous one first.

    Removal of the old asset is best effort: a failure is logged and the
    upload still goes ahead, which can leave an orphaned asset behind.

    Returns:
        dict: {"url", "public_id", "deleted_old"}
    """
    deleted_old = False

    if old_public_id:
        try:
            deleted_old = await delete_image(old_public_id)
            if not deleted_old:
                logger.warning(f"Old image {old_public_id} was not removed; it may be orphaned")
        except UploadGatewayError as e:
            logger.warning(f"Failed to delete old image {old_public_id}, continuing with upload: {str(e)}")

    result = await upload_image(file_bytes, section, image_name)
    return {**result, "deleted_old": deleted_old}


async def list_section_images(section: str) -> List[Dict[str, Any]]:
    """
    List images stored in a section folder, newest first (max 100).
    Search failures are logged and reported as an empty folder.
    """
    folder = section_folder(section)
    search = (
        Search()
        .expression(f"folder:{folder}")
        .sort_by("created_at", "desc")
        .max_results(100)
    )

    try:
        result = await asyncio.to_thread(search.execute)
    except Exception as e:
        logger.error(f"Cloudinary folder search failed for {folder}: {str(e)}", exc_info=True)
        return []

    return [
        {
            "publicId": resource["public_id"],
            "url": resource["secure_url"],
            "width": resource.get("width"),
            "height": resource.get("height"),
            "createdAt": resource.get("created_at"),
        }
        for resource in result.get("resources", [])
    ]


def validate_cloudinary_config() -> bool:
    """
    Validate that Cloudinary is properly configured.

    Returns:
        bool: True if Cloudinary is configured, False otherwise
    """
    if not settings.CLOUDINARY_CLOUD_NAME:
        logger.warning("CLOUDINARY_CLOUD_NAME not configured")
        return False
    if not settings.CLOUDINARY_API_KEY:
        logger.warning("CLOUDINARY_API_KEY not configured")
        return False
    if not settings.CLOUDINARY_API_SECRET:
        logger.warning("CLOUDINARY_API_SECRET not configured")
        return False

    return True
