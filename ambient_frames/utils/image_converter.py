"""
Image conversion utility for page imagery.
Re-encodes uploads as WebP before they are sent to Cloudinary.
"""
import io
import logging
from typing import Optional, Tuple
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

DEFAULT_WEBP_QUALITY = 85
DEFAULT_WEBP_METHOD = 6    # 0-6, higher = better compression but slower
MAX_DIMENSION = 3840       # Longest edge kept for hero/background images


def convert_to_webp(
    image_bytes: bytes,
    quality: int = DEFAULT_WEBP_QUALITY,
    method: int = DEFAULT_WEBP_METHOD,
    max_dimension: Optional[int] = MAX_DIMENSION,
) -> Tuple[bytes, bool]:
    """
    Convert image bytes to WebP format to reduce file size.

    Returns the original bytes when the input is already WebP, cannot be
    identified, or the conversion does not make it smaller.

    Returns:
        Tuple[bytes, bool]: (bytes to upload, whether they were converted)
    """
    try:
        image = Image.open(io.BytesIO(image_bytes))

        if image.format == 'WEBP':
            return image_bytes, False

        if image.mode == 'P':
            image = image.convert('RGBA')
        elif image.mode not in ('RGB', 'RGBA', 'LA'):
            # CMYK, grayscale and other modes
            image = image.convert('RGB')

        if max_dimension:
            width, height = image.size
            if width > max_dimension or height > max_dimension:
                image.thumbnail((max_dimension, max_dimension), Image.Resampling.LANCZOS)
                logger.info(f"Downscaled image from {width}x{height} to {image.size[0]}x{image.size[1]}")

        buffer = io.BytesIO()
        image.save(buffer, format='WEBP', quality=quality, method=method)
        webp_bytes = buffer.getvalue()

        if len(webp_bytes) >= len(image_bytes):
            logger.debug("WebP conversion did not reduce size, keeping original")
            return image_bytes, False

        logger.info(f"Converted image to WebP: {len(image_bytes):,} bytes -> {len(webp_bytes):,} bytes")
        return webp_bytes, True

    except UnidentifiedImageError as e:
        logger.warning(f"Cannot identify image format, uploading original: {str(e)}")
        return image_bytes, False

    except OSError as e:
        logger.error(f"Error converting image to WebP, uploading original: {str(e)}", exc_info=True)
        return image_bytes, False
