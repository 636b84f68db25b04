"""Image normalization applied before a receipt photo is sent for extraction."""

import io

MAX_IMAGE_DIMENSION = 3000  # Resize if either dimension exceeds this
JPEG_QUALITY = 95


class UnreadableImage(ValueError):
    """Raised when upload bytes cannot be decoded into a usable image."""


def _open_image(image_bytes: bytes):
    from PIL import Image

    try:
        img = Image.open(io.BytesIO(image_bytes))
        img.load()
    except Image.DecompressionBombError as e:
        raise UnreadableImage(f"Image too large to decode: {e}") from e
    except OSError as e:
        # Includes PIL.UnidentifiedImageError and truncated files
        raise UnreadableImage(f"Not a readable image: {e}") from e
    return img


def prepare_image_bytes(image_bytes: bytes, max_dimension: int = MAX_IMAGE_DIMENSION) -> bytes:
    """
    Normalize a receipt photo for upload.

    Applies the EXIF orientation, shrinks the image if either side exceeds
    max_dimension (keeping the aspect ratio) and re-encodes it as JPEG.

    Args:
        image_bytes: Image data as bytes
        max_dimension: Maximum allowed dimension (width or height)

    Returns:
        JPEG image bytes

    Raises:
        UnreadableImage: If the bytes are not an image, are truncated, or
            exceed Pillow's decompression-bomb pixel limit.
    """
    from PIL import Image, ImageOps

    img = ImageOps.exif_transpose(_open_image(image_bytes))

    width, height = img.size

    if width > max_dimension or height > max_dimension:
        if width > height:
            new_width = max_dimension
            new_height = int(height * (max_dimension / width))
        else:
            new_height = max_dimension
            new_width = int(width * (max_dimension / height))
        img = img.resize((new_width, new_height), Image.Resampling.LANCZOS)

    buffer = io.BytesIO()
    img.convert("RGB").save(buffer, format="JPEG", quality=JPEG_QUALITY)
    return buffer.getvalue()
