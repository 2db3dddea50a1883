"""Image helpers: loading single page files and downscaling pages before upload."""
from __future__ import annotations

import logging
import mimetypes
from pathlib import Path
from typing import Optional

import cv2
import numpy as np

from config import MAX_UPLOAD_DIMENSION, UPLOAD_JPEG_QUALITY
from comic.models import DisplayedImage, round_half_up

logger = logging.getLogger(__name__)


def load_image_file(file_path: Path) -> DisplayedImage:
    """
    Read a single page image from disk.

    :param file_path: Path to the image file.
    :return: DisplayedImage with the raw file bytes and a mime type guessed from the name.
    :raises OSError: if the file cannot be read.
    """
    data = Path(file_path).read_bytes()
    mime, _ = mimetypes.guess_type(str(file_path))
    if not mime or not mime.startswith("image/"):
        mime = "image/jpeg"
    return DisplayedImage(mime_type=mime, data=data)


def decode_image(image: DisplayedImage) -> np.ndarray:
    """
    Decode an encoded image into a BGR numpy array (OpenCV layout).

    :raises ValueError: if OpenCV cannot decode the payload.
    """
    buffer = np.frombuffer(image.data, dtype=np.uint8)
    if buffer.size == 0:
        raise ValueError("Image payload is empty")
    decoded = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    if decoded is None:
        raise ValueError(f"Failed to decode {image.mime_type} image")
    return decoded


def image_size(image: DisplayedImage) -> Optional[tuple[int, int]]:
    """Return (width, height) of an encoded image, or None if it cannot be decoded."""
    try:
        decoded = decode_image(image)
    except (ValueError, cv2.error):
        return None
    height, width = decoded.shape[:2]
    return (width, height)


def scaled_size(width: int, height: int, max_dimension: int) -> tuple[int, int]:
    """Return (width, height) so the larger side equals max_dimension, keeping aspect ratio."""
    if width > height:
        return (max_dimension, round_half_up(height * max_dimension / width))
    return (round_half_up(width * max_dimension / height), max_dimension)


def resize_for_upload(
    image: DisplayedImage,
    max_dimension: int = MAX_UPLOAD_DIMENSION,
    quality: float = UPLOAD_JPEG_QUALITY,
) -> DisplayedImage:
    """
    Downscale an image so neither side exceeds max_dimension and re-encode it as JPEG.

    Images already within bounds are returned as-is (same object, no re-encoding).
    Best-effort: any decode or encode failure returns the original image.
    """
    try:
        decoded = decode_image(image)
    except (ValueError, cv2.error) as exc:
        logger.debug("Skipping upload resize, image not decodable: %s", exc)
        return image

    height, width = decoded.shape[:2]
    if width <= max_dimension and height <= max_dimension:
        return image

    new_width, new_height = scaled_size(width, height, max_dimension)
    try:
        resized = cv2.resize(decoded, (new_width, new_height), interpolation=cv2.INTER_AREA)
        ok, encoded = cv2.imencode(
            ".jpg", resized, [int(cv2.IMWRITE_JPEG_QUALITY), round_half_up(quality * 100)]
        )
    except cv2.error as exc:
        logger.debug("Skipping upload resize, re-encoding failed: %s", exc)
        return image
    if not ok:
        logger.debug("Skipping upload resize, JPEG encoder returned no data")
        return image

    logger.debug("Resized page %dx%d -> %dx%d for upload", width, height, new_width, new_height)
    return DisplayedImage(mime_type="image/jpeg", data=encoded.tobytes())
