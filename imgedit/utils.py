import logging
import mimetypes
from os import PathLike
from pathlib import Path
from typing import BinaryIO, Optional, Union

import requests

logger = logging.getLogger(__name__)

DEFAULT_MAX_IMAGE_BYTES = 50 * 1024 * 1024

mimetypes.add_type("image/webp", ".webp")


def read_image_bytes(
        image: Union[str, PathLike, bytes, BinaryIO],
        max_size: int = DEFAULT_MAX_IMAGE_BYTES
) -> bytes:
    if isinstance(image, (bytes, bytearray)):
        if len(image) > max_size:
            raise ValueError(f"Image size exceeds {max_size} bytes")
        return bytes(image)

    elif isinstance(image, (str, PathLike)):
        path = Path(image)
        if not path.exists():
            raise FileNotFoundError(f"Image file not found: {path}")
        if path.stat().st_size > max_size:
            raise ValueError(f"Image file too large: {path.stat().st_size} bytes")

        with open(path, "rb") as f:
            return f.read()

    elif hasattr(image, "read"):
        # one byte over the cap is enough to know it is too large
        data = image.read(max_size + 1)
        if len(data) > max_size:
            raise ValueError(f"Image size exceeds {max_size} bytes")
        return data

    else:
        raise TypeError(f"Unsupported image type: {type(image)}")


def read_response_bytes(
        response: requests.Response,
        max_size: int = DEFAULT_MAX_IMAGE_BYTES,
        chunk_size: int = 64 * 1024
) -> bytes:
    """Read a streamed body, giving up as soon as it passes ``max_size``."""
    declared = response.headers.get("Content-Length")
    if declared and declared.isdigit() and int(declared) > max_size:
        raise ValueError(f"Response size {declared} exceeds {max_size} bytes")

    buffer = bytearray()
    for chunk in response.iter_content(chunk_size=chunk_size):
        buffer.extend(chunk)
        if len(buffer) > max_size:
            raise ValueError(f"Response size exceeds {max_size} bytes")
    return bytes(buffer)


def guess_media_type(name: Union[str, PathLike, None]) -> Optional[str]:
    if not name:
        return None
    media_type, _ = mimetypes.guess_type(str(name))
    return media_type


def parse_media_type(content_type: Optional[str]) -> str:
    """Strip parameters from a Content-Type header: 'image/png; q=1' -> 'image/png'."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def is_image_media_type(media_type: Optional[str]) -> bool:
    return bool(media_type) and media_type.startswith("image/")


def log_and_raise_for_status(response: requests.Response):
    try:
        response.raise_for_status()
    except requests.HTTPError as e:
        logger.error("Request failed: %s", e)
        logger.debug("Response content: %r", (response.content or b"")[:200])
        raise


def file_name(image: Union[str, PathLike, BinaryIO]) -> str:
    if isinstance(image, (str, PathLike)):
        return Path(image).name
    return Path(str(getattr(image, "name", "") or "")).name
