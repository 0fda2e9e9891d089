import asyncio
import logging
from os import PathLike
from typing import BinaryIO, Optional, Union

import requests
from pydantic import ValidationError as ModelValidationError

from .errors import ImageReadError, NetworkError
from .models import ImageData
from .utils import (
    DEFAULT_MAX_IMAGE_BYTES,
    file_name,
    guess_media_type,
    is_image_media_type,
    log_and_raise_for_status,
    parse_media_type,
    read_image_bytes,
    read_response_bytes,
)

logger = logging.getLogger(__name__)

LocalFile = Union[str, PathLike, BinaryIO]


class ImageCodec:
    """Turns local files and remote URLs into ``ImageData``.

    Both decoders run their blocking I/O in a worker thread, so awaiting them
    never stalls the event loop. The outcome is either a complete image or an
    ``ImageReadError`` / ``NetworkError``; partial images are never returned.
    """

    def __init__(
            self,
            session: Optional[requests.Session] = None,
            timeout: float = 60.0,
            max_size: int = DEFAULT_MAX_IMAGE_BYTES
    ):
        self.session = session or requests.Session()
        self.timeout = timeout
        self.max_size = max_size

    async def decode_local_file(self, file: LocalFile, media_type: Optional[str] = None) -> ImageData:
        return await asyncio.to_thread(self._decode_local_file, file, media_type)

    async def decode_remote_resource(self, url: str) -> ImageData:
        return await asyncio.to_thread(self._decode_remote_resource, url)

    def _decode_local_file(self, file: LocalFile, media_type: Optional[str]) -> ImageData:
        name = file_name(file)
        media_type = media_type or guess_media_type(name)
        if not is_image_media_type(media_type):
            logger.warning("Rejected %r: declared type %r is not an image", name, media_type)
            raise ImageReadError(f"Unsupported file type: {name or 'unknown file'}. Choose a PNG or JPG image.")

        try:
            data = read_image_bytes(file, self.max_size)
        except (OSError, ValueError, TypeError) as e:
            logger.error("Reading %r failed: %s", name, e)
            raise ImageReadError() from e

        try:
            return ImageData.from_bytes(data, media_type)
        except ModelValidationError as e:
            logger.error("File %r produced no usable image: %s", name, e)
            raise ImageReadError() from e

    def _decode_remote_resource(self, url: str) -> ImageData:
        try:
            with self.session.get(url, timeout=self.timeout, stream=True) as response:
                log_and_raise_for_status(response)

                media_type = parse_media_type(response.headers.get("Content-Type"))
                if not is_image_media_type(media_type):
                    logger.error("Response from %s has non-image content type %r", url, media_type)
                    raise NetworkError(f"Response from {url} is not an image")

                try:
                    data = read_response_bytes(response, self.max_size)
                except ValueError as e:
                    logger.error("Image from %s rejected: %s", url, e)
                    raise NetworkError(f"Image from {url} exceeds {self.max_size} bytes") from e
        except requests.RequestException as e:
            logger.error("Fetching %s failed: %s", url, e)
            reason = getattr(getattr(e, "response", None), "reason", None)
            raise NetworkError(f"Failed to fetch image from {url}" + (f": {reason}" if reason else "")) from e

        try:
            return ImageData.from_bytes(data, media_type)
        except ModelValidationError as e:
            logger.error("Empty or malformed image from %s: %s", url, e)
            raise NetworkError(f"Response from {url} contained no image data") from e
