import asyncio
import logging
from typing import Any, List, Optional

from google import genai
from google.genai import types
from pydantic import ValidationError as ModelValidationError

from .config import Settings
from .errors import EditServiceError, ValidationError
from .models import EditRequest, ImageData

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash-image"


class ImageEditClient:
    """Sends one image plus an instruction to a Gemini image model.

    ``request_edit`` makes exactly one attempt per call. The first inline
    image in the response is returned; ``None`` means the model answered
    without producing an image.
    """

    def __init__(self, api_key: Optional[str] = None, model: str = DEFAULT_MODEL, client: Any = None):
        self.model = model
        if client is not None:
            self.client = client
        elif api_key:
            self.client = genai.Client(api_key=api_key)
        else:
            logger.warning("API key is not set. Image edits will fail until one is configured.")
            self.client = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "ImageEditClient":
        return cls(api_key=settings.api_key, model=settings.image_model)

    async def request_edit(self, image: ImageData, instruction: str) -> Optional[ImageData]:
        try:
            request = EditRequest(model=self.model, instruction=instruction, image=image)
        except ModelValidationError as e:
            raise ValidationError() from e

        if self.client is None:
            logger.error("Edit requested without an API key")
            raise EditServiceError()

        try:
            # blocking SDK call in a worker thread; the Qt-backed loop has no socket support
            response = await asyncio.to_thread(
                self.client.models.generate_content,
                model=request.model,
                contents=build_contents(request),
                config=types.GenerateContentConfig(response_modalities=[types.Modality.IMAGE]),
            )
            return extract_image(response)
        except Exception as e:
            logger.exception("Error editing image with %s", request.model)
            raise EditServiceError() from e


def build_contents(request: EditRequest) -> List[types.Content]:
    parts = [
        types.Part.from_bytes(data=request.image.to_bytes(), mime_type=request.image.mime_type),
        types.Part(text=request.instruction),
    ]
    return [types.Content(role="user", parts=parts)]


def extract_image(response: types.GenerateContentResponse) -> Optional[ImageData]:
    candidates = response.candidates or []
    if not candidates or candidates[0].content is None:
        return None

    for part in candidates[0].content.parts or []:
        inline = part.inline_data
        if inline is not None and inline.data:
            return ImageData.from_bytes(inline.data, inline.mime_type)
    return None
