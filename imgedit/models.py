import base64
import binascii
import io

from PIL import Image
from pydantic import BaseModel, ConfigDict, Field, field_validator

REPR_PREVIEW_CHARS = 48


class ImageData(BaseModel):
    """Encoded image bytes plus the media type they were declared with."""

    model_config = ConfigDict(frozen=True)

    payload: str = Field(..., min_length=1)
    mime_type: str = Field(..., min_length=1, pattern=r"^[\w.+-]+/[\w.+-]+$")

    @field_validator("mime_type", mode="before")
    @classmethod
    def normalize_mime_type(cls, value):
        if isinstance(value, str):
            return value.split(";", 1)[0].strip().lower()
        return value

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str) -> "ImageData":
        return cls(payload=base64.b64encode(data).decode("ascii"), mime_type=mime_type)

    def to_bytes(self) -> bytes:
        try:
            return base64.b64decode(self.payload, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 payload: {e}") from e

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.payload}"

    def to_pil(self) -> Image.Image:
        return Image.open(io.BytesIO(self.to_bytes()))

    def __repr__(self) -> str:
        preview = self.to_data_url()[:REPR_PREVIEW_CHARS]
        return f"ImageData({preview}..., {len(self.payload)} chars)"


class EditRequest(BaseModel):
    model: str = Field(..., min_length=1)
    instruction: str
    image: ImageData

    @field_validator("instruction")
    @classmethod
    def instruction_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("instruction must not be empty")
        return value
