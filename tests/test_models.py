import base64

import pytest
from pydantic import ValidationError

from imgedit.models import EditRequest, ImageData


def test_from_bytes_round_trips(png_bytes):
    image = ImageData.from_bytes(png_bytes, "image/png")
    assert image.to_bytes() == png_bytes
    assert image.payload == base64.b64encode(png_bytes).decode("ascii")


def test_empty_payload_is_rejected():
    with pytest.raises(ValidationError):
        ImageData.from_bytes(b"", "image/png")


@pytest.mark.parametrize("mime_type", ["", "png", None])
def test_missing_or_malformed_mime_type_is_rejected(png_bytes, mime_type):
    with pytest.raises(ValidationError):
        ImageData.from_bytes(png_bytes, mime_type)


def test_mime_type_parameters_are_stripped(png_bytes):
    image = ImageData.from_bytes(png_bytes, "Image/JPEG; charset=binary")
    assert image.mime_type == "image/jpeg"


def test_image_is_immutable(source_image):
    with pytest.raises(ValidationError):
        source_image.mime_type = "image/gif"


def test_data_url(source_image):
    assert source_image.to_data_url().startswith("data:image/png;base64,")
    assert source_image.to_data_url().endswith(source_image.payload)


def test_to_pil_decodes_pixels(source_image):
    img = source_image.to_pil()
    assert img.size == (8, 8)
    assert img.convert("RGB").getpixel((0, 0)) == (200, 30, 30)


def test_repr_shows_short_data_url_preview(source_image):
    text = repr(source_image)
    assert text.startswith("ImageData(data:image/png;base64,")
    assert source_image.payload not in text
    assert str(len(source_image.payload)) in text


def test_invalid_base64_payload_fails_on_decode():
    image = ImageData(payload="not base64!", mime_type="image/png")
    with pytest.raises(ValueError):
        image.to_bytes()


@pytest.mark.parametrize("instruction", ["", "   ", "\n"])
def test_edit_request_requires_instruction(source_image, instruction):
    with pytest.raises(ValidationError):
        EditRequest(model="m", instruction=instruction, image=source_image)


def test_edit_request_keeps_instruction_verbatim(source_image):
    request = EditRequest(model="m", instruction=" make it black and white ", image=source_image)
    assert request.instruction == " make it black and white "
