import asyncio
import logging

import pytest
from google.genai import types

from imgedit.config import Settings
from imgedit.editing import DEFAULT_MODEL, ImageEditClient, build_contents, extract_image
from imgedit.errors import EditServiceError, ValidationError
from imgedit.models import EditRequest, ImageData
from tests.stubs import StubModels, image_response, stub_genai_client, text_only_response

INSTRUCTION = "make it black and white"


def request_edit(client, image, instruction=INSTRUCTION):
    return asyncio.run(client.request_edit(image, instruction))


def test_returns_first_inline_image(source_image, edited_bytes):
    models = StubModels(response=image_response(edited_bytes, "image/png"))
    client = ImageEditClient(client=stub_genai_client(models))

    result = request_edit(client, source_image)

    assert result == ImageData.from_bytes(edited_bytes, "image/png")


def test_sends_image_then_instruction_with_image_only_modality(source_image, edited_bytes):
    models = StubModels(response=image_response(edited_bytes))
    client = ImageEditClient(model="custom-image-model", client=stub_genai_client(models))

    request_edit(client, source_image)

    assert len(models.calls) == 1
    call = models.calls[0]
    assert call["model"] == "custom-image-model"
    parts = call["contents"][0].parts
    assert parts[0].inline_data.data == source_image.to_bytes()
    assert parts[0].inline_data.mime_type == "image/png"
    assert parts[1].text == INSTRUCTION
    assert call["config"].response_modalities == [types.Modality.IMAGE]


def test_no_image_part_returns_none(source_image):
    models = StubModels(response=text_only_response())
    assert request_edit(ImageEditClient(client=stub_genai_client(models)), source_image) is None


def test_no_candidates_returns_none(source_image):
    models = StubModels(response=types.GenerateContentResponse(candidates=[]))
    assert request_edit(ImageEditClient(client=stub_genai_client(models)), source_image) is None


def test_service_error_is_normalized_and_logged(source_image, caplog):
    models = StubModels(error=ConnectionError("socket closed: secret-detail"))
    client = ImageEditClient(client=stub_genai_client(models))

    with caplog.at_level(logging.ERROR, logger="imgedit.editing"):
        with pytest.raises(EditServiceError) as exc_info:
            request_edit(client, source_image)

    assert str(exc_info.value) == "Failed to edit image. The API returned an error."
    assert "secret-detail" not in exc_info.value.message
    assert "secret-detail" in caplog.text


def test_inline_image_without_mime_type_is_a_service_error(source_image, edited_bytes):
    response = types.GenerateContentResponse(candidates=[
        types.Candidate(content=types.Content(parts=[
            types.Part(inline_data=types.Blob(data=edited_bytes)),
        ]))
    ])
    client = ImageEditClient(client=stub_genai_client(StubModels(response=response)))
    with pytest.raises(EditServiceError):
        request_edit(client, source_image)


@pytest.mark.parametrize("instruction", ["", "   "])
def test_empty_instruction_never_reaches_the_service(source_image, instruction):
    models = StubModels(response=text_only_response())
    with pytest.raises(ValidationError):
        request_edit(ImageEditClient(client=stub_genai_client(models)), source_image, instruction)
    assert models.calls == []


def test_missing_api_key_warns_and_fails_on_call(source_image, caplog):
    with caplog.at_level(logging.WARNING, logger="imgedit.editing"):
        client = ImageEditClient(api_key=None)
    assert "API key is not set" in caplog.text

    with pytest.raises(EditServiceError):
        request_edit(client, source_image)


def test_from_settings_uses_configured_model():
    client = ImageEditClient.from_settings(Settings(_env_file=None, api_key="test-key", image_model="other-model"))
    assert client.model == "other-model"
    assert client.client is not None


def test_default_model():
    assert ImageEditClient(client=object()).model == DEFAULT_MODEL


def test_build_contents(source_image):
    contents = build_contents(EditRequest(model="m", instruction="crop", image=source_image))
    assert contents[0].role == "user"
    assert [p.text for p in contents[0].parts] == [None, "crop"]


def test_extract_image_skips_text_parts(edited_bytes):
    image = extract_image(image_response(edited_bytes, "image/webp"))
    assert image.mime_type == "image/webp"
    assert image.to_bytes() == edited_bytes
