import pytest

from imgedit.models import ImageData
from tests.stubs import make_png


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def source_image(png_bytes):
    return ImageData.from_bytes(png_bytes, "image/png")


@pytest.fixture
def edited_bytes():
    return make_png(color=(90, 90, 90))


@pytest.fixture
def png_file(tmp_path, png_bytes):
    path = tmp_path / "photo.png"
    path.write_bytes(png_bytes)
    return path
