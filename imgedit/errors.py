from typing import Optional


class ImageEditorError(Exception):
    """Base error; ``message`` is safe to show to the user."""

    default_message = "An unknown error occurred."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ImageReadError(ImageEditorError):
    default_message = "Failed to read image file."


class NetworkError(ImageEditorError):
    default_message = "Failed to fetch image."


class EditServiceError(ImageEditorError):
    default_message = "Failed to edit image. The API returned an error."


class ValidationError(ImageEditorError):
    default_message = "Please provide an image and a prompt."
