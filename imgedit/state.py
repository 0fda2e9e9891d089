"""Editor state and the reducer that advances it.

``reduce`` is a pure function of (state, event). Every source load and every
edit is tagged with a request id; completion events whose id no longer
matches the latest one are stale and leave the state untouched.
"""

from dataclasses import dataclass, replace
from typing import Optional, Union

from .models import ImageData

NO_IMAGE_MESSAGE = "The model did not return an image. Try a different prompt."
MISSING_INPUT_MESSAGE = "Please provide an image and a prompt."
SOURCE_BUSY_MESSAGE = "Please wait for the image to finish loading."


@dataclass(frozen=True)
class EditorState:
    source_image: Optional[ImageData] = None
    edited_image: Optional[ImageData] = None
    prompt: str = ""
    source_loading: bool = False
    editing: bool = False
    error: Optional[str] = None
    source_request: int = 0  # id of the newest source load
    edit_request: int = 0  # id of the newest edit

    @property
    def can_submit(self) -> bool:
        return (
            not self.editing
            and not self.source_loading
            and bool(self.prompt.strip())
            and self.source_image is not None
        )

    @property
    def prompt_enabled(self) -> bool:
        return self.source_image is not None and not self.editing


# ----------------------------- events -----------------------------------------

@dataclass(frozen=True)
class SourceLoadStarted:
    request_id: int
    reset: bool = False  # user picked a new file: drop error, result and any running edit


@dataclass(frozen=True)
class SourceLoaded:
    request_id: int
    image: ImageData


@dataclass(frozen=True)
class SourceLoadFailed:
    request_id: int
    message: str


@dataclass(frozen=True)
class PromptChanged:
    text: str


@dataclass(frozen=True)
class SubmitRejected:
    message: str


@dataclass(frozen=True)
class EditStarted:
    request_id: int


@dataclass(frozen=True)
class EditSucceeded:
    request_id: int
    image: ImageData


@dataclass(frozen=True)
class EditReturnedNothing:
    request_id: int


@dataclass(frozen=True)
class EditFailed:
    request_id: int
    message: str


Event = Union[
    SourceLoadStarted, SourceLoaded, SourceLoadFailed, PromptChanged, SubmitRejected,
    EditStarted, EditSucceeded, EditReturnedNothing, EditFailed,
]


def is_stale(state: EditorState, event: Event) -> bool:
    if isinstance(event, (SourceLoaded, SourceLoadFailed)):
        return not state.source_loading or event.request_id != state.source_request
    if isinstance(event, (EditSucceeded, EditReturnedNothing, EditFailed)):
        return not state.editing or event.request_id != state.edit_request
    return False


def reduce(state: EditorState, event: Event) -> EditorState:
    if is_stale(state, event):
        return state

    if isinstance(event, SourceLoadStarted):
        if event.reset:
            return replace(
                state, source_loading=True, source_request=event.request_id,
                error=None, edited_image=None, editing=False,
            )
        return replace(state, source_loading=True, source_request=event.request_id, error=None)

    if isinstance(event, SourceLoaded):
        return replace(state, source_loading=False, source_image=event.image, error=None)

    if isinstance(event, SourceLoadFailed):
        return replace(state, source_loading=False, error=event.message)

    if isinstance(event, PromptChanged):
        return replace(state, prompt=event.text)

    if isinstance(event, SubmitRejected):
        return replace(state, error=event.message)

    if isinstance(event, EditStarted):
        return replace(state, editing=True, edit_request=event.request_id, error=None, edited_image=None)

    if isinstance(event, EditSucceeded):
        return replace(state, editing=False, edited_image=event.image, error=None)

    if isinstance(event, EditReturnedNothing):
        return replace(state, editing=False, error=NO_IMAGE_MESSAGE)

    if isinstance(event, EditFailed):
        return replace(state, editing=False, error=event.message)

    raise TypeError(f"Unsupported event: {type(event).__name__}")
