import asyncio
import itertools
import logging
from typing import Callable, List, Optional

from .codec import ImageCodec, LocalFile
from .editing import ImageEditClient
from .errors import ImageEditorError
from .state import (
    MISSING_INPUT_MESSAGE,
    SOURCE_BUSY_MESSAGE,
    EditFailed,
    EditorState,
    EditReturnedNothing,
    EditStarted,
    EditSucceeded,
    Event,
    PromptChanged,
    SourceLoaded,
    SourceLoadFailed,
    SourceLoadStarted,
    SubmitRejected,
    is_stale,
    reduce,
)

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_ERROR = "Failed to load default image. Please upload your own."
UNKNOWN_ERROR = "An unknown error occurred."

Listener = Callable[[EditorState], None]


class EditorController:
    """Sequences codec and edit client calls and owns the editor state.

    State only changes through ``dispatch``, which runs the pure reducer and
    then notifies listeners. Failures never escape the public coroutines;
    they end up in ``state.error``.
    """

    def __init__(
            self,
            codec: ImageCodec,
            edit_client: ImageEditClient,
            default_image_url: Optional[str] = None,
            state: Optional[EditorState] = None
    ):
        self.codec = codec
        self.edit_client = edit_client
        self.default_image_url = default_image_url
        self._state = state or EditorState()
        self._listeners: List[Listener] = []
        self._request_ids = itertools.count(self._state_max_request_id() + 1)
        self._edit_task: Optional[asyncio.Task] = None

    @property
    def state(self) -> EditorState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, event: Event) -> EditorState:
        if is_stale(self._state, event):
            logger.debug("Discarding stale %s", type(event).__name__)
            return self._state
        self._state = reduce(self._state, event)
        for listener in list(self._listeners):
            listener(self._state)
        return self._state

    # ----------------------------- user actions ---------------------------------

    async def load_default(self) -> None:
        if not self.default_image_url:
            return
        request_id = next(self._request_ids)
        self.dispatch(SourceLoadStarted(request_id))
        try:
            image = await self.codec.decode_remote_resource(self.default_image_url)
        except ImageEditorError as e:
            logger.error("Default image unavailable: %s", e)
            self.dispatch(SourceLoadFailed(request_id, DEFAULT_IMAGE_ERROR))
        except Exception:
            logger.exception("Unexpected failure loading the default image")
            self.dispatch(SourceLoadFailed(request_id, DEFAULT_IMAGE_ERROR))
        else:
            self.dispatch(SourceLoaded(request_id, image))

    async def select_file(self, file: LocalFile, media_type: Optional[str] = None) -> None:
        self._cancel_edit()
        request_id = next(self._request_ids)
        self.dispatch(SourceLoadStarted(request_id, reset=True))
        try:
            image = await self.codec.decode_local_file(file, media_type)
        except ImageEditorError as e:
            self.dispatch(SourceLoadFailed(request_id, e.message))
        except Exception:
            logger.exception("Unexpected failure reading %r", file)
            self.dispatch(SourceLoadFailed(request_id, UNKNOWN_ERROR))
        else:
            self.dispatch(SourceLoaded(request_id, image))

    def set_prompt(self, text: str) -> None:
        self.dispatch(PromptChanged(text))

    async def submit(self) -> bool:
        """Run one edit with the current image and prompt.

        Returns True once a request has been sent. Returns False when the
        submit is rejected; a submit during a running edit is rejected
        without touching state.
        """
        state = self._state
        if state.editing:
            logger.info("Submit ignored: an edit is already in progress")
            return False
        if not state.prompt.strip() or state.source_image is None:
            self.dispatch(SubmitRejected(MISSING_INPUT_MESSAGE))
            return False
        if state.source_loading:
            self.dispatch(SubmitRejected(SOURCE_BUSY_MESSAGE))
            return False

        request_id = next(self._request_ids)
        self.dispatch(EditStarted(request_id))
        self._edit_task = asyncio.current_task()
        try:
            result = await self.edit_client.request_edit(state.source_image, state.prompt)
        except asyncio.CancelledError:
            logger.info("Edit %d cancelled", request_id)
            raise
        except ImageEditorError as e:
            self.dispatch(EditFailed(request_id, e.message))
        except Exception:
            logger.exception("Unexpected failure during edit %d", request_id)
            self.dispatch(EditFailed(request_id, UNKNOWN_ERROR))
        else:
            if result is None:
                self.dispatch(EditReturnedNothing(request_id))
            else:
                self.dispatch(EditSucceeded(request_id, result))
        finally:
            if self._edit_task is asyncio.current_task():
                self._edit_task = None
        return True

    def _cancel_edit(self) -> None:
        task = self._edit_task
        self._edit_task = None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    def _state_max_request_id(self) -> int:
        return max(self._state.source_request, self._state.edit_request)
