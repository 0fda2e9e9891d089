from .codec import ImageCodec
from .config import Settings, get_settings
from .controller import EditorController
from .editing import ImageEditClient
from .models import ImageData
from .state import EditorState
