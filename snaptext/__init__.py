"""snaptext: select a region of a web page and turn it into text with a vision model."""

__version__ = "0.1.0"

from .coordinator import CaptureCoordinator
from .errors import ErrorKind, OcrError, OcrResult
from .messaging import CAPTURE_AND_OCR, START_CAPTURE, BackgroundService, MessageRouter
from .providers import EMPTY_RESULT, GeminiProvider, ProviderClient, ProviderConfig, QwenProvider, get_provider
from .text import normalize_output, render_markdown
from .vision import SelectionRect, crop_image_bytes

__all__ = [
    "__version__",
    "CaptureCoordinator",
    "ErrorKind",
    "OcrError",
    "OcrResult",
    "CAPTURE_AND_OCR",
    "START_CAPTURE",
    "BackgroundService",
    "MessageRouter",
    "EMPTY_RESULT",
    "GeminiProvider",
    "ProviderClient",
    "ProviderConfig",
    "QwenProvider",
    "get_provider",
    "normalize_output",
    "render_markdown",
    "SelectionRect",
    "crop_image_bytes",
]
