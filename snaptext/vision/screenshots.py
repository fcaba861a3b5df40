"""Screenshot sources and pixel-exact cropping backed by Playwright and Pillow."""
from __future__ import annotations

import base64
import logging
import math
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Any, Dict, Protocol, Sequence, Tuple, Union

from PIL import Image, UnidentifiedImageError
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from snaptext.errors import ErrorKind, OcrError

from .geometry import SelectionRect

logger = logging.getLogger(__name__)

CROP_FORMAT = "PNG"
CROP_MIME_TYPE = "image/png"

# Browser-internal pages refuse script injection and screenshots.
RESTRICTED_URL_PREFIXES = (
    "chrome://",
    "chrome-extension://",
    "edge://",
    "about:",
    "devtools://",
)


@dataclass(slots=True, frozen=True)
class PixelBox:
    """Integer crop region in physical pixels."""

    left: int
    top: int
    width: int
    height: int

    def to_box(self) -> Tuple[int, int, int, int]:
        """Convert to the ``(left, upper, right, lower)`` tuple Pillow expects."""

        return (self.left, self.top, self.left + self.width, self.top + self.height)


@dataclass(slots=True, frozen=True)
class CroppedImage:
    """Encoded sub-region of a screenshot; the only artifact sent over the network."""

    data: bytes
    box: PixelBox
    mime_type: str = CROP_MIME_TYPE

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def to_data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.to_base64()}"


class ScreenSource(Protocol):
    """Anything able to produce a PNG of the visible surface in physical pixels."""

    async def capture(self) -> bytes:
        ...


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def scale_and_clamp(rect: SelectionRect, scale_factor: float, image_size: Tuple[int, int]) -> PixelBox:
    """Scale a logical rectangle to physical pixels, then clamp it to the image.

    Each of x/y/width/height is rounded independently after scaling. Clamping
    happens afterwards so edge selections never produce off-by-one or
    out-of-range regions. Raises ``CropBounds`` when nothing is left.
    """

    if not scale_factor or scale_factor <= 0 or not math.isfinite(scale_factor):
        raise OcrError(ErrorKind.CROP_BOUNDS, f"Invalid scale factor: {scale_factor!r}")

    image_width, image_height = image_size
    scaled_x = _round_half_up(rect.x * scale_factor)
    scaled_y = _round_half_up(rect.y * scale_factor)
    scaled_width = _round_half_up(rect.width * scale_factor)
    scaled_height = _round_half_up(rect.height * scale_factor)

    left = max(0, scaled_x)
    top = max(0, scaled_y)
    width = min(scaled_width, image_width - left)
    height = min(scaled_height, image_height - top)

    if width <= 0 or height <= 0:
        raise OcrError(
            ErrorKind.CROP_BOUNDS,
            "Selection is outside the captured screenshot, please try again",
            data={"box": (left, top, width, height), "image_size": image_size},
        )
    return PixelBox(left=left, top=top, width=width, height=height)


def crop_image_bytes(
    image_bytes: bytes,
    rect: SelectionRect,
    scale_factor: float,
    *,
    image_format: str = CROP_FORMAT,
) -> CroppedImage:
    """Crop an in-memory screenshot to ``rect`` and return the encoded region."""

    try:
        with Image.open(BytesIO(image_bytes)) as image:
            image.load()
            box = scale_and_clamp(rect, scale_factor, image.size)
            cropped = image.crop(box.to_box())
            output = BytesIO()
            cropped.save(output, format=image_format)
    except (UnidentifiedImageError, OSError) as exc:
        raise OcrError(ErrorKind.CAPTURE_FAILED, f"Screenshot could not be decoded: {exc}") from exc

    logger.debug("Cropped selection", extra={"box": box.to_box(), "scale_factor": scale_factor})
    return CroppedImage(data=output.getvalue(), box=box)


def is_capturable_url(url: str) -> bool:
    return not url.startswith(RESTRICTED_URL_PREFIXES)


class PageScreenSource:
    """Capture the visible viewport of a Playwright page in device pixels.

    Elements matching ``hidden_selectors`` are made invisible for the duration
    of the screenshot only, so the page UI stays on screen but out of the crop.
    """

    def __init__(self, page: Page, hidden_selectors: Sequence[str] = ()) -> None:
        self._page = page
        self._hidden_selectors = tuple(hidden_selectors)

    def screenshot_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {"full_page": False, "scale": "device", "type": "png"}
        if self._hidden_selectors:
            options["style"] = f"{', '.join(self._hidden_selectors)} {{ visibility: hidden !important; }}"
        return options

    async def capture(self) -> bytes:
        url = self._page.url
        if not is_capturable_url(url):
            raise OcrError(ErrorKind.CAPTURE_FAILED, f"Screenshots are not available on this page: {url}")
        try:
            return await self._page.screenshot(**self.screenshot_options())
        except PlaywrightError as exc:
            raise OcrError(ErrorKind.CAPTURE_FAILED, f"Screenshot failed: {exc.message}") from exc


class FileScreenSource:
    """Serve a previously saved screenshot from disk."""

    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path)

    async def capture(self) -> bytes:
        try:
            return self._path.read_bytes()
        except OSError as exc:
            raise OcrError(ErrorKind.CAPTURE_FAILED, f"Screenshot failed: {exc}") from exc


async def read_scale_factor(page: Page) -> float:
    """Return the page's logical-to-physical pixel ratio."""

    ratio = await page.evaluate("() => window.devicePixelRatio || 1")
    try:
        value = float(ratio)
    except (TypeError, ValueError):
        return 1.0
    return value if value > 0 else 1.0
