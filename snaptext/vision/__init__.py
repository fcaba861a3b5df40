"""Screen capture and cropping helpers."""

from .geometry import MIN_SELECTION_SIZE, SelectionRect, Viewport
from .screenshots import (
    CroppedImage,
    FileScreenSource,
    PageScreenSource,
    PixelBox,
    ScreenSource,
    crop_image_bytes,
    is_capturable_url,
    read_scale_factor,
    scale_and_clamp,
)

__all__ = [
    "MIN_SELECTION_SIZE",
    "SelectionRect",
    "Viewport",
    "CroppedImage",
    "FileScreenSource",
    "PageScreenSource",
    "PixelBox",
    "ScreenSource",
    "crop_image_bytes",
    "is_capturable_url",
    "read_scale_factor",
    "scale_and_clamp",
]
