"""Unit tests for capture geometry and cropping that do not require a browser."""
from __future__ import annotations

import asyncio
from io import BytesIO

import pytest
from PIL import Image

from snaptext.errors import ErrorKind, OcrError
from snaptext.vision import (
    FileScreenSource,
    PageScreenSource,
    SelectionRect,
    crop_image_bytes,
    is_capturable_url,
    scale_and_clamp,
)


def _create_sample_image(width: int = 10, height: int = 10) -> bytes:
    image = Image.new("RGB", (width, height), color="white")
    for x in range(width // 2):
        for y in range(height // 2):
            image.putpixel((x, y), (255, 0, 0))
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def test_selection_rect_normalizes_drag_direction() -> None:
    rect = SelectionRect.from_points(300, 250, 100, 50)
    assert rect == SelectionRect(x=100, y=50, width=200, height=200)
    assert SelectionRect.from_points(100, 250, 300, 50) == SelectionRect(x=100, y=50, width=200, height=200)


def test_selection_rect_from_mapping_rejects_empty_region() -> None:
    with pytest.raises(ValueError):
        SelectionRect.from_mapping({"x": 0, "y": 0, "width": 0, "height": 5})
    with pytest.raises(ValueError):
        SelectionRect.from_mapping({"x": 0, "y": 0, "width": "wide", "height": 5})
    with pytest.raises(ValueError):
        SelectionRect.from_mapping({"x": 0, "y": 0})


def test_scale_and_clamp_scales_before_clamping() -> None:
    rect = SelectionRect(x=100, y=50, width=200, height=150)
    box = scale_and_clamp(rect, 2, (1920, 1080))
    assert (box.left, box.top, box.width, box.height) == (200, 100, 400, 300)


def test_scale_and_clamp_rejects_selection_outside_image() -> None:
    rect = SelectionRect(x=1900, y=50, width=200, height=150)
    with pytest.raises(OcrError) as excinfo:
        scale_and_clamp(rect, 2, (1920, 1080))
    assert excinfo.value.kind is ErrorKind.CROP_BOUNDS


def test_scale_and_clamp_trims_region_at_image_edge() -> None:
    rect = SelectionRect(x=900, y=500, width=100, height=100)
    box = scale_and_clamp(rect, 2, (1920, 1080))
    assert (box.left, box.top, box.width, box.height) == (1800, 1000, 120, 80)


def test_scale_and_clamp_clamps_negative_origin() -> None:
    rect = SelectionRect(x=-5, y=-5, width=20, height=20)
    box = scale_and_clamp(rect, 1, (100, 100))
    assert (box.left, box.top, box.width, box.height) == (0, 0, 20, 20)


def test_scale_and_clamp_rounds_each_component_half_up() -> None:
    rect = SelectionRect(x=10.25, y=3.25, width=20.25, height=10.75)
    box = scale_and_clamp(rect, 2, (200, 200))
    # 20.5 -> 21, 6.5 -> 7, 40.5 -> 41, 21.5 -> 22
    assert (box.left, box.top, box.width, box.height) == (21, 7, 41, 22)


def test_scale_and_clamp_rejects_invalid_scale() -> None:
    with pytest.raises(OcrError) as excinfo:
        scale_and_clamp(SelectionRect(0, 0, 10, 10), 0, (100, 100))
    assert excinfo.value.kind is ErrorKind.CROP_BOUNDS


def test_crop_image_bytes_extracts_region() -> None:
    image_bytes = _create_sample_image()
    cropped = crop_image_bytes(image_bytes, SelectionRect(x=0, y=0, width=5, height=5), 1)
    assert cropped.mime_type == "image/png"
    with Image.open(BytesIO(cropped.data)) as result:
        assert result.size == (5, 5)
        assert result.getpixel((0, 0)) == (255, 0, 0)
        assert result.getpixel((4, 4)) == (255, 0, 0)


def test_crop_image_bytes_applies_scale_factor() -> None:
    image_bytes = _create_sample_image(40, 40)
    cropped = crop_image_bytes(image_bytes, SelectionRect(x=5, y=5, width=10, height=5), 2)
    with Image.open(BytesIO(cropped.data)) as result:
        assert result.size == (20, 10)
        assert result.getpixel((0, 0)) == (255, 0, 0)
        assert result.getpixel((19, 9)) == (255, 255, 255)


def test_crop_image_bytes_reports_undecodable_screenshot() -> None:
    with pytest.raises(OcrError) as excinfo:
        crop_image_bytes(b"not an image", SelectionRect(0, 0, 10, 10), 1)
    assert excinfo.value.kind is ErrorKind.CAPTURE_FAILED


def test_cropped_image_data_uri() -> None:
    cropped = crop_image_bytes(_create_sample_image(), SelectionRect(0, 0, 2, 2), 1)
    assert cropped.to_data_uri().startswith("data:image/png;base64,")


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://example.com", True),
        ("file:///tmp/page.html", True),
        ("chrome://settings", False),
        ("chrome-extension://abc/options.html", False),
        ("edge://flags", False),
        ("about:blank", False),
    ],
)
def test_is_capturable_url(url: str, expected: bool) -> None:
    assert is_capturable_url(url) is expected


def test_file_screen_source_reports_missing_file(tmp_path) -> None:
    source = FileScreenSource(tmp_path / "missing.png")
    with pytest.raises(OcrError) as excinfo:
        asyncio.run(source.capture())
    assert excinfo.value.kind is ErrorKind.CAPTURE_FAILED


class RecordingPage:
    def __init__(self, url: str = "https://example.com/") -> None:
        self.url = url
        self.screenshot_kwargs: list[dict] = []

    async def screenshot(self, **kwargs) -> bytes:
        self.screenshot_kwargs.append(kwargs)
        return _create_sample_image()


def test_page_screen_source_hides_page_ui_only_in_screenshot() -> None:
    page = RecordingPage()
    source = PageScreenSource(page, ("#snaptext-overlay", "#snaptext-result-panel"))

    data = asyncio.run(source.capture())

    assert data == _create_sample_image()
    assert page.screenshot_kwargs == [
        {
            "full_page": False,
            "scale": "device",
            "type": "png",
            "style": "#snaptext-overlay, #snaptext-result-panel { visibility: hidden !important; }",
        }
    ]


def test_page_screen_source_refuses_restricted_pages() -> None:
    page = RecordingPage("chrome://settings")

    with pytest.raises(OcrError) as excinfo:
        asyncio.run(PageScreenSource(page).capture())

    assert excinfo.value.kind is ErrorKind.CAPTURE_FAILED
    assert page.screenshot_kwargs == []


def test_capture_hides_overlay_and_panel() -> None:
    from snaptext.browser.scripts import CAPTURE_HIDDEN_SELECTORS, OVERLAY_ID, PANEL_ID

    assert CAPTURE_HIDDEN_SELECTORS == (f"#{OVERLAY_ID}", f"#{PANEL_ID}")
