"""Tests for result panel placement and state."""
from __future__ import annotations

from typing import List

import pytest

from snaptext.browser.presenter import (
    PANEL_MARGIN,
    PanelPosition,
    PanelState,
    PanelView,
    ResultPresenter,
    calculate_panel_position,
    panel_max_height,
)
from snaptext.vision.geometry import SelectionRect, Viewport


class FakePanel:
    def __init__(self) -> None:
        self.shown: List[PanelView] = []
        self.removed = 0

    async def show(self, view: PanelView) -> None:
        self.shown.append(view)

    async def remove(self) -> None:
        self.removed += 1


@pytest.mark.parametrize(
    "viewport, rect, expected",
    [
        # Room on the right.
        (Viewport(1280, 800), SelectionRect(100, 100, 200, 150), PanelPosition(316, 100)),
        # Falls back to the left side.
        (Viewport(1280, 800), SelectionRect(900, 100, 300, 150), PanelPosition(464, 100)),
        # Neither side fits: centred below.
        (Viewport(1000, 800), SelectionRect(100, 100, 800, 150), PanelPosition(290, 266)),
        # Pulled up to stay inside the viewport.
        (Viewport(1280, 800), SelectionRect(100, 600, 200, 100), PanelPosition(316, 284)),
        # Never above the top margin.
        (Viewport(1280, 300), SelectionRect(100, 10, 50, 20), PanelPosition(166, 16)),
    ],
)
def test_calculate_panel_position(viewport: Viewport, rect: SelectionRect, expected: PanelPosition) -> None:
    assert calculate_panel_position(rect, viewport) == expected


def test_panel_max_height_tracks_short_viewports() -> None:
    assert panel_max_height(Viewport(1280, 900)) == 500
    assert panel_max_height(Viewport(1280, 400)) == 336


def test_panel_stays_inside_narrow_viewport() -> None:
    position = calculate_panel_position(SelectionRect(0, 0, 20, 20), Viewport(300, 120))
    assert position == PanelPosition(PANEL_MARGIN, 36)


@pytest.mark.asyncio
async def test_presenter_transitions_from_loading_to_result() -> None:
    panel = FakePanel()
    presenter = ResultPresenter(panel)

    await presenter.show_loading(PanelPosition(316, 100), Viewport(1280, 800))
    assert presenter.state is PanelState.LOADING
    assert presenter.copy_text is None

    await presenter.show_result("**Total** <5>")

    assert presenter.state is PanelState.RESULT
    assert presenter.copy_text == "**Total** <5>"
    view = panel.shown[-1]
    assert view.position == PanelPosition(316, 100)
    assert "<strong>Total</strong> &lt;5&gt;" in view.body_html
    assert view.to_payload()["copyText"] == "**Total** <5>"


@pytest.mark.asyncio
async def test_presenter_escapes_error_messages() -> None:
    panel = FakePanel()
    presenter = ResultPresenter(panel)

    await presenter.show_loading(PanelPosition(16, 16), Viewport(800, 600))
    await presenter.show_reply({"error": "<b>quota</b> exceeded", "kind": "ApiError"})

    assert presenter.state is PanelState.ERROR
    assert presenter.copy_text is None
    assert "&lt;b&gt;quota&lt;/b&gt; exceeded" in panel.shown[-1].body_html


@pytest.mark.asyncio
async def test_presenter_treats_reply_without_text_as_error() -> None:
    presenter = ResultPresenter(FakePanel())
    await presenter.show_reply({})
    assert presenter.state is PanelState.ERROR


@pytest.mark.asyncio
async def test_close_discards_panel() -> None:
    panel = FakePanel()
    presenter = ResultPresenter(panel)
    await presenter.show_result("text")

    await presenter.close()

    assert presenter.state is None
    assert presenter.copy_text is None
    assert panel.removed == 1
