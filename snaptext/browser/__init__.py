"""Page-side pieces: selection overlay, result panel and browser lifecycle."""

from .automation import BrowserAutomation, BrowserConfig, BrowserSession
from .overlay import PageAgent, PageScripts, PlaywrightOverlay, PlaywrightPanel
from .presenter import (
    PanelPosition,
    PanelState,
    PanelView,
    ResultPresenter,
    calculate_panel_position,
)
from .selection import SelectionController, SelectionSession, SelectionState

__all__ = [
    "BrowserAutomation",
    "BrowserConfig",
    "BrowserSession",
    "PageAgent",
    "PageScripts",
    "PlaywrightOverlay",
    "PlaywrightPanel",
    "PanelPosition",
    "PanelState",
    "PanelView",
    "ResultPresenter",
    "calculate_panel_position",
    "SelectionController",
    "SelectionSession",
    "SelectionState",
]
