"""Rectangles in viewport-logical units."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Mapping

# Drags smaller than this (in logical units) on either axis are treated as accidental clicks.
MIN_SELECTION_SIZE = 10.0


@dataclass(slots=True, frozen=True)
class SelectionRect:
    """User-drawn capture region, relative to the viewport origin."""

    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_points(cls, start_x: float, start_y: float, end_x: float, end_y: float) -> "SelectionRect":
        """Normalize a drag between two points regardless of its direction."""

        return cls(
            x=min(start_x, end_x),
            y=min(start_y, end_y),
            width=abs(end_x - start_x),
            height=abs(end_y - start_y),
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, float]) -> "SelectionRect":
        """Construct a rectangle from a ``{x, y, width, height}`` mapping."""

        if not data:
            raise ValueError("rect mapping cannot be empty")

        try:
            x = float(data.get("x", data.get("left", 0.0)))
            y = float(data.get("y", data.get("top", 0.0)))
            width = data.get("width")
            height = data.get("height")
            if width is None or height is None:
                raise ValueError("rect mapping must include width and height")
            width = float(width)
            height = float(height)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"invalid rect mapping: {exc}") from exc

        if not all(math.isfinite(value) for value in (x, y, width, height)):
            raise ValueError("rect coordinates must be finite")
        if width <= 0 or height <= 0:
            raise ValueError("rect dimensions must be positive")

        return cls(x=x, y=y, width=width, height=height)

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def is_too_small(self, minimum: float = MIN_SELECTION_SIZE) -> bool:
        return self.width < minimum or self.height < minimum


@dataclass(slots=True, frozen=True)
class Viewport:
    """Visible page area in logical units."""

    width: float
    height: float
