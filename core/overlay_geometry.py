"""Overlay placement math, kept free of any GUI toolkit."""

from __future__ import annotations

import sys
from enum import Enum

OVERLAY_WIDTH = 172.0
OVERLAY_HEIGHT = 36.0

# (top offset, bottom offset) in logical pixels
_MAC_OFFSETS = (46.0, 15.0)
_DEFAULT_OFFSETS = (4.0, 40.0)

Rect = tuple[float, float, float, float]


class OverlayPosition(str, Enum):
    TOP = "top"
    BOTTOM = "bottom"
    NONE = "none"

    @classmethod
    def parse(cls, value) -> "OverlayPosition":
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.BOTTOM


def overlay_offsets(platform: str | None = None) -> tuple[float, float]:
    platform = platform or sys.platform
    if platform == "darwin":
        return _MAC_OFFSETS
    return _DEFAULT_OFFSETS


def rect_contains(rect: Rect, point: tuple[float, float]) -> bool:
    x, y, width, height = rect
    px, py = point
    return x <= px < x + width and y <= py < y + height


def pick_work_area(cursor: tuple[float, float] | None, work_areas: list[Rect], primary: Rect | None = None) -> Rect | None:
    """Return the work area under the cursor, falling back to the primary one."""
    if cursor is not None:
        for area in work_areas:
            if rect_contains(area, cursor):
                return area
    if primary is not None:
        return primary
    return work_areas[0] if work_areas else None


def calculate_overlay_position(
    work_area: Rect,
    position: OverlayPosition,
    platform: str | None = None,
    width: float = OVERLAY_WIDTH,
    height: float = OVERLAY_HEIGHT,
) -> tuple[float, float] | None:
    """Top-left corner for the overlay, horizontally centred in ``work_area``.

    Returns None when the overlay is disabled.
    """
    if position is OverlayPosition.NONE:
        return None
    x, y, area_width, area_height = work_area
    top_offset, bottom_offset = overlay_offsets(platform)
    left = x + (area_width - width) / 2.0
    if position is OverlayPosition.TOP:
        return left, y + top_offset
    return left, y + area_height - height - bottom_offset
