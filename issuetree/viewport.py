"""
Viewport Transform - maps screen pixels to graph space under pan and zoom.

    graph = (screen - pan) / zoom
    screen = graph * zoom + pan

Zoom is clamped to [zoom_min, zoom_max]. Requests outside that range are
clamped silently rather than rejected.
"""

import logging
from typing import Optional

from .config import ViewportConfig
from .models import Point, ViewportState

logger = logging.getLogger(__name__)


class ViewportTransform:
    """Owns the viewport state. The only writer of pan and zoom."""

    def __init__(self, config: Optional[ViewportConfig] = None):
        self._config = config or ViewportConfig()
        self._zoom = self._clamp(self._config.initial_zoom)
        self._pan = Point(0.0, 0.0)

    @property
    def zoom(self) -> float:
        return self._zoom

    @property
    def pan(self) -> Point:
        return self._pan

    @property
    def state(self) -> ViewportState:
        return ViewportState(zoom=self._zoom, pan_x=self._pan.x, pan_y=self._pan.y)

    def _clamp(self, zoom: float) -> float:
        clamped = min(self._config.zoom_max, max(self._config.zoom_min, zoom))
        if clamped != zoom:
            logger.debug("Zoom %.3f clamped to %.3f", zoom, clamped)
        return clamped

    # --- Coordinate math ---

    def screen_to_graph(self, screen: Point) -> Point:
        return (screen - self._pan) / self._zoom

    def graph_to_screen(self, graph: Point) -> Point:
        return graph * self._zoom + self._pan

    # --- Mutations ---

    def zoom_to(self, level: float, anchor: Point) -> ViewportState:
        """
        Set an absolute zoom level, keeping the graph point under the anchor
        fixed on screen.
        """
        new_zoom = self._clamp(level)
        if new_zoom == self._zoom:
            return self.state

        anchored = self.screen_to_graph(anchor)
        self._zoom = new_zoom
        self._pan = anchor - anchored * new_zoom
        return self.state

    def zoom_by(self, delta: float, anchor: Point) -> ViewportState:
        """Change the zoom by delta around a screen-space anchor."""
        return self.zoom_to(self._zoom + delta, anchor)

    def pan_by(self, delta: Point) -> ViewportState:
        """Shift the view by a screen-space delta."""
        self._pan = self._pan + delta
        return self.state

    def fit_bounds(
        self,
        bounds: tuple[float, float, float, float],
        screen_width: float,
        screen_height: float,
        padding: float = 40,
    ) -> ViewportState:
        """
        Zoom and pan so the graph-space bounds (x, y, right, bottom) are
        centered on a screen of the given size.
        """
        left, top, right, bottom = bounds
        width = max(right - left, 1.0)
        height = max(bottom - top, 1.0)
        usable_w = max(screen_width - 2 * padding, 1.0)
        usable_h = max(screen_height - 2 * padding, 1.0)

        self._zoom = self._clamp(min(usable_w / width, usable_h / height))
        center = Point((left + right) / 2, (top + bottom) / 2)
        self._pan = Point(screen_width / 2, screen_height / 2) - center * self._zoom
        return self.state

    def reset(self) -> ViewportState:
        self._zoom = self._clamp(self._config.initial_zoom)
        self._pan = Point(0.0, 0.0)
        return self.state
