"""
Configuration for layout, viewport and the editor session.

All options have defaults matching the whiteboard canvas (dagre with
nodesep 60, ranksep 120 and 280x150 node boxes). EditorConfig.from_env()
lets the backend pick overrides from ISSUETREE_* environment variables.
"""

import os
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class Direction(str, Enum):
    """Rank direction for the layered layout."""
    TOP_TO_BOTTOM = "TB"
    LEFT_TO_RIGHT = "LR"


class EditorMode(str, Enum):
    """
    Which gestures the interaction controller accepts.

    FREE_FORM is the workflow editor: drag, connect, delete and create.
    AUTO_LAYOUT is the generated analysis tree: nodes can be dragged and the
    canvas panned, but the structure cannot be edited by hand.
    """
    FREE_FORM = "free_form"
    AUTO_LAYOUT = "auto_layout"


DEFAULT_NODE_WIDTH = 280
DEFAULT_NODE_HEIGHT = 150

ENV_PREFIX = "ISSUETREE_"


class LayoutConfig(BaseModel):
    """Options recognized by the layered layout engine."""
    nodesep: float = Field(default=60, ge=0)    # Gap between nodes in a rank
    ranksep: float = Field(default=120, ge=0)   # Gap between ranks
    direction: Direction = Direction.TOP_TO_BOTTOM
    node_width: float = Field(default=DEFAULT_NODE_WIDTH, gt=0)
    node_height: float = Field(default=DEFAULT_NODE_HEIGHT, gt=0)
    # Use node_width/node_height for every node instead of each node's own box
    uniform_size: bool = True
    center_ranks: bool = False
    origin_x: float = 0
    origin_y: float = 0


class ViewportConfig(BaseModel):
    """Zoom bounds for the viewport transform."""
    zoom_min: float = Field(default=0.5, gt=0)
    zoom_max: float = Field(default=2.0, gt=0)
    initial_zoom: float = 1.0

    @model_validator(mode='after')
    def check_bounds(self) -> "ViewportConfig":
        if self.zoom_min > self.zoom_max:
            raise ValueError(
                f"zoom_min ({self.zoom_min}) must not exceed zoom_max ({self.zoom_max})"
            )
        return self


class EditorConfig(BaseModel):
    """Top-level configuration for an editor session and its backend."""
    mode: EditorMode = EditorMode.AUTO_LAYOUT
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    viewport: ViewportConfig = Field(default_factory=ViewportConfig)
    host: str = "127.0.0.1"
    port: int = 8765
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[dict] = None) -> "EditorConfig":
        """
        Build a config from ISSUETREE_* environment variables.

        Unset variables keep their defaults. Values are validated by pydantic,
        so a malformed number raises ValidationError instead of being ignored.
        """
        env = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            return env.get(ENV_PREFIX + name)

        layout = {}
        for key, env_name in (("nodesep", "NODESEP"),
                              ("ranksep", "RANKSEP"),
                              ("direction", "DIRECTION"),
                              ("node_width", "NODE_WIDTH"),
                              ("node_height", "NODE_HEIGHT")):
            value = get(env_name)
            if value is not None:
                layout[key] = value

        viewport = {}
        for key, env_name in (("zoom_min", "ZOOM_MIN"), ("zoom_max", "ZOOM_MAX")):
            value = get(env_name)
            if value is not None:
                viewport[key] = value

        data: dict = {"layout": layout, "viewport": viewport}
        for key, env_name in (("mode", "MODE"),
                              ("host", "HOST"),
                              ("port", "PORT"),
                              ("log_level", "LOG_LEVEL")):
            value = get(env_name)
            if value is not None:
                data[key] = value

        return cls.model_validate(data)
