"""
Panel Access Controller
=======================

The APC's access panel is screwed shut. Opening or closing it takes a timed
screwing operation run by the tool engine:

    CLOSED --[screwing op accepted]--> (pending in tool engine)
           --[ApcToolFinishedEvent]--> OPEN

and symmetrically OPEN -> CLOSED. The in-progress state belongs to the tool
engine; this controller only sees "started" and "finished". A cancelled
operation never reports back, so there is nothing to clean up here.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from control.tools import Tool, ToolOperationManager

logger = logging.getLogger(__name__)


class PanelState(str, Enum):
    """Observable panel state."""
    OPEN = "OPEN"
    CLOSED = "CLOSED"


@dataclass(frozen=True)
class ApcToolFinishedEvent:
    """Completion token correlating a finished screwing op to its node."""
    target: str


def get_panel_state(panel_open: bool) -> PanelState:
    """Project the open flag onto the display enumeration."""
    return PanelState.OPEN if panel_open else PanelState.CLOSED


class PanelAccessController:
    """
    Gates panel toggles behind a screwing operation.
    """

    def __init__(
        self,
        node_id: str,
        tool_engine: ToolOperationManager,
        screw_time_s: float,
        screw_tool_quality: str = "Screwing",
    ):
        self.node_id = node_id
        self.tool_engine = tool_engine
        self.screw_time_s = screw_time_s
        self.screw_tool_quality = screw_tool_quality
        self.panel_open = False

    @property
    def panel_state(self) -> PanelState:
        return get_panel_state(self.panel_open)

    def begin_toggle(self, tool: Tool, user: str, now: float) -> bool:
        """
        Start unscrewing / screwing the panel.

        Args:
            tool: Implement used on the node
            user: Identity of the interacting user
            now: Current time (seconds)

        Returns:
            True if a timed operation was started
        """
        operation = self.tool_engine.use_tool(
            tool,
            user,
            self.node_id,
            self.screw_time_s,
            [self.screw_tool_quality],
            ApcToolFinishedEvent(self.node_id),
            now,
        )
        return operation is not None

    def on_toggle_complete(self) -> PanelState:
        """Flip the panel. Returns the new state."""
        self.panel_open = not self.panel_open
        logger.info(f"{self.node_id} - Access panel {self.panel_state.value}")
        return self.panel_state
