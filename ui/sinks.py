"""
Presentation Sinks - where an APC's outputs go

Each sink is a small capability object handed to the node at construction:
    AppearanceSink   : keyed visual data (charge lamp, panel sprite)
    UserInterfaceSink: control-window state snapshots
    AudioSink        : positional sound cues
    PopupSink        : transient notices shown to one actor

These implementations keep everything in memory and optionally forward to
subscriber callbacks, which is what the API server and the tests use.
"""
import logging
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Tuple

from ui.state import ApcBoundInterfaceState, ApcVisuals

logger = logging.getLogger(__name__)


class AppearanceSink:
    def __init__(self):
        self.data: Dict[str, Dict[ApcVisuals, object]] = defaultdict(dict)
        self.history: List[Tuple[str, ApcVisuals, object]] = []

    def set_data(self, node_id: str, key: ApcVisuals, value):
        """Publish a visual data value"""
        self.data[node_id][key] = value
        self.history.append((node_id, key, value))
        logger.debug(f"{node_id} appearance {key.value} = {value}")

    def get_data(self, node_id: str, key: ApcVisuals):
        return self.data.get(node_id, {}).get(key)


class UserInterfaceSink:
    def __init__(self):
        self.states: Dict[str, ApcBoundInterfaceState] = {}
        self.history: List[Tuple[str, ApcBoundInterfaceState]] = []
        self.subscribers: List[Callable[[str, ApcBoundInterfaceState], None]] = []

    def subscribe(self, callback: Callable[[str, ApcBoundInterfaceState], None]):
        """Register a listener for pushed states"""
        self.subscribers.append(callback)

    def set_state(self, node_id: str, state: ApcBoundInterfaceState):
        """Push a new window state"""
        self.states[node_id] = state
        self.history.append((node_id, state))

        for callback in self.subscribers:
            callback(node_id, state)

    def get_state(self, node_id: str) -> Optional[ApcBoundInterfaceState]:
        return self.states.get(node_id)


class AudioSink:
    def __init__(self):
        self.played: List[Tuple[str, str, float]] = []

    def play(self, node_id: str, sound: str, volume: float = 0.0):
        """Play a sound at the node"""
        self.played.append((node_id, sound, volume))
        logger.debug(f"{node_id} sound {sound} ({volume:+.1f} dB)")


class PopupSink:
    def __init__(self):
        self.popups: List[Tuple[str, str]] = []

    def popup_cursor(self, recipient: str, message: str):
        """Show a notice at the recipient's cursor only"""
        self.popups.append((recipient, message))

    def for_recipient(self, recipient: str) -> List[str]:
        return [message for who, message in self.popups if who == recipient]
