"""
APC Node Events
===============

The finite set of inputs an APC node reacts to. The hosting dispatcher
delivers them one at a time, in arrival order, to ApcNode.dispatch().

Events that report an outcome back to the sender (handled / affected) carry
a mutable flag the node sets, mirroring how the host inspects them after
delivery.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from control.panel import ApcToolFinishedEvent
from control.tools import Tool
from security.access import Requester


@dataclass
class MapInitEvent:
    """Node spawned: derive and publish the initial state."""


@dataclass
class ChargeChangedEvent:
    """Battery components changed: re-derive the display state."""


@dataclass
class ToggleMainBreakerMessage:
    """Window button press. requester is None if no actor is attached."""
    requester: Optional[Requester] = None


@dataclass
class InteractUsingEvent:
    """A user applied a held implement to the node."""
    used: Tool
    user: str
    handled: bool = False


@dataclass
class ExaminedEvent:
    """Someone looked at the node; localization keys are pushed to messages."""
    examiner: str = ""
    messages: List[str] = field(default_factory=list)


@dataclass
class GotEmaggedEvent:
    """Permanent compromise of the node's access reader."""
    user: Optional[str] = None
    handled: bool = False


@dataclass
class EmpPulseEvent:
    """Electromagnetic pulse hit the node."""
    affected: bool = False


__all__ = [
    'MapInitEvent',
    'ChargeChangedEvent',
    'ToggleMainBreakerMessage',
    'InteractUsingEvent',
    'ApcToolFinishedEvent',
    'ExaminedEvent',
    'GotEmaggedEvent',
    'EmpPulseEvent',
]
