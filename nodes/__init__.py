"""
Node Package
============

Area Power Controller (APC) node implementations.

Each node is the access point between the shared power network and one
area's consumers, with:
    - Charge / external power display derivation
    - Debounced appearance and UI publication
    - Access-controlled main breaker
    - Screw-gated access panel
    - Emag and EMP override handling

Modules:
    - ApcNode: single node facade, one dispatch() per event
    - ApcRegistry: node table and shared collaborators
    - events: the typed events a node accepts
"""

from nodes.apc_node import ApcNode
from nodes.events import (
    MapInitEvent,
    ChargeChangedEvent,
    ToggleMainBreakerMessage,
    InteractUsingEvent,
    ApcToolFinishedEvent,
    ExaminedEvent,
    GotEmaggedEvent,
    EmpPulseEvent,
)
from nodes.registry import ApcRegistry

__all__ = [
    'ApcNode',
    'ApcRegistry',
    'MapInitEvent',
    'ChargeChangedEvent',
    'ToggleMainBreakerMessage',
    'InteractUsingEvent',
    'ApcToolFinishedEvent',
    'ExaminedEvent',
    'GotEmaggedEvent',
    'EmpPulseEvent',
]
