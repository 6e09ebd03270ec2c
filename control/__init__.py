"""
Control Package
===============

Operator-facing controllers of an APC node:
    - VisualsDebounceGate: throttles charge/external display emissions
    - BreakerController: main breaker intent and network discharge permission
    - PanelAccessController: screw-gated access panel
    - ToolOperationManager: timed tool interactions (start now, finish later)
"""

from control.debounce import VisualsDebounceGate, StateKind
from control.breaker import BreakerController
from control.panel import PanelAccessController, PanelState, ApcToolFinishedEvent, get_panel_state
from control.tools import Tool, ToolOperation, ToolOperationManager, ToolOperationState

__all__ = [
    'VisualsDebounceGate',
    'StateKind',
    'BreakerController',
    'PanelAccessController',
    'PanelState',
    'ApcToolFinishedEvent',
    'get_panel_state',
    'Tool',
    'ToolOperation',
    'ToolOperationManager',
    'ToolOperationState',
]
