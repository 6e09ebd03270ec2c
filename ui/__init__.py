"""Presentation outputs of APC nodes: appearance data, UI snapshots, sounds and popups."""

from ui.state import ApcBoundInterfaceState, ApcVisuals
from ui.sinks import AppearanceSink, UserInterfaceSink, AudioSink, PopupSink

__all__ = [
    'ApcBoundInterfaceState',
    'ApcVisuals',
    'AppearanceSink',
    'UserInterfaceSink',
    'AudioSink',
    'PopupSink',
]
