"""Electrical readings and display-state derivation for APC nodes."""

from .battery import Battery, PowerNetworkBattery, ElectricalReading
from .charge_state import (
    ChargeState,
    ExternalPowerState,
    close_to,
    close_to_percent,
    derive_charge_state,
    derive_external_power_state,
)

__all__ = [
    "Battery",
    "PowerNetworkBattery",
    "ElectricalReading",
    "ChargeState",
    "ExternalPowerState",
    "close_to",
    "close_to_percent",
    "derive_charge_state",
    "derive_external_power_state",
]
