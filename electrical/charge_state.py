"""
APC State Derivation
====================

Maps the latest electrical reading and override flags onto the two
enumerations an APC displays:

    ChargeState         : what the charge lamp shows
    ExternalPowerState  : whether the incoming network feed is sufficient

Charge state precedence:
    1. EMAG      - node has been compromised (ignores readings entirely)
    2. FULL      - charge fraction above the high power threshold
    3. CHARGING  - network is feeding the battery (supply < receiving)
    4. LACK      - otherwise

External power state:
    NONE  - nothing received and battery not saturated
    LOW   - receiving noticeably less than being supplied
    GOOD  - otherwise

Both functions are pure and are called on every reading update.
"""

from enum import Enum

import numpy as np

from electrical.battery import ElectricalReading
from config import APC_CONFIG


class ChargeState(str, Enum):
    """Charge lamp state."""
    LACK = "LACK"
    CHARGING = "CHARGING"
    FULL = "FULL"
    EMAG = "EMAG"


class ExternalPowerState(str, Enum):
    """Incoming network power state."""
    NONE = "NONE"
    LOW = "LOW"
    GOOD = "GOOD"


def close_to(a: float, b: float, tolerance: float = 0.00001) -> bool:
    """Absolute closeness: |a - b| <= tolerance."""
    return bool(np.isclose(a, b, rtol=0.0, atol=tolerance))


def close_to_percent(a: float, b: float, percentage: float = 0.00001) -> bool:
    """
    Relative closeness with a floor.

    The allowed difference is `percentage` of the larger magnitude, but never
    less than `percentage` itself, so values near zero still compare sanely.
    """
    epsilon = max(max(abs(a), abs(b)) * percentage, percentage)
    return abs(a - b) <= epsilon


def derive_charge_state(
    reading: ElectricalReading,
    breaker_enabled: bool,
    compromised: bool,
    high_power_threshold: float = APC_CONFIG["high_power_threshold"],
) -> ChargeState:
    """
    Derive the charge lamp state.

    Args:
        reading: Latest electrical snapshot
        breaker_enabled: Manual breaker intent (does not affect the lamp)
        compromised: Emag override flag
        high_power_threshold: Fraction above which the battery reads FULL

    Returns:
        ChargeState
    """
    if compromised:
        return ChargeState.EMAG

    if reading.charge_fraction > high_power_threshold:
        return ChargeState.FULL

    delta = reading.current_supply - reading.current_receiving
    return ChargeState.CHARGING if delta < 0 else ChargeState.LACK


def derive_external_power_state(
    reading: ElectricalReading,
    full_charge_tolerance: float = APC_CONFIG["full_charge_tolerance"],
    external_power_tolerance: float = APC_CONFIG["external_power_tolerance"],
) -> ExternalPowerState:
    """
    Derive the external power state.

    A saturated battery legitimately receives nothing, so it is exempt from
    the NONE branch.

    Args:
        reading: Latest electrical snapshot
        full_charge_tolerance: Absolute tolerance for "fraction is 1"
        external_power_tolerance: Relative tolerance for "receiving == supply"

    Returns:
        ExternalPowerState
    """
    if reading.current_receiving == 0 and not close_to(
        reading.charge_fraction, 1.0, full_charge_tolerance
    ):
        return ExternalPowerState.NONE

    delta = reading.current_receiving - reading.current_supply
    if not close_to_percent(delta, 0.0, external_power_tolerance) and delta < 0:
        return ExternalPowerState.LOW

    return ExternalPowerState.GOOD
