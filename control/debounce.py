"""
Visual Debounce Gate
====================

Readings arrive every simulation tick and are noisy. Pushing each derived
state straight to the appearance and UI sinks would make the charge lamp
flicker and flood clients with identical snapshots, so emissions are gated:

    CHARGE   : emit only if the value changed AND the delay has elapsed
               since the last emission. Early changes are dropped, not
               queued; the next reading re-evaluates from scratch.

    EXTERNAL : emit if the value changed OR the delay has elapsed. The
               second clause keeps the UI's instantaneous wattage readout
               fresh even when the enumerated state holds steady.

The gate is the only writer of the last-emitted values and timestamps.
"""

import logging
from enum import Enum
from typing import Optional

from electrical.charge_state import ChargeState, ExternalPowerState

logger = logging.getLogger(__name__)


class StateKind(Enum):
    """Which debounced display a value belongs to."""
    CHARGE = "charge"
    EXTERNAL = "external"


class VisualsDebounceGate:
    """
    Per-node emission gate for the two derived display states.

    A timestamp of None means the state has never been emitted, which counts
    as the delay having elapsed.
    """

    def __init__(self, visuals_change_delay_s: float):
        self.visuals_change_delay_s = visuals_change_delay_s

        self._last_charge_state: Optional[ChargeState] = None
        self._last_charge_state_time: Optional[float] = None

        self._last_external_state: Optional[ExternalPowerState] = None
        self._last_ui_update_time: Optional[float] = None

        self.stats = {
            "charge_emitted": 0,
            "charge_suppressed": 0,
            "external_emitted": 0,
            "external_suppressed": 0,
        }

    @property
    def last_charge_state(self) -> Optional[ChargeState]:
        return self._last_charge_state

    @property
    def last_charge_state_time(self) -> Optional[float]:
        return self._last_charge_state_time

    @property
    def last_external_state(self) -> Optional[ExternalPowerState]:
        return self._last_external_state

    @property
    def last_ui_update_time(self) -> Optional[float]:
        return self._last_ui_update_time

    def _elapsed(self, last_time: Optional[float], now: float) -> bool:
        if last_time is None:
            return True
        return now - last_time >= self.visuals_change_delay_s

    def maybe_update(self, kind: StateKind, new_value, now: float) -> bool:
        """
        Offer a freshly derived value to the gate.

        Args:
            kind: CHARGE or EXTERNAL
            new_value: Derived ChargeState / ExternalPowerState
            now: Current time (seconds)

        Returns:
            True if the value was emitted (caller pushes the side effect)
        """
        if kind == StateKind.CHARGE:
            if (new_value != self._last_charge_state
                    and self._elapsed(self._last_charge_state_time, now)):
                self._last_charge_state = new_value
                self._last_charge_state_time = now
                self.stats["charge_emitted"] += 1
                return True

            if new_value != self._last_charge_state:
                logger.debug(
                    f"Charge state change {self._last_charge_state} -> {new_value} "
                    f"dropped (within {self.visuals_change_delay_s}s)"
                )
            self.stats["charge_suppressed"] += 1
            return False

        if (new_value != self._last_external_state
                or self._elapsed(self._last_ui_update_time, now)):
            self._last_external_state = new_value
            self._last_ui_update_time = now
            self.stats["external_emitted"] += 1
            return True

        self.stats["external_suppressed"] += 1
        return False
