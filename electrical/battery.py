"""
Battery Components
==================

Electrical state that the surrounding power simulation owns and mutates.

An APC sees two pieces of it:
    - Battery: the local charge store (current / maximum charge)
    - PowerNetworkBattery: the network-facing side (power supplied to the
      network, power received from it, and the discharge permission the
      main breaker drives)

The APC core never accumulates charge or solves supply/demand itself. It
snapshots these fields into an ElectricalReading each time it re-derives its
display state, and only ever writes the single `can_discharge` flag.
"""

from dataclasses import dataclass

import numpy as np


@dataclass
class Battery:
    """Local charge store."""
    current_charge: float = 0.0
    max_charge: float = 1.0


@dataclass
class PowerNetworkBattery:
    """Network-facing battery terminal."""
    current_supply: float = 0.0      # W delivered to the network
    current_receiving: float = 0.0   # W drawn from the network
    can_discharge: bool = True


@dataclass(frozen=True)
class ElectricalReading:
    """
    Per-tick electrical snapshot for one node.

    All values are non-negative; max_charge > 0 is guaranteed by the
    simulation that produced the reading.
    """
    current_charge: float
    max_charge: float
    current_supply: float
    current_receiving: float

    @property
    def charge_fraction(self) -> float:
        """Stored charge as a fraction of capacity."""
        return self.current_charge / self.max_charge

    @classmethod
    def capture(cls, battery: Battery, network_battery: PowerNetworkBattery) -> 'ElectricalReading':
        """Snapshot the live battery components."""
        return cls(
            current_charge=battery.current_charge,
            max_charge=battery.max_charge,
            current_supply=network_battery.current_supply,
            current_receiving=network_battery.current_receiving,
        )

    def is_valid(self) -> bool:
        """Check the collaborator's preconditions hold for this reading."""
        values = np.array([
            self.current_charge,
            self.max_charge,
            self.current_supply,
            self.current_receiving,
        ])
        return bool(np.all(np.isfinite(values)) and np.all(values >= 0) and self.max_charge > 0)

    def apply_to(self, battery: Battery, network_battery: PowerNetworkBattery):
        """Write this reading into live components (simulation side)."""
        battery.current_charge = self.current_charge
        battery.max_charge = self.max_charge
        network_battery.current_supply = self.current_supply
        network_battery.current_receiving = self.current_receiving
