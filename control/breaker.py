"""
Main Breaker Controller
"""
import logging

from electrical.battery import PowerNetworkBattery

logger = logging.getLogger(__name__)


class BreakerController:
    """
    Owns the manual breaker intent and mirrors it onto the network battery.

    After every call `breaker_enabled == network_battery.can_discharge`.
    Authorization is the caller's job; the controller always succeeds.
    """

    def __init__(self, node_id: str, network_battery: PowerNetworkBattery, enabled: bool = True):
        self.node_id = node_id
        self.network_battery = network_battery
        self.breaker_enabled = enabled
        self.network_battery.can_discharge = enabled
        self.operations = 0

    def toggle(self) -> bool:
        """Flip the breaker. Returns the new state."""
        self.breaker_enabled = not self.breaker_enabled
        self.network_battery.can_discharge = self.breaker_enabled
        self.operations += 1

        logger.info(
            f"{self.node_id} - Main breaker {'ENABLED' if self.breaker_enabled else 'DISABLED'}"
        )
        return self.breaker_enabled

