"""
UI State Models
"""
import math
from enum import Enum

from pydantic import BaseModel, Field

from electrical.charge_state import ExternalPowerState


class ApcVisuals(str, Enum):
    """Appearance data keys an APC publishes."""
    CHARGE_STATE = "charge_state"
    PANEL_STATE = "panel_state"


class ApcBoundInterfaceState(BaseModel):
    """Snapshot pushed to the APC's control window."""
    main_breaker: bool
    power: int = Field(ge=0)
    external_power: ExternalPowerState
    charge: float = Field(ge=0.0, le=1.0)

    @classmethod
    def build(cls, main_breaker: bool, supply_watts: float,
              external_power: ExternalPowerState, charge_fraction: float) -> 'ApcBoundInterfaceState':
        """Round supply up to whole watts and clamp the charge bar to [0, 1]."""
        return cls(
            main_breaker=main_breaker,
            power=int(math.ceil(supply_watts)),
            external_power=external_power,
            charge=min(max(charge_fraction, 0.0), 1.0),
        )
