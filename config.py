"""
APC Node Simulation Configuration
Tuning constants, asset paths and localized strings for area power controllers
"""

import os
from dataclasses import dataclass
from typing import Dict, List, Optional

# ==================== APC TUNING ====================

APC_CONFIG = {
    # Charge fraction above which the charge display reads FULL
    "high_power_threshold": 0.9,
    # Minimum interval between visual changes / forced UI refresh (seconds)
    "visuals_change_delay_s": 1.0,
    # Duration of the screwing operation that opens/closes the panel (seconds)
    "screw_time_s": 2.0,
    # Absolute tolerance for "battery is saturated" (fraction close to 1)
    "full_charge_tolerance": 0.00001,
    # Relative tolerance for "receiving matches supply" (10%)
    "external_power_tolerance": 0.1,
    # Tool quality required to unscrew the panel
    "screw_tool_quality": "Screwing",
    # Breaker click volume (dB)
    "breaker_sound_volume": -2.0,
}

# ==================== AUDIO ====================

SOUND_CONFIG = {
    "breaker_toggle": "/Audio/Machines/machine_switch.ogg",
    "screwdriver_open": "/Audio/Machines/screwdriveropen.ogg",
    "screwdriver_close": "/Audio/Machines/screwdriverclose.ogg",
}

# ==================== LOCALIZATION ====================

LOCALE_STRINGS = {
    "apc-component-insufficient-access": "Insufficient access!",
    "apc-component-on-examine-panel-open": "The APC's access panel is [color=yellow]open[/color].",
    "apc-component-on-examine-panel-closed": "The APC's access panel is [color=darkgreen]closed[/color].",
}

# ==================== ACCESS ====================

ACCESS_CONFIG = {
    # Any one of these tag sets grants breaker control on seeded nodes
    "default_requirement": [["Engineering"], ["Command"]],
}

# ==================== SEEDED NODES ====================

# Initial battery readings for nodes created at startup
# Format: node_id -> (current_charge, max_charge, current_supply, current_receiving)
APC_NODES: Dict[str, tuple] = {
    "APC-ENG-01": (50000.0, 50000.0, 1200.0, 1200.0),
    "APC-MED-01": (18000.0, 50000.0, 800.0, 1500.0),
    "APC-SEC-01": (4000.0, 50000.0, 950.0, 0.0),
}

# ==================== API ====================

API_CONFIG = {
    "title": "APC Control API",
    "version": "1.0.0",
    "host": os.getenv("API_HOST", "0.0.0.0"),
    "port": int(os.getenv("API_PORT", 8200)),
}

# ==================== LOGGING CONFIGURATION ====================

LOGGING_CONFIG = {
    "level": os.getenv("LOG_LEVEL", "INFO"),
    "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}


@dataclass
class ApcConfig:
    """Per-node tuning constants"""

    high_power_threshold: float = APC_CONFIG["high_power_threshold"]
    visuals_change_delay_s: float = APC_CONFIG["visuals_change_delay_s"]
    screw_time_s: float = APC_CONFIG["screw_time_s"]
    full_charge_tolerance: float = APC_CONFIG["full_charge_tolerance"]
    external_power_tolerance: float = APC_CONFIG["external_power_tolerance"]
    screw_tool_quality: str = APC_CONFIG["screw_tool_quality"]
    breaker_sound_volume: float = APC_CONFIG["breaker_sound_volume"]

    def __post_init__(self):
        """Validate ranges"""
        if not 0.0 < self.high_power_threshold < 1.0:
            raise ValueError(
                f"high_power_threshold must be in (0, 1), got {self.high_power_threshold}"
            )
        if self.visuals_change_delay_s < 0 or self.screw_time_s < 0:
            raise ValueError("Durations must be non-negative")

    @classmethod
    def default(cls) -> 'ApcConfig':
        """Create configuration from APC_CONFIG"""
        return cls()

    @classmethod
    def from_dict(cls, values: Dict) -> 'ApcConfig':
        """Create configuration overriding selected APC_CONFIG keys"""
        merged = {**APC_CONFIG, **values}
        return cls(**{k: merged[k] for k in APC_CONFIG})


def get_string(key: str) -> str:
    """Resolve a localization key, falling back to the key itself"""
    return LOCALE_STRINGS.get(key, key)


def default_access_requirement() -> Optional[List[List[str]]]:
    """Access requirement applied to seeded nodes"""
    return ACCESS_CONFIG.get("default_requirement")
