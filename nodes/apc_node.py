"""
APC Node
========

Area Power Controller: the access node between a shared power network and
the consumers in one area.

This class integrates:
    - State derivation (charge lamp, external power state)
    - Visual debounce (no lamp flicker, periodic UI wattage refresh)
    - Main breaker control behind an access reader
    - Screw-gated access panel
    - Emag (permanent) and EMP (transient) overrides

Required context is the battery pair the power simulation owns. Everything
else (access requirement, sinks, tool engine, audit trail) is optional; when
absent, the corresponding step is skipped.

Events are delivered one at a time through dispatch(). Each handler runs to
completion; nothing here blocks or awaits.
"""

import logging
import time
from typing import Callable, Dict, Optional

from config import ApcConfig, SOUND_CONFIG
from control.breaker import BreakerController
from control.debounce import StateKind, VisualsDebounceGate
from control.panel import ApcToolFinishedEvent, PanelAccessController, PanelState, get_panel_state
from control.tools import ToolOperationManager
from electrical.battery import Battery, ElectricalReading, PowerNetworkBattery
from electrical.charge_state import (
    ChargeState,
    ExternalPowerState,
    derive_charge_state,
    derive_external_power_state,
)
from nodes.events import (
    ChargeChangedEvent,
    EmpPulseEvent,
    ExaminedEvent,
    GotEmaggedEvent,
    InteractUsingEvent,
    MapInitEvent,
    ToggleMainBreakerMessage,
)
from security.access import AccessReader, AccessRequirement
from security.audit_logger import AuditLogger, EventType
from ui.sinks import AppearanceSink, AudioSink, PopupSink, UserInterfaceSink
from ui.state import ApcBoundInterfaceState, ApcVisuals

logger = logging.getLogger(__name__)

INSUFFICIENT_ACCESS_KEY = "apc-component-insufficient-access"
EXAMINE_PANEL_OPEN_KEY = "apc-component-on-examine-panel-open"
EXAMINE_PANEL_CLOSED_KEY = "apc-component-on-examine-panel-closed"


class ApcNode:
    """
    Area Power Controller node.
    """

    def __init__(
        self,
        node_id: str,
        battery: Battery,
        network_battery: PowerNetworkBattery,
        config: Optional[ApcConfig] = None,
        access_requirement: Optional[AccessRequirement] = None,
        access_reader: Optional[AccessReader] = None,
        tool_engine: Optional[ToolOperationManager] = None,
        appearance: Optional[AppearanceSink] = None,
        ui: Optional[UserInterfaceSink] = None,
        audio: Optional[AudioSink] = None,
        popups: Optional[PopupSink] = None,
        audit: Optional[AuditLogger] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize APC node.

        Args:
            node_id: Unique node identifier (e.g., "APC-ENG-01")
            battery: Local charge store (owned by the power simulation)
            network_battery: Network terminal (owned by the power simulation)
            config: Tuning constants (defaults from APC_CONFIG)
            access_requirement: Access needed for manual breaker control
            access_reader: Predicate evaluating requesters
            tool_engine: Runs timed screwing operations on the panel
            appearance: Sink for charge lamp / panel visuals
            ui: Sink for control-window snapshots
            audio: Sink for sound cues
            popups: Sink for per-actor notices
            audit: Audit trail
            clock: Time source in seconds
        """
        self.node_id = node_id
        self.battery = battery
        self.network_battery = network_battery
        self.config = config or ApcConfig.default()

        self.access_requirement = access_requirement
        self.access_reader = access_reader or AccessReader()
        self.tool_engine = tool_engine
        self.appearance = appearance
        self.ui = ui
        self.audio = audio
        self.popups = popups
        self.audit = audit
        self.clock = clock

        self.compromised = False

        self.breaker = BreakerController(node_id, network_battery)
        self.gate = VisualsDebounceGate(self.config.visuals_change_delay_s)
        self.panel: Optional[PanelAccessController] = None
        if tool_engine is not None:
            self.panel = PanelAccessController(
                node_id,
                tool_engine,
                self.config.screw_time_s,
                self.config.screw_tool_quality,
            )

        self._handlers = {
            MapInitEvent: self._on_map_init,
            ChargeChangedEvent: self._on_charge_changed,
            ToggleMainBreakerMessage: self._on_toggle_main_breaker,
            InteractUsingEvent: self._on_interact_using,
            ApcToolFinishedEvent: self._on_tool_finished,
            ExaminedEvent: self._on_examine,
            GotEmaggedEvent: self._on_emagged,
            EmpPulseEvent: self._on_emp_pulse,
        }

        logger.info(f"APC {node_id} initialized - breaker ENABLED, panel CLOSED")

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------

    @property
    def breaker_enabled(self) -> bool:
        return self.breaker.breaker_enabled

    @property
    def panel_open(self) -> bool:
        return self.panel.panel_open if self.panel else False

    @property
    def panel_state(self) -> PanelState:
        return get_panel_state(self.panel_open)

    @property
    def last_charge_state(self) -> Optional[ChargeState]:
        return self.gate.last_charge_state

    @property
    def last_charge_state_time(self) -> Optional[float]:
        return self.gate.last_charge_state_time

    @property
    def last_external_state(self) -> Optional[ExternalPowerState]:
        return self.gate.last_external_state

    @property
    def last_ui_update_time(self) -> Optional[float]:
        return self.gate.last_ui_update_time

    def read(self) -> ElectricalReading:
        """Snapshot the live battery components."""
        return ElectricalReading.capture(self.battery, self.network_battery)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, event):
        """
        Deliver one event to its handler.

        Returns:
            The event, with any outcome flags set

        Raises:
            TypeError: event is not one of the node's event types
        """
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"{self.node_id}: unsupported event {type(event).__name__}")
        handler(event)
        return event

    def _on_map_init(self, event: MapInitEvent):
        self.update_apc_state()

    def _on_charge_changed(self, event: ChargeChangedEvent):
        self.update_apc_state()

    # ------------------------------------------------------------------
    # State derivation and publication
    # ------------------------------------------------------------------

    def calc_charge_state(self, reading: Optional[ElectricalReading] = None) -> ChargeState:
        reading = reading or self.read()
        return derive_charge_state(
            reading,
            self.breaker_enabled,
            self.compromised,
            self.config.high_power_threshold,
        )

    def calc_ext_power_state(self, reading: Optional[ElectricalReading] = None) -> ExternalPowerState:
        reading = reading or self.read()
        return derive_external_power_state(
            reading,
            self.config.full_charge_tolerance,
            self.config.external_power_tolerance,
        )

    def update_apc_state(self, now: Optional[float] = None):
        """
        Re-derive both display states and publish whatever the gate lets through.

        Args:
            now: Current time (defaults to the node's clock)
        """
        now = self.clock() if now is None else now
        reading = self.read()

        self._update_panel_appearance()

        charge_state = self.calc_charge_state(reading)
        if self.gate.maybe_update(StateKind.CHARGE, charge_state, now):
            logger.debug(f"{self.node_id} - Charge state -> {charge_state.value}")
            if self.appearance is not None:
                self.appearance.set_data(self.node_id, ApcVisuals.CHARGE_STATE, charge_state)

        external_state = self.calc_ext_power_state(reading)
        if self.gate.maybe_update(StateKind.EXTERNAL, external_state, now):
            self.update_ui_state(reading)

    def build_ui_state(self, reading: Optional[ElectricalReading] = None) -> ApcBoundInterfaceState:
        reading = reading or self.read()
        return ApcBoundInterfaceState.build(
            main_breaker=self.breaker_enabled,
            supply_watts=self.network_battery.current_supply,
            external_power=self.last_external_state or ExternalPowerState.NONE,
            charge_fraction=reading.charge_fraction,
        )

    def update_ui_state(self, reading: Optional[ElectricalReading] = None):
        """Push a full snapshot to the control window, if the node has one."""
        if self.ui is None:
            return
        self.ui.set_state(self.node_id, self.build_ui_state(reading))

    def _update_panel_appearance(self):
        if self.appearance is None:
            return
        self.appearance.set_data(self.node_id, ApcVisuals.PANEL_STATE, self.panel_state)

    # ------------------------------------------------------------------
    # Main breaker
    # ------------------------------------------------------------------

    def toggle_breaker(self, user: Optional[str] = None) -> bool:
        """
        Flip the main breaker without any access check.

        Returns:
            New breaker state
        """
        enabled = self.breaker.toggle()

        self.update_ui_state()
        if self.audio is not None:
            self.audio.play(self.node_id, SOUND_CONFIG["breaker_toggle"], self.config.breaker_sound_volume)
        if self.audit is not None:
            self.audit.log_breaker_toggle(self.node_id, user, enabled)

        return enabled

    def _on_toggle_main_breaker(self, message: ToggleMainBreakerMessage):
        requester = message.requester
        if requester is None:
            return

        allowed = self.access_reader.is_allowed(requester, self.access_requirement, self.compromised)
        if self.audit is not None and self.access_requirement is not None:
            self.audit.log_access(self.node_id, requester.identity, allowed)

        if allowed:
            self.toggle_breaker(requester.identity)
            return

        logger.warning(f"{self.node_id} - Breaker toggle denied for {requester.identity}")
        if self.popups is not None:
            self.popups.popup_cursor(requester.identity, INSUFFICIENT_ACCESS_KEY)

    # ------------------------------------------------------------------
    # Access panel
    # ------------------------------------------------------------------

    def _on_interact_using(self, event: InteractUsingEvent):
        if self.panel is None:
            return
        if self.panel.begin_toggle(event.used, event.user, self.clock()):
            event.handled = True

    def _on_tool_finished(self, event: ApcToolFinishedEvent):
        if self.panel is None or event.target != self.node_id:
            return

        state = self.panel.on_toggle_complete()
        self._update_panel_appearance()

        opened = state == PanelState.OPEN
        if self.audio is not None:
            sound = SOUND_CONFIG["screwdriver_open"] if opened else SOUND_CONFIG["screwdriver_close"]
            self.audio.play(self.node_id, sound)
        if self.audit is not None:
            self.audit.log_panel(self.node_id, None, opened)

    def examine_key(self) -> str:
        """Localization key describing the panel."""
        return EXAMINE_PANEL_OPEN_KEY if self.panel_open else EXAMINE_PANEL_CLOSED_KEY

    def _on_examine(self, event: ExaminedEvent):
        event.messages.append(self.examine_key())

    # ------------------------------------------------------------------
    # Overrides
    # ------------------------------------------------------------------

    def _on_emagged(self, event: GotEmaggedEvent):
        if not self.compromised:
            self.compromised = True
            logger.warning(f"{self.node_id} - Access reader COMPROMISED")
            if self.audit is not None:
                self.audit.log_override(
                    self.node_id, EventType.NODE_COMPROMISED, {"user": event.user}
                )
        event.handled = True

    def _on_emp_pulse(self, event: EmpPulseEvent):
        if not self.breaker_enabled:
            return

        event.affected = True
        logger.warning(f"{self.node_id} - EMP tripped main breaker")
        self.toggle_breaker()
        if self.audit is not None:
            self.audit.log_override(self.node_id, EventType.DISTURBANCE_TRIP)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict:
        reading = self.read()
        return {
            "node_id": self.node_id,
            "breaker_enabled": self.breaker_enabled,
            "panel_state": self.panel_state.value,
            "compromised": self.compromised,
            "charge_state": self.last_charge_state.value if self.last_charge_state else None,
            "external_power_state": self.last_external_state.value if self.last_external_state else None,
            "charge_fraction": round(reading.charge_fraction, 4),
            "current_supply_w": reading.current_supply,
            "current_receiving_w": reading.current_receiving,
            "requires_access": self.access_requirement.to_lists() if self.access_requirement else None,
        }


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)

    print("\n===== APC NODE TEST =====\n")

    clock_time = [0.0]
    engine = ToolOperationManager()
    ui_sink = UserInterfaceSink()
    appearance_sink = AppearanceSink()

    node = ApcNode(
        "APC-TEST-01",
        Battery(current_charge=50000.0, max_charge=50000.0),
        PowerNetworkBattery(current_supply=1200.0, current_receiving=1200.0),
        tool_engine=engine,
        appearance=appearance_sink,
        ui=ui_sink,
        clock=lambda: clock_time[0],
    )
    engine.set_completion_callback(node.dispatch)

    node.dispatch(MapInitEvent())
    print(f"Charge state: {node.last_charge_state.value}")
    print(f"External power: {node.last_external_state.value}")
    print(f"UI: {ui_sink.get_state(node.node_id)}")

    node.dispatch(EmpPulseEvent())
    print(f"\nAfter EMP, breaker enabled: {node.breaker_enabled}")

    from control.tools import Tool
    screwdriver = Tool("screwdriver", frozenset({"Screwing"}))
    node.dispatch(InteractUsingEvent(used=screwdriver, user="engineer"))
    clock_time[0] += node.config.screw_time_s
    engine.update(clock_time[0])
    print(f"Panel after screwing: {node.panel_state.value}")

    print("\n✅ APC node test complete\n")
