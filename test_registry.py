"""
Test Suite for the APC Registry
"""

import pytest

from config import APC_NODES
from control.panel import ApcToolFinishedEvent, PanelState
from control.tools import Tool
from electrical.battery import ElectricalReading
from electrical.charge_state import ChargeState, ExternalPowerState
from nodes.events import EmpPulseEvent, InteractUsingEvent
from nodes.registry import ApcRegistry

SCREWDRIVER = Tool("screwdriver", frozenset({"Screwing"}))


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_seeded_nodes():
    """Test 1: Seeding creates every configured node with published state"""
    registry = ApcRegistry(clock=FakeClock(), seed=True)

    assert set(registry.nodes) == set(APC_NODES)
    for node_id in APC_NODES:
        assert registry.ui.get_state(node_id) is not None
        assert registry.get_node(node_id).access_requirement is not None

    # Saturated battery with balanced flow
    assert registry.get_node("APC-ENG-01").last_charge_state == ChargeState.FULL
    # Battery feeding the network with nothing received
    assert registry.get_node("APC-SEC-01").last_external_state == ExternalPowerState.NONE


def test_add_node_validation():
    """Test 2: Duplicate ids and invalid readings are refused"""
    registry = ApcRegistry(clock=FakeClock())
    registry.add_node("APC-A", ElectricalReading(10.0, 100.0, 0.0, 0.0))

    with pytest.raises(ValueError):
        registry.add_node("APC-A", ElectricalReading(10.0, 100.0, 0.0, 0.0))
    with pytest.raises(ValueError):
        registry.add_node("APC-B", ElectricalReading(10.0, 0.0, 0.0, 0.0))


def test_apply_reading_updates_node():
    """Test 3: Readings are written to the batteries and re-derived"""
    clock = FakeClock()
    registry = ApcRegistry(clock=clock)
    registry.add_node("APC-A", ElectricalReading(10.0, 100.0, 0.0, 0.0))
    assert registry.get_node("APC-A").last_external_state == ExternalPowerState.NONE

    clock.now = 5.0
    node = registry.apply_reading("APC-A", ElectricalReading(95.0, 100.0, 40.0, 50.0))

    assert node.battery.current_charge == 95.0
    assert node.network_battery.current_receiving == 50.0
    assert node.last_charge_state == ChargeState.FULL
    assert node.last_external_state == ExternalPowerState.GOOD
    assert registry.ui.get_state("APC-A").power == 40

    assert registry.apply_reading("APC-MISSING", ElectricalReading(1.0, 1.0, 0.0, 0.0)) is None


def test_tool_completion_routed_by_target():
    """Test 4: Registry update completes screwing on the right node"""
    clock = FakeClock()
    registry = ApcRegistry(clock=clock)
    registry.add_node("APC-A", ElectricalReading(10.0, 100.0, 0.0, 0.0))
    registry.add_node("APC-B", ElectricalReading(10.0, 100.0, 0.0, 0.0))

    assert registry.dispatch("APC-B", InteractUsingEvent(used=SCREWDRIVER, user="eng")).handled
    clock.now = 2.0
    assert registry.update() == 1

    assert registry.get_node("APC-A").panel_state == PanelState.CLOSED
    assert registry.get_node("APC-B").panel_state == PanelState.OPEN


def test_completion_for_removed_node_is_noop():
    """Test 5: A node destroyed mid-operation does not break completion"""
    clock = FakeClock()
    registry = ApcRegistry(clock=clock)
    registry.add_node("APC-A", ElectricalReading(10.0, 100.0, 0.0, 0.0))

    registry.dispatch("APC-A", InteractUsingEvent(used=SCREWDRIVER, user="eng"))
    assert registry.remove_node("APC-A")
    assert not registry.remove_node("APC-A")

    clock.now = 2.0
    assert registry.update() == 0
    registry.handle_tool_finished(ApcToolFinishedEvent("APC-A"))
    assert registry.get_node("APC-A") is None


def test_dispatch_to_missing_node():
    """Test 6: Events for unknown nodes return None"""
    registry = ApcRegistry(clock=FakeClock())
    assert registry.dispatch("APC-NOPE", EmpPulseEvent()) is None


def test_readded_node_not_affected_by_old_operation():
    """Test 7: Removing a node cancels its pending screwing"""
    clock = FakeClock()
    registry = ApcRegistry(clock=clock)
    registry.add_node("APC-A", ElectricalReading(10.0, 100.0, 0.0, 0.0))

    registry.dispatch("APC-A", InteractUsingEvent(used=SCREWDRIVER, user="eng"))
    registry.remove_node("APC-A")
    assert registry.tool_engine.get_pending("APC-A") is None

    clock.now = 1.0
    registry.add_node("APC-A", ElectricalReading(10.0, 100.0, 0.0, 0.0))
    assert registry.dispatch("APC-A", InteractUsingEvent(used=SCREWDRIVER, user="eng")).handled

    # Old operation would have been due at 2.0
    clock.now = 2.0
    assert registry.update() == 0
    assert registry.get_node("APC-A").panel_state == PanelState.CLOSED

    clock.now = 3.0
    assert registry.update() == 1
    assert registry.get_node("APC-A").panel_state == PanelState.OPEN


def test_apply_reading_rejects_invalid():
    """Test 8: Non-finite or negative readings never reach the batteries"""
    registry = ApcRegistry(clock=FakeClock())
    registry.add_node("APC-A", ElectricalReading(10.0, 100.0, 5.0, 5.0))

    with pytest.raises(ValueError):
        registry.apply_reading("APC-A", ElectricalReading(10.0, 100.0, float("inf"), 0.0))
    with pytest.raises(ValueError):
        registry.apply_reading("APC-A", ElectricalReading(-1.0, 100.0, 0.0, 0.0))

    assert registry.get_node("APC-A").network_battery.current_supply == 5.0
