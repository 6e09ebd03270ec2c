"""
APC Registry - Owns every APC node and routes events to them
"""
import logging
import time
from typing import Callable, Dict, List, Optional

from config import APC_NODES, ApcConfig, default_access_requirement
from control.panel import ApcToolFinishedEvent
from control.tools import ToolOperationManager
from electrical.battery import Battery, ElectricalReading, PowerNetworkBattery
from nodes.apc_node import ApcNode
from nodes.events import ChargeChangedEvent, MapInitEvent
from security.access import AccessReader, AccessRequirement
from security.audit_logger import AuditLogger
from ui.sinks import AppearanceSink, AudioSink, PopupSink, UserInterfaceSink

logger = logging.getLogger(__name__)


class ApcRegistry:
    """
    Node table plus the collaborators every node shares.

    Tool completions are routed back through the registry by target id, so
    a completion for a node removed in the meantime is simply dropped.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, seed: bool = False):
        self.clock = clock
        self.nodes: Dict[str, ApcNode] = {}

        self.access_reader = AccessReader()
        self.tool_engine = ToolOperationManager(on_finished=self.handle_tool_finished)
        self.appearance = AppearanceSink()
        self.ui = UserInterfaceSink()
        self.audio = AudioSink()
        self.popups = PopupSink()
        self.audit = AuditLogger()

        if seed:
            self._initialize_nodes()

    def _initialize_nodes(self):
        """Create the nodes listed in APC_NODES"""
        requirement = AccessRequirement.from_lists(default_access_requirement())
        for node_id, values in APC_NODES.items():
            self.add_node(node_id, ElectricalReading(*values), access_requirement=requirement)

    def add_node(
        self,
        node_id: str,
        reading: ElectricalReading,
        access_requirement: Optional[AccessRequirement] = None,
        config: Optional[ApcConfig] = None,
    ) -> ApcNode:
        """
        Spawn a node with its battery components and publish its initial state.

        Raises:
            ValueError: node_id already registered or reading invalid
        """
        if node_id in self.nodes:
            raise ValueError(f"APC {node_id} already registered")
        if not reading.is_valid():
            raise ValueError(f"Invalid initial reading for {node_id}: {reading}")

        battery = Battery()
        network_battery = PowerNetworkBattery()
        reading.apply_to(battery, network_battery)

        node = ApcNode(
            node_id,
            battery,
            network_battery,
            config=config,
            access_requirement=access_requirement,
            access_reader=self.access_reader,
            tool_engine=self.tool_engine,
            appearance=self.appearance,
            ui=self.ui,
            audio=self.audio,
            popups=self.popups,
            audit=self.audit,
            clock=self.clock,
        )
        self.nodes[node_id] = node
        logger.info(f"Registered APC {node_id}")

        node.dispatch(MapInitEvent())
        return node

    def remove_node(self, node_id: str) -> bool:
        """Destroy a node and cancel any tool operation still pending on it."""
        if self.nodes.pop(node_id, None) is None:
            return False
        self.tool_engine.cancel_for_target(node_id)
        logger.info(f"Removed APC {node_id}")
        return True

    def get_node(self, node_id: str) -> Optional[ApcNode]:
        """Get node by ID"""
        return self.nodes.get(node_id)

    def get_all_nodes(self) -> List[ApcNode]:
        """Get all nodes"""
        return list(self.nodes.values())

    def dispatch(self, node_id: str, event):
        """
        Deliver an event to one node.

        Returns:
            The event, or None if the node does not exist
        """
        node = self.nodes.get(node_id)
        if node is None:
            return None
        return node.dispatch(event)

    def apply_reading(self, node_id: str, reading: ElectricalReading) -> Optional[ApcNode]:
        """
        Write a simulation reading into a node's batteries and notify it.

        Raises:
            ValueError: reading is negative, non-finite or has no capacity
        """
        node = self.nodes.get(node_id)
        if node is None:
            return None
        if not reading.is_valid():
            raise ValueError(f"Invalid reading for {node_id}: {reading}")

        reading.apply_to(node.battery, node.network_battery)
        node.dispatch(ChargeChangedEvent())
        return node

    def handle_tool_finished(self, event: ApcToolFinishedEvent):
        """Tool engine completion callback"""
        node = self.nodes.get(event.target)
        if node is None:
            logger.debug(f"Tool finished for missing APC {event.target} - ignored")
            return
        node.dispatch(event)

    def update(self, now: Optional[float] = None) -> int:
        """Advance timed tool operations. Returns how many completed."""
        now = self.clock() if now is None else now
        completed = self.tool_engine.update(now)
        self.tool_engine.cleanup(now)
        return len(completed)
