"""
Timed Tool Operation Engine
"""
import uuid
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional

logger = logging.getLogger(__name__)


class ToolOperationState(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class Tool:
    """A held implement and the qualities it provides (e.g. "Screwing")."""
    tool_id: str
    qualities: FrozenSet[str] = field(default_factory=frozenset)

    def has_qualities(self, required: Iterable[str]) -> bool:
        return set(required).issubset(self.qualities)


class ToolOperation:
    def __init__(self, operation_id: str, tool: Tool, user: str, target: str,
                 started_at: float, duration_s: float, finished_event):
        self.operation_id = operation_id
        self.tool = tool
        self.user = user
        self.target = target
        self.started_at = started_at
        self.completes_at = started_at + duration_s
        self.finished_event = finished_event
        self.state = ToolOperationState.PENDING
        self.finished_at: Optional[float] = None

    def is_due(self, now: float) -> bool:
        """Check if the operation has run its full duration"""
        return self.state == ToolOperationState.PENDING and now >= self.completes_at

    def time_remaining(self, now: float) -> float:
        """Get seconds remaining before completion"""
        if self.state != ToolOperationState.PENDING:
            return 0.0
        return max(0.0, self.completes_at - now)

    def to_dict(self) -> Dict:
        return {
            "operation_id": self.operation_id,
            "tool_id": self.tool.tool_id,
            "user": self.user,
            "target": self.target,
            "started_at": self.started_at,
            "completes_at": self.completes_at,
            "state": self.state.value,
            "finished_at": self.finished_at,
        }


class ToolOperationManager:
    """
    Runs "start now, complete later" tool interactions.

    At most one operation may be pending per target. When an operation's
    duration has elapsed, `update()` hands its finished event to the
    completion callback; cancelled operations never fire.
    """

    def __init__(self, on_finished: Optional[Callable] = None):
        self.operations: Dict[str, ToolOperation] = {}
        self.on_finished = on_finished

    def set_completion_callback(self, callback: Callable):
        """Set callback receiving finished events"""
        self.on_finished = callback

    def get_pending(self, target: str) -> Optional[ToolOperation]:
        for operation in self.operations.values():
            if operation.target == target and operation.state == ToolOperationState.PENDING:
                return operation
        return None

    def use_tool(self, tool: Tool, user: str, target: str, duration_s: float,
                 qualities: Iterable[str], finished_event, now: float) -> Optional[ToolOperation]:
        """
        Start a timed operation.

        Returns:
            The started operation, or None if the tool lacks a required
            quality or the target already has an operation in progress
        """
        qualities = list(qualities)
        if not tool.has_qualities(qualities):
            logger.debug(f"Tool {tool.tool_id} lacks {qualities} - not used on {target}")
            return None

        if self.get_pending(target) is not None:
            logger.debug(f"Target {target} busy - rejecting {tool.tool_id} from {user}")
            return None

        operation_id = str(uuid.uuid4())
        operation = ToolOperation(operation_id, tool, user, target, now, duration_s, finished_event)
        self.operations[operation_id] = operation

        logger.info(f"Tool operation started: {operation_id} - {user} -> {target} ({duration_s}s)")
        return operation

    def update(self, now: float) -> List[ToolOperation]:
        """Complete every due operation. Returns the completed operations."""
        due = sorted(
            (op for op in self.operations.values() if op.is_due(now)),
            key=lambda op: op.completes_at,
        )

        for operation in due:
            operation.state = ToolOperationState.COMPLETED
            operation.finished_at = now
            logger.info(f"Tool operation completed: {operation.operation_id} on {operation.target}")
            if self.on_finished:
                self.on_finished(operation.finished_event)

        return due

    def cancel(self, operation_id: str) -> bool:
        """Cancel a pending operation"""
        operation = self.operations.get(operation_id)

        if not operation or operation.state != ToolOperationState.PENDING:
            return False

        operation.state = ToolOperationState.CANCELLED
        logger.info(f"Tool operation {operation_id} cancelled")
        return True

    def cancel_for_target(self, target: str) -> int:
        """Cancel everything pending on a target (e.g. user moved away)"""
        cancelled = 0
        for operation in list(self.operations.values()):
            if operation.target == target and self.cancel(operation.operation_id):
                cancelled += 1
        return cancelled

    def cleanup(self, now: float, max_age_s: float = 300.0):
        """Remove finished operations from memory"""
        stale = [
            oid for oid, op in self.operations.items()
            if op.state != ToolOperationState.PENDING and now - op.started_at > max_age_s
        ]

        for oid in stale:
            del self.operations[oid]

        if stale:
            logger.debug(f"Cleaned up {len(stale)} finished tool operations")
