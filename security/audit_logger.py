"""
Audit Logger - Operator and override event trail for APC nodes

Records who did what to which node:
- Main breaker toggles (manual and EMP-forced)
- Access granted / denied at the breaker
- Access panel opened / closed
- Emag compromise

Events are kept in a bounded ring in memory. When a log file is given, each
recorded event is also appended to it as one JSON line.
"""

import json
import logging
from collections import Counter, deque
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Deque, Dict, List, Optional

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Types of audit events"""
    ACCESS_GRANTED = "access_granted"
    ACCESS_DENIED = "access_denied"

    BREAKER_TOGGLED = "breaker_toggled"
    DISTURBANCE_TRIP = "disturbance_trip"

    PANEL_OPENED = "panel_opened"
    PANEL_CLOSED = "panel_closed"

    NODE_COMPROMISED = "node_compromised"


class Severity(Enum):
    """Severity levels, declared from least to most severe"""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return list(Severity).index(self)

    @property
    def log_level(self) -> int:
        return getattr(logging, self.name)


@dataclass(frozen=True)
class AuditEvent:
    """One recorded action against a node"""
    timestamp: datetime
    event_type: EventType
    severity: Severity
    node_id: Optional[str] = None
    user: Optional[str] = None
    action: Optional[str] = None
    result: Optional[str] = None
    details: Optional[Dict] = None

    def to_dict(self) -> Dict:
        """Serializable form; unset fields are omitted"""
        data = {k: v for k, v in asdict(self).items() if v}
        data['timestamp'] = self.timestamp.isoformat()
        data['event_type'] = self.event_type.value
        data['severity'] = self.severity.value
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


class AuditLogger:
    """
    Audit trail shared by the nodes of a registry.

    Events below `log_level` are created and returned but not recorded.
    """

    def __init__(self,
                 log_file: Optional[str] = None,
                 log_to_console: bool = False,
                 log_level: Severity = Severity.INFO,
                 max_events_in_memory: int = 10000):
        """
        Args:
            log_file: JSON-lines output path (None = memory only)
            log_to_console: Echo each recorded event through this module's logger
            log_level: Minimum severity to record
            max_events_in_memory: Ring size; oldest events are dropped first
        """
        self.log_file = log_file
        self.log_to_console = log_to_console
        self.log_level = log_level

        self.events: Deque[AuditEvent] = deque(maxlen=max_events_in_memory)
        self.events_logged = 0
        self.events_by_type: Counter = Counter()
        self.events_by_severity: Counter = Counter()

        self._file_handler: Optional[logging.FileHandler] = None
        self._file_logger: Optional[logging.Logger] = None
        if log_file:
            self._open_file(log_file)

    def _open_file(self, log_file: str):
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        except OSError as e:
            logger.error(f"Failed to open audit log file {log_file}: {e}")
            return

        handler.setFormatter(logging.Formatter('%(message)s'))
        file_logger = logging.getLogger(f"{__name__}.file.{id(self)}")
        file_logger.setLevel(logging.DEBUG)
        file_logger.propagate = False
        file_logger.addHandler(handler)

        self._file_handler = handler
        self._file_logger = file_logger

    def log_event(self,
                  event_type: EventType,
                  severity: Severity = Severity.INFO,
                  node_id: Optional[str] = None,
                  user: Optional[str] = None,
                  action: Optional[str] = None,
                  result: Optional[str] = None,
                  details: Optional[Dict] = None) -> AuditEvent:
        """
        Record an audit event.

        Returns:
            The created AuditEvent, recorded or not
        """
        event = AuditEvent(
            timestamp=datetime.now(timezone.utc),
            event_type=event_type,
            severity=severity,
            node_id=node_id,
            user=user,
            action=action,
            result=result,
            details=details,
        )

        if severity.rank < self.log_level.rank:
            return event

        self.events.append(event)
        self.events_logged += 1
        self.events_by_type[event_type] += 1
        self.events_by_severity[severity] += 1

        if self._file_logger is not None:
            self._file_logger.info(event.to_json())

        if self.log_to_console:
            logger.log(
                severity.log_level,
                f"[{event_type.value}] {node_id or '-'} by {user or 'system'}: "
                f"{action or '-'} -> {result or '-'}" + (f" {details}" if details else ""),
            )

        return event

    # ------------------------------------------------------------------
    # APC helpers
    # ------------------------------------------------------------------

    def log_breaker_toggle(self, node_id: str, user: Optional[str], enabled: bool):
        self.log_event(
            EventType.BREAKER_TOGGLED,
            node_id=node_id,
            user=user,
            action="toggle_main_breaker",
            result="enabled" if enabled else "disabled",
        )

    def log_access(self, node_id: str, user: str, granted: bool, action: str = "toggle_main_breaker"):
        """Access reader decision; denials are warnings"""
        self.log_event(
            EventType.ACCESS_GRANTED if granted else EventType.ACCESS_DENIED,
            severity=Severity.INFO if granted else Severity.WARNING,
            node_id=node_id,
            user=user,
            action=action,
            result="granted" if granted else "denied",
        )

    def log_panel(self, node_id: str, user: Optional[str], opened: bool):
        self.log_event(
            EventType.PANEL_OPENED if opened else EventType.PANEL_CLOSED,
            node_id=node_id,
            user=user,
            action="screw_panel",
            result="open" if opened else "closed",
        )

    def log_override(self, node_id: str, event_type: EventType, details: Optional[Dict] = None):
        """Emag compromise is critical, anything else a warning"""
        self.log_event(
            event_type,
            severity=Severity.CRITICAL if event_type == EventType.NODE_COMPROMISED else Severity.WARNING,
            node_id=node_id,
            action=event_type.value,
            details=details,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_events(self,
                   event_type: Optional[EventType] = None,
                   node_id: Optional[str] = None,
                   user: Optional[str] = None,
                   severity: Optional[Severity] = None,
                   limit: int = 100) -> List[AuditEvent]:
        """Recorded events matching every given filter, most recent first"""
        matches = []
        for event in reversed(self.events):
            if len(matches) >= limit:
                break
            if event_type and event.event_type != event_type:
                continue
            if node_id and event.node_id != node_id:
                continue
            if user and event.user != user:
                continue
            if severity and event.severity != severity:
                continue
            matches.append(event)
        return matches

    def get_statistics(self) -> Dict:
        return {
            'total_events': self.events_logged,
            'events_in_memory': len(self.events),
            'events_by_type': {k.value: v for k, v in self.events_by_type.items()},
            'events_by_severity': {k.value: v for k, v in self.events_by_severity.items()},
        }

    def close(self):
        """Detach and close the file output, if any"""
        if self._file_handler is None:
            return
        self._file_logger.removeHandler(self._file_handler)
        self._file_handler.close()
        self._file_handler = None
        self._file_logger = None
