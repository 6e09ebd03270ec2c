"""
Security Module - Access Control and Audit Logging

Provides security controls for APC node operations including:
- Access reader checks before manual breaker control
- Audit trail for breaker, panel and override events
"""

from .access import AccessReader, AccessRequirement, Requester
from .audit_logger import AuditLogger, AuditEvent, EventType, Severity

__all__ = [
    'AccessReader',
    'AccessRequirement',
    'Requester',
    'AuditLogger',
    'AuditEvent',
    'EventType',
    'Severity',
]
