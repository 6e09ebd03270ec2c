"""
Test Suite for Security Module

Tests access reader checks and audit logging.
"""

import json
import sys

from security import (
    AccessReader, AccessRequirement, Requester,
    AuditLogger, EventType, Severity,
)


def test_audit_logger_init():
    """Test 1: Audit logger initialization"""
    print("Test 1: Audit logger initialization...", end=" ")

    logger = AuditLogger()

    assert logger.events_logged == 0, "Should start with 0 events"
    assert len(logger.events) == 0, "Should have empty event list"

    print("✓ PASSED")


def test_audit_log_event():
    """Test 2: Log audit event"""
    print("Test 2: Log audit event...", end=" ")

    logger = AuditLogger()

    event = logger.log_event(
        event_type=EventType.BREAKER_TOGGLED,
        severity=Severity.INFO,
        node_id="APC-ENG-01",
        user="engineer",
        action="toggle_main_breaker",
        result="disabled",
    )

    assert event is not None, "Should create event"
    assert logger.events_logged == 1, "Should log 1 event"
    assert event.node_id == "APC-ENG-01", "Should set node"
    assert event.to_dict()["event_type"] == "breaker_toggled", "Should serialize type"

    print("✓ PASSED")


def test_audit_helpers_and_query():
    """Test 3: Helper methods and filtered queries"""
    print("Test 3: Audit helpers and query...", end=" ")

    logger = AuditLogger()

    logger.log_access("APC-ENG-01", "assistant", granted=False)
    logger.log_access("APC-ENG-01", "engineer", granted=True)
    logger.log_breaker_toggle("APC-ENG-01", "engineer", enabled=False)
    logger.log_panel("APC-MED-01", None, opened=True)
    logger.log_override("APC-SEC-01", EventType.NODE_COMPROMISED, {"user": "traitor"})

    assert logger.events_logged == 5, "Should log 5 events"
    assert len(logger.get_events(node_id="APC-ENG-01")) == 3, "Should get 3 events for APC-ENG-01"
    assert len(logger.get_events(event_type=EventType.ACCESS_DENIED)) == 1, "Should get 1 denial"
    assert logger.get_events(user="engineer")[0].event_type == EventType.BREAKER_TOGGLED, \
        "Most recent first"
    assert logger.get_events(severity=Severity.CRITICAL)[0].node_id == "APC-SEC-01"
    assert logger.get_events(limit=0) == [], "Zero limit returns nothing"
    assert len(logger.get_events(limit=2)) == 2

    print("✓ PASSED")


def test_audit_severity_filter_and_statistics():
    """Test 4: Severity floor and statistics"""
    print("Test 4: Audit severity filter...", end=" ")

    logger = AuditLogger(log_level=Severity.WARNING)

    logger.log_breaker_toggle("APC-ENG-01", "engineer", enabled=True)
    logger.log_access("APC-ENG-01", "assistant", granted=False)

    stats = logger.get_statistics()
    assert stats['total_events'] == 1, "INFO event should be filtered"
    assert stats['events_by_type'] == {EventType.ACCESS_DENIED.value: 1}

    print("✓ PASSED")


def test_audit_file_output(tmp_path):
    """Test 5: JSON lines file output"""
    print("Test 5: Audit file output...", end=" ")

    path = tmp_path / "audit" / "apc.log"
    logger = AuditLogger(log_file=str(path))
    logger.log_panel("APC-MED-01", "engineer", opened=False)
    logger.close()

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0])["event_type"] == "panel_closed"

    print("✓ PASSED")


def test_access_any_of_tag_sets():
    """Test 6: Requirement satisfied by any complete tag set"""
    print("Test 6: Access tag sets...", end=" ")

    reader = AccessReader()
    requirement = AccessRequirement.from_lists([["Engineering"], ["Command", "Security"]])

    assert reader.is_allowed(Requester("eng", frozenset({"Engineering", "Maintenance"})), requirement)
    assert reader.is_allowed(Requester("hos", frozenset({"Command", "Security"})), requirement)
    assert not reader.is_allowed(Requester("cap", frozenset({"Command"})), requirement)
    assert not reader.is_allowed(Requester("nobody"), requirement)

    assert reader.stats == {"checks": 4, "granted": 2, "denied": 2}

    print("✓ PASSED")


def test_access_unrestricted_and_compromised():
    """Test 7: Missing/empty requirement and emagged reader grant access"""
    print("Test 7: Unrestricted and compromised...", end=" ")

    reader = AccessReader()
    nobody = Requester("nobody")
    requirement = AccessRequirement.from_lists([["Engineering"]])

    assert reader.is_allowed(nobody, None)
    assert reader.is_allowed(nobody, AccessRequirement())
    assert reader.is_allowed(nobody, requirement, compromised=True)
    assert AccessRequirement.from_lists(None) is None
    assert requirement.to_lists() == [["Engineering"]]

    print("✓ PASSED")


def run_all_tests():
    """Run all security tests that need no fixtures"""
    print("\n" + "="*60)
    print("Security Module Test Suite")
    print("="*60 + "\n")

    tests = [
        test_audit_logger_init,
        test_audit_log_event,
        test_audit_helpers_and_query,
        test_audit_severity_filter_and_statistics,
        test_access_any_of_tag_sets,
        test_access_unrestricted_and_compromised,
    ]

    passed = 0
    failed = 0

    for test in tests:
        try:
            test()
            passed += 1
        except AssertionError as e:
            print(f"✗ FAILED: {e}")
            failed += 1

    print("\n" + "="*60)
    print(f"Results: {passed} passed, {failed} failed")
    print("="*60)

    return 0 if failed == 0 else 1


if __name__ == "__main__":
    sys.exit(run_all_tests())
