"""
Test Suite for APC API Server
Tests REST endpoints for status, control and overrides
"""

import time

import pytest
from fastapi.testclient import TestClient

import api_server
from api_server import app
from electrical.battery import ElectricalReading

# Test client
client = TestClient(app)


def add_test_node(node_id: str, requirement=None):
    """Register a fresh node directly on the server's registry"""
    from security.access import AccessRequirement
    api_server.registry.remove_node(node_id)
    return api_server.registry.add_node(
        node_id,
        ElectricalReading(40.0, 100.0, 10.0, 10.0),
        access_requirement=AccessRequirement.from_lists(requirement),
    )

# ============================================================================
# System
# ============================================================================

def test_health_check():
    """Test API health endpoint"""
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_root_endpoint():
    """Test root endpoint returns API info"""
    response = client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "APC Control API"
    assert "version" in data

# ============================================================================
# Nodes
# ============================================================================

def test_list_seeded_nodes():
    """Test seeded APCs are listed"""
    response = client.get("/apcs")

    assert response.status_code == 200
    node_ids = {n["node_id"] for n in response.json()["nodes"]}
    assert {"APC-ENG-01", "APC-MED-01", "APC-SEC-01"} <= node_ids


def test_node_status_and_404():
    """Test single node status"""
    add_test_node("APC-API-STATUS")

    response = client.get("/apcs/APC-API-STATUS")
    assert response.status_code == 200
    data = response.json()
    assert data["breaker_enabled"] is True
    assert data["panel_state"] == "CLOSED"
    assert data["charge_state"] == "LACK"
    assert data["ui_state"]["power"] == 10

    assert client.get("/apcs/APC-NOPE").status_code == 404


def test_post_reading():
    """Test feeding a reading re-derives state"""
    add_test_node("APC-API-READING")

    response = client.post("/apcs/APC-API-READING/readings", json={
        "current_charge": 100.0,
        "max_charge": 100.0,
        "current_supply": 25.0,
        "current_receiving": 0.0,
    })

    assert response.status_code == 200
    data = response.json()
    assert data["external_power_state"] == "LOW"
    assert data["ui_state"]["external_power"] == "LOW"
    assert data["ui_state"]["power"] == 25

    bad = client.post("/apcs/APC-API-READING/readings", json={
        "current_charge": 1.0,
        "max_charge": 0.0,
        "current_supply": 0.0,
        "current_receiving": 0.0,
    })
    assert bad.status_code == 422


def test_post_non_finite_reading():
    """Test non-finite readings are rejected before reaching the node"""
    node = add_test_node("APC-API-INFINITE")

    response = client.post(
        "/apcs/APC-API-INFINITE/readings",
        content='{"current_charge": 1.0, "max_charge": 100.0, "current_supply": Infinity, "current_receiving": 0.0}',
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 422

    response = client.post(
        "/apcs/APC-API-INFINITE/readings",
        content='{"current_charge": NaN, "max_charge": 100.0, "current_supply": 1.0, "current_receiving": 0.0}',
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 422
    assert node.network_battery.current_supply == 10.0
    assert node.battery.current_charge == 40.0

# ============================================================================
# Control
# ============================================================================

def test_breaker_access_control():
    """Test breaker toggle is gated by access tags"""
    add_test_node("APC-API-BREAKER", requirement=[["Engineering"]])

    denied = client.post("/apcs/APC-API-BREAKER/breaker", json={
        "requester_id": "assistant",
        "access_tags": ["Maintenance"],
    })
    assert denied.status_code == 403
    assert api_server.registry.get_node("APC-API-BREAKER").breaker_enabled is True

    granted = client.post("/apcs/APC-API-BREAKER/breaker", json={
        "requester_id": "engineer",
        "access_tags": ["Engineering"],
    })
    assert granted.status_code == 200
    assert granted.json()["breaker_enabled"] is False
    assert granted.json()["ui_state"]["main_breaker"] is False


def test_panel_tool_flow():
    """Test screwing the panel open through the API"""
    add_test_node("APC-API-PANEL")

    rejected = client.post("/apcs/APC-API-PANEL/tool", json={
        "user_id": "engineer", "tool_id": "wrench", "qualities": ["Anchoring"],
    })
    assert rejected.json() == {"accepted": False, "operation": None}

    accepted = client.post("/apcs/APC-API-PANEL/tool", json={
        "user_id": "engineer", "tool_id": "screwdriver", "qualities": ["Screwing"],
    })
    data = accepted.json()
    assert data["accepted"] is True
    assert data["operation"]["target"] == "APC-API-PANEL"

    api_server.registry.update(now=time.monotonic() + 10.0)

    examine = client.get("/apcs/APC-API-PANEL/examine")
    assert examine.json()["keys"] == ["apc-component-on-examine-panel-open"]
    assert "open" in examine.json()["text"][0]


def test_cancel_tool_operation():
    """Test cancelling a pending screwing operation"""
    add_test_node("APC-API-CANCEL")

    data = client.post("/apcs/APC-API-CANCEL/tool", json={
        "user_id": "engineer", "tool_id": "screwdriver", "qualities": ["Screwing"],
    }).json()
    operation_id = data["operation"]["operation_id"]

    assert client.post(f"/tools/{operation_id}/cancel").status_code == 200
    assert client.post(f"/tools/{operation_id}/cancel").status_code == 404

    api_server.registry.update(now=time.monotonic() + 10.0)
    assert api_server.registry.get_node("APC-API-CANCEL").panel_open is False

# ============================================================================
# Overrides
# ============================================================================

def test_emag_and_emp():
    """Test override endpoints"""
    add_test_node("APC-API-OVERRIDE", requirement=[["Command"]])

    assert client.post("/apcs/APC-API-OVERRIDE/emag", json={"user_id": "traitor"}).json() == {"handled": True}
    assert client.get("/apcs/APC-API-OVERRIDE").json()["compromised"] is True

    assert client.post("/apcs/APC-API-OVERRIDE/emp").json() == {"affected": True}
    assert client.post("/apcs/APC-API-OVERRIDE/emp").json() == {"affected": False}
    assert client.get("/apcs/APC-API-OVERRIDE").json()["breaker_enabled"] is False

    audit = client.get("/audit", params={"node_id": "APC-API-OVERRIDE"}).json()
    types = {e["event_type"] for e in audit["events"]}
    assert {"node_compromised", "disturbance_trip", "breaker_toggled"} <= types


def test_delete_node():
    """Test removing a node"""
    add_test_node("APC-API-DELETE")

    assert client.delete("/apcs/APC-API-DELETE").status_code == 200
    assert client.delete("/apcs/APC-API-DELETE").status_code == 404
    assert client.post("/apcs/APC-API-DELETE/emp").status_code == 404


@pytest.mark.parametrize("path", ["/apcs/APC-NOPE/emp", "/tools/update"])
def test_post_endpoints_respond(path):
    """Test bodiless POST endpoints"""
    response = client.post(path)
    assert response.status_code in (200, 404)
