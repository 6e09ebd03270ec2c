"""
FastAPI REST API Server for APC Nodes
Exposes node status, breaker/panel control and override injection
"""

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import Dict, List, Optional
from datetime import datetime
import logging

from config import API_CONFIG, LOGGING_CONFIG, get_string
from control.tools import Tool
from electrical.battery import ElectricalReading
from nodes.apc_node import ApcNode
from nodes.events import (
    EmpPulseEvent,
    ExaminedEvent,
    GotEmaggedEvent,
    InteractUsingEvent,
    ToggleMainBreakerMessage,
)
from nodes.registry import ApcRegistry
from security.access import Requester

# Configure logging
logging.basicConfig(level=LOGGING_CONFIG["level"], format=LOGGING_CONFIG["format"])
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=API_CONFIG["title"],
    description="REST API for Area Power Controller monitoring and control",
    version=API_CONFIG["version"],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global instances
registry = ApcRegistry(seed=True)

# ============================================================================
# Data Models
# ============================================================================

class ReadingRequest(BaseModel):
    # Range checks live in ElectricalReading.is_valid so non-finite input
    # gets the same 422 as negative input
    current_charge: float
    max_charge: float
    current_supply: float
    current_receiving: float

class BreakerToggleRequest(BaseModel):
    requester_id: str
    access_tags: List[str] = []

class ToolUseRequest(BaseModel):
    user_id: str
    tool_id: str
    qualities: List[str] = []

class EmagRequest(BaseModel):
    user_id: Optional[str] = None

# ============================================================================
# Helpers
# ============================================================================

def get_node_or_404(node_id: str) -> ApcNode:
    node = registry.get_node(node_id)
    if node is None:
        raise HTTPException(status_code=404, detail=f"APC {node_id} not found")
    return node

def node_status(node: ApcNode) -> Dict:
    status = node.to_dict()
    ui_state = registry.ui.get_state(node.node_id)
    status["ui_state"] = ui_state.model_dump(mode="json") if ui_state else None
    return status

# ============================================================================
# System Endpoints
# ============================================================================

@app.get("/")
async def root():
    return {
        "name": API_CONFIG["title"],
        "version": API_CONFIG["version"],
        "nodes": len(registry.nodes),
    }

@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
    }

# ============================================================================
# Node Endpoints
# ============================================================================

@app.get("/apcs")
async def get_all_nodes():
    """Get list of all APCs"""
    return {"nodes": [node.to_dict() for node in registry.get_all_nodes()]}

@app.get("/apcs/{node_id}")
async def get_node(node_id: str):
    """Get detailed status of one APC"""
    return node_status(get_node_or_404(node_id))

@app.delete("/apcs/{node_id}")
async def remove_node(node_id: str):
    """Destroy an APC"""
    get_node_or_404(node_id)
    registry.remove_node(node_id)
    return {"status": "removed", "node_id": node_id}

@app.post("/apcs/{node_id}/readings")
async def post_reading(node_id: str, request: ReadingRequest):
    """Feed a power simulation reading to an APC"""
    get_node_or_404(node_id)
    try:
        node = registry.apply_reading(node_id, ElectricalReading(**request.model_dump()))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return node_status(node)

@app.get("/apcs/{node_id}/examine")
async def examine(node_id: str):
    """Describe the APC's panel"""
    node = get_node_or_404(node_id)
    event = node.dispatch(ExaminedEvent(examiner="api"))
    return {
        "node_id": node_id,
        "keys": event.messages,
        "text": [get_string(key) for key in event.messages],
    }

# ============================================================================
# Control Endpoints
# ============================================================================

@app.post("/apcs/{node_id}/breaker")
async def toggle_breaker(node_id: str, request: BreakerToggleRequest):
    """Toggle the main breaker on behalf of a requester"""
    node = get_node_or_404(node_id)
    requester = Requester(request.requester_id, frozenset(request.access_tags))

    before = node.breaker_enabled
    node.dispatch(ToggleMainBreakerMessage(requester=requester))

    if node.breaker_enabled == before:
        raise HTTPException(status_code=403, detail=get_string("apc-component-insufficient-access"))

    return node_status(node)

@app.post("/apcs/{node_id}/tool")
async def use_tool(node_id: str, request: ToolUseRequest):
    """Apply a tool to the APC (screwing toggles the panel)"""
    get_node_or_404(node_id)
    tool = Tool(request.tool_id, frozenset(request.qualities))
    event = registry.dispatch(node_id, InteractUsingEvent(used=tool, user=request.user_id))

    operation = registry.tool_engine.get_pending(node_id) if event.handled else None
    return {
        "accepted": event.handled,
        "operation": operation.to_dict() if operation else None,
    }

@app.post("/tools/update")
async def update_tools():
    """Complete every due tool operation"""
    return {"completed": registry.update()}

@app.post("/tools/{operation_id}/cancel")
async def cancel_tool(operation_id: str):
    """Cancel a pending tool operation"""
    if not registry.tool_engine.cancel(operation_id):
        raise HTTPException(status_code=404, detail=f"No pending operation {operation_id}")
    return {"status": "cancelled", "operation_id": operation_id}

# ============================================================================
# Override Endpoints
# ============================================================================

@app.post("/apcs/{node_id}/emag")
async def emag(node_id: str, request: EmagRequest):
    """Compromise the APC's access reader"""
    get_node_or_404(node_id)
    event = registry.dispatch(node_id, GotEmaggedEvent(user=request.user_id))
    return {"handled": event.handled}

@app.post("/apcs/{node_id}/emp")
async def emp(node_id: str):
    """Hit the APC with an electromagnetic pulse"""
    get_node_or_404(node_id)
    event = registry.dispatch(node_id, EmpPulseEvent())
    return {"affected": event.affected}

@app.get("/audit")
async def get_audit(node_id: Optional[str] = None, limit: int = 100):
    """Recent audit events"""
    events = registry.audit.get_events(node_id=node_id, limit=limit)
    return {
        "events": [e.to_dict() for e in events],
        "statistics": registry.audit.get_statistics(),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=API_CONFIG["host"], port=API_CONFIG["port"])
