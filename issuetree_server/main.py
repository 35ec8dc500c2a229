"""
Issue Tree Backend - FastAPI Application

This is the main entry point for the issue tree backend.
It provides:
- REST API for graph operations (build from analysis, nodes/edges, layout)
- Viewport and pointer-event endpoints driving the interaction controller
- WebSocket endpoint for real-time updates
- CORS configuration for local frontend development
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Body, FastAPI, HTTPException, Query, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from issuetree import BuildOptions, CyclicGraph, EdgeStyle, EditorMode, MalformedInput, NodeKind, Point
from issuetree.interaction import describe_state
from issuetree.models import (
    CreateEdgeRequest,
    CreateNodeRequest,
    FitRequest,
    LayoutRequest,
    MoveNodeRequest,
    PanRequest,
    PointerEventRequest,
    ZoomRequest,
)

from .session import editor_session, pointer_event_from_request
from .websocket_manager import ws_manager

logger = logging.getLogger(__name__)


# --- Async change notification ---
# Bridge between sync EditorSession callbacks and async WebSocket broadcasts

_change_event = asyncio.Event()


def on_graph_change():
    """Callback for session changes - sets event for async handler."""
    _change_event.set()


async def change_broadcaster():
    """Background task that broadcasts changes to WebSocket clients."""
    while True:
        await _change_event.wait()
        _change_event.clear()
        await ws_manager.notify_graph_updated(editor_session.mode.value)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler for startup/shutdown tasks."""
    editor_session.on_change(on_graph_change)
    broadcaster_task = asyncio.create_task(change_broadcaster())
    logger.info("Editor backend started in %s mode", editor_session.mode.value)

    yield

    editor_session.off_change(on_graph_change)
    broadcaster_task.cancel()
    try:
        await broadcaster_task
    except asyncio.CancelledError:
        pass


# --- FastAPI App ---

app = FastAPI(
    title="Issue Tree API",
    description="Backend API for the issue tree and workflow graph editor",
    version="1.0.0",
    lifespan=lifespan
)

# CORS for local development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Health Check ---

@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "connections": ws_manager.connection_count}


# --- Graph State ---

@app.get("/api/graph")
async def get_graph():
    """Get the current graph, viewport and interaction state."""
    return editor_session.get_state()


@app.post("/api/graph/new")
async def new_graph(mode: EditorMode = Query(default=EditorMode.FREE_FORM)):
    """Start an empty graph."""
    snapshot = editor_session.new_graph(mode=mode)
    return {"success": True, "mode": mode.value, "graph": snapshot.to_json_dict()}


@app.post("/api/graph/analysis")
async def load_analysis(
    data: Any = Body(...),
    evidence_limit: Optional[int] = Query(default=None, ge=0),
    include_risks: bool = Query(default=False),
):
    """Build and lay out the issue tree for an analysis result."""
    try:
        snapshot = editor_session.load_analysis(
            data,
            BuildOptions(evidence_limit=evidence_limit, include_risks=include_risks),
        )
    except MalformedInput as e:
        raise HTTPException(status_code=422, detail={"message": str(e), "errors": e.errors})
    return {"success": True, "graph": snapshot.to_json_dict()}


# --- Node Operations ---

@app.post("/api/nodes")
async def create_node(request: CreateNodeRequest):
    """Create a new node (free-form mode)."""
    try:
        node = editor_session.add_node(
            request.kind,
            x=request.x,
            y=request.y,
            width=request.width,
            height=request.height,
            inputs=request.inputs,
            outputs=request.outputs,
            label=request.label,
            content=request.content,
            sub_content=request.sub_content,
            tags=request.tags,
        )
        return {"success": True, "node": node.model_dump(mode="json")}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/api/nodes/{node_id}")
async def get_node(node_id: str):
    """Get a specific node."""
    node = editor_session.get_node(node_id)
    if node:
        return {"success": True, "node": node.model_dump(mode="json")}
    raise HTTPException(status_code=404, detail="Node not found")


@app.patch("/api/nodes/{node_id}/position")
async def move_node(node_id: str, request: MoveNodeRequest):
    """Move a node to an absolute graph position."""
    node = editor_session.move_node(node_id, request.x, request.y)
    if node:
        return {"success": True, "node": node.model_dump(mode="json")}
    raise HTTPException(status_code=404, detail="Node not found")


@app.delete("/api/nodes/{node_id}")
async def delete_node(node_id: str):
    """Delete a node and its connected edges."""
    try:
        success = editor_session.remove_node(node_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if success:
        return {"success": True}
    raise HTTPException(status_code=404, detail="Node not found")


# --- Edge Operations ---

@app.post("/api/edges")
async def create_edge(request: CreateEdgeRequest):
    """Create a new edge."""
    try:
        edge = editor_session.add_edge(
            request.source,
            request.target,
            style=request.style,
            label=request.label,
        )
        return {"success": True, "edge": edge.model_dump(mode="json")}
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@app.get("/api/edges/{edge_id}")
async def get_edge(edge_id: str):
    """Get a specific edge."""
    edge = editor_session.get_edge(edge_id)
    if edge:
        return {"success": True, "edge": edge.model_dump(mode="json")}
    raise HTTPException(status_code=404, detail="Edge not found")


@app.delete("/api/edges/{edge_id}")
async def delete_edge(edge_id: str):
    """Delete an edge."""
    try:
        success = editor_session.remove_edge(edge_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if success:
        return {"success": True}
    raise HTTPException(status_code=404, detail="Edge not found")


# --- Enums for Frontend ---

@app.get("/api/enums/kinds")
async def get_kinds():
    """Get available node kinds."""
    return {"kinds": [k.value for k in NodeKind]}


@app.get("/api/enums/edge-styles")
async def get_edge_styles():
    """Get available edge styles."""
    return {"styles": [s.value for s in EdgeStyle]}


# --- Layout ---

@app.post("/api/layout")
async def run_layout(request: LayoutRequest):
    """Re-run the layered layout over the whole graph."""
    try:
        positions = editor_session.relayout(request.model_dump())
    except CyclicGraph as e:
        raise HTTPException(status_code=409, detail={"message": str(e), "node_ids": e.node_ids})
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "success": True,
        "positions": {nid: p.to_dict() for nid, p in positions.items()}
    }


# --- Viewport ---

@app.get("/api/viewport")
async def get_viewport():
    """Get the current pan and zoom."""
    return editor_session.viewport.state.model_dump()


@app.post("/api/viewport/zoom")
async def zoom_viewport(request: ZoomRequest):
    """Zoom around a screen anchor. Out-of-range levels are clamped."""
    if request.delta is None and request.level is None:
        raise HTTPException(status_code=400, detail="Either delta or level is required")
    state = editor_session.zoom(
        Point(request.anchor_x, request.anchor_y),
        delta=request.delta,
        level=request.level,
    )
    return state.model_dump()


@app.post("/api/viewport/pan")
async def pan_viewport(request: PanRequest):
    """Pan by a screen-space delta."""
    return editor_session.pan(request.dx, request.dy).model_dump()


@app.post("/api/viewport/fit")
async def fit_viewport(request: FitRequest):
    """Fit the whole graph into a screen of the given size."""
    state = editor_session.fit_view(request.screen_width, request.screen_height, request.padding)
    return state.model_dump()


# --- Interaction ---

@app.post("/api/pointer")
async def pointer_event(request: PointerEventRequest):
    """Feed a pointer event to the interaction controller."""
    try:
        event = pointer_event_from_request(request)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    state = editor_session.handle_pointer(event)
    return {
        "interaction": describe_state(state),
        "viewport": editor_session.viewport.state.model_dump(),
        "node_count": editor_session.store.node_count,
        "edge_count": editor_session.store.edge_count,
    }


@app.post("/api/interaction/cancel")
async def cancel_interaction():
    """Abort the active gesture."""
    return {"interaction": describe_state(editor_session.cancel_interaction())}


# --- Analysis & Validation ---

@app.get("/api/graph/validate")
async def validate_current_graph():
    """
    Validate the current graph for structural issues.

    Returns a list of issues (errors, warnings, info) and a summary.
    """
    return {"success": True, **editor_session.validate()}


@app.get("/api/graph/summary")
async def summarize_current_graph():
    """
    Get a structural summary of the current graph.

    Returns node counts by kind, edge counts by style, tags, connected
    components and most connected nodes.
    """
    return {"success": True, "summary": editor_session.summarize()}


# --- WebSocket ---

@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """
    WebSocket endpoint for real-time updates.

    Clients connect here to receive graph_updated events.
    """
    await ws_manager.connect(websocket)

    try:
        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text('{"type": "pong"}')
    except WebSocketDisconnect:
        await ws_manager.disconnect(websocket)


# --- Run with uvicorn ---

def run(host: Optional[str] = None, port: Optional[int] = None):
    """Configure logging and serve the app."""
    import uvicorn

    config = editor_session.config
    logging.basicConfig(
        level=config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host=host or config.host, port=port or config.port)


if __name__ == "__main__":
    run()
