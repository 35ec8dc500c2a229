#!/usr/bin/env python3
"""Issue tree CLI - drives the editor backend over HTTP and prints JSON."""

import argparse
import json
import os
import sys
import urllib.request
import urllib.error
import urllib.parse

API_BASE = os.environ.get("ISSUETREE_API_BASE", "http://127.0.0.1:8765/api")


def _json_out(data):
    print(json.dumps(data))
    sys.exit(0)


def _api_request(method, endpoint, data=None, params=None):
    """Make a request to the issue tree backend."""
    url = f"{API_BASE}{endpoint}"

    if params:
        filtered = {k: v for k, v in params.items() if v is not None}
        if filtered:
            url = f"{url}?{urllib.parse.urlencode(filtered)}"

    headers = {"Content-Type": "application/json"}
    body = json.dumps(data).encode() if data is not None else None

    req = urllib.request.Request(url, data=body, headers=headers, method=method)

    try:
        with urllib.request.urlopen(req, timeout=30) as response:
            return json.loads(response.read().decode())
    except urllib.error.HTTPError as e:
        error_body = e.read().decode()
        try:
            error_data = json.loads(error_body)
            _json_out({"status": "error", "error": f"API error: {error_data.get('detail', 'Unknown error')}"})
        except json.JSONDecodeError:
            _json_out({"status": "error", "error": f"API error ({e.code}): {error_body}"})
    except urllib.error.URLError as e:
        _json_out({"status": "error", "error": f"Connection failed: {e.reason}. Is the issuetree backend running?"})


def _parse_list_arg(value):
    """Parse a list argument from JSON string or return None."""
    if value is None:
        return None
    try:
        return json.loads(value)
    except (json.JSONDecodeError, TypeError):
        return None


# ── Service ──────────────────────────────────────────────────────────────────

def cmd_serve(args):
    from issuetree_server.main import run

    run(host=args.host, port=args.port)


# ── Graph ────────────────────────────────────────────────────────────────────

def cmd_get_current(args):
    _json_out(_api_request("GET", "/graph"))


def cmd_new(args):
    _json_out(_api_request("POST", "/graph/new", params={"mode": args.mode}))


def cmd_load_analysis(args):
    try:
        with open(args.file, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        _json_out({"status": "error", "error": f"Could not read {args.file}: {e}"})

    params = {
        "evidence_limit": args.evidence_limit,
        "include_risks": "true" if args.include_risks else None,
    }
    _json_out(_api_request("POST", "/graph/analysis", data=data, params=params))


# ── Nodes ────────────────────────────────────────────────────────────────────

def cmd_add_node(args):
    tags = _parse_list_arg(args.tags) or []
    _json_out(_api_request("POST", "/nodes", data={
        "kind": args.kind,
        "x": args.x,
        "y": args.y,
        "label": args.label,
        "content": args.content,
        "sub_content": args.sub_content,
        "tags": tags,
    }))


def cmd_delete_node(args):
    _json_out(_api_request("DELETE", f"/nodes/{args.node_id}"))


def cmd_move_node(args):
    _json_out(_api_request("PATCH", f"/nodes/{args.node_id}/position", data={
        "x": args.x,
        "y": args.y,
    }))


# ── Edges ────────────────────────────────────────────────────────────────────

def cmd_add_edge(args):
    _json_out(_api_request("POST", "/edges", data={
        "source": args.from_node,
        "target": args.to_node,
        "style": args.style,
        "label": args.label,
    }))


def cmd_delete_edge(args):
    _json_out(_api_request("DELETE", f"/edges/{args.edge_id}"))


# ── Layout & Viewport ────────────────────────────────────────────────────────

def cmd_layout(args):
    _json_out(_api_request("POST", "/layout", data={
        "nodesep": args.nodesep,
        "ranksep": args.ranksep,
        "direction": args.direction,
        "center_ranks": args.center_ranks,
    }))


def cmd_zoom(args):
    if args.delta is None and args.level is None:
        _json_out({"status": "error", "error": "Either --delta or --level is required"})
    _json_out(_api_request("POST", "/viewport/zoom", data={
        "delta": args.delta,
        "level": args.level,
        "anchor_x": args.anchor_x,
        "anchor_y": args.anchor_y,
    }))


def cmd_pan(args):
    _json_out(_api_request("POST", "/viewport/pan", data={"dx": args.dx, "dy": args.dy}))


# ── Analysis ─────────────────────────────────────────────────────────────────

def cmd_validate(args):
    _json_out(_api_request("GET", "/graph/validate"))


def cmd_summarize(args):
    _json_out(_api_request("GET", "/graph/summary"))


# ── Main ─────────────────────────────────────────────────────────────────────

def build_parser():
    parser = argparse.ArgumentParser(prog="issuetree", description="Issue tree editor CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    # Service
    p = sub.add_parser("serve")
    p.add_argument("--host", default=None)
    p.add_argument("--port", type=int, default=None)

    # Graph
    sub.add_parser("get-current")

    p = sub.add_parser("new")
    p.add_argument("--mode", choices=["free_form", "auto_layout"], default="free_form")

    p = sub.add_parser("load-analysis")
    p.add_argument("--file", required=True)
    p.add_argument("--evidence-limit", type=int, default=None)
    p.add_argument("--include-risks", action="store_true")

    # Nodes
    p = sub.add_parser("add-node")
    p.add_argument("--kind", default="action")
    p.add_argument("--x", type=float, default=0)
    p.add_argument("--y", type=float, default=0)
    p.add_argument("--label", default="")
    p.add_argument("--content", default="")
    p.add_argument("--sub-content", default="")
    p.add_argument("--tags", default=None)

    p = sub.add_parser("delete-node")
    p.add_argument("--node-id", required=True)

    p = sub.add_parser("move-node")
    p.add_argument("--node-id", required=True)
    p.add_argument("--x", type=float, required=True)
    p.add_argument("--y", type=float, required=True)

    # Edges
    p = sub.add_parser("add-edge")
    p.add_argument("--from-node", required=True)
    p.add_argument("--to-node", required=True)
    p.add_argument("--style", default="manual")
    p.add_argument("--label", default="")

    p = sub.add_parser("delete-edge")
    p.add_argument("--edge-id", required=True)

    # Layout & viewport
    p = sub.add_parser("layout")
    p.add_argument("--nodesep", type=float, default=None)
    p.add_argument("--ranksep", type=float, default=None)
    p.add_argument("--direction", choices=["TB", "LR"], default=None)
    p.add_argument("--center-ranks", action="store_true", default=None)

    p = sub.add_parser("zoom")
    p.add_argument("--delta", type=float, default=None)
    p.add_argument("--level", type=float, default=None)
    p.add_argument("--anchor-x", type=float, default=0)
    p.add_argument("--anchor-y", type=float, default=0)

    p = sub.add_parser("pan")
    p.add_argument("--dx", type=float, default=0)
    p.add_argument("--dy", type=float, default=0)

    # Analysis
    sub.add_parser("validate")
    sub.add_parser("summarize")

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    cmd_map = {
        "serve": cmd_serve,
        "get-current": cmd_get_current,
        "new": cmd_new,
        "load-analysis": cmd_load_analysis,
        "add-node": cmd_add_node,
        "delete-node": cmd_delete_node,
        "move-node": cmd_move_node,
        "add-edge": cmd_add_edge,
        "delete-edge": cmd_delete_edge,
        "layout": cmd_layout,
        "zoom": cmd_zoom,
        "pan": cmd_pan,
        "validate": cmd_validate,
        "summarize": cmd_summarize,
    }
    cmd_map[args.command](args)


if __name__ == "__main__":
    main()
