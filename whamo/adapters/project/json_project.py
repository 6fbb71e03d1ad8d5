from __future__ import annotations

import json
import logging
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Tuple, Union

from whamo.core.models.conduit import Conduit
from whamo.core.models.ids import IdAllocator
from whamo.core.models.network import Network
from whamo.core.models.node import NODE_CLASSES, Node

logger = logging.getLogger(__name__)

# -----------------------------
# Project contract (editor JSON, camelCase)
# -----------------------------
# Node: {"id", "type", "position": {"x", "y"}, "data": {"label", "type", ...}}
# Edge: {"id", "source", "target", "type": "conduit", "data": {"label", "type", ...}}

NODE_FIELD_MAP = {
    "elevation": "elevation",
    "nodeNumber": "node_number",
    "topElevation": "top_elevation",
    "bottomElevation": "bottom_elevation",
    "diameter": "diameter",
    "celerity": "celerity",
    "friction": "friction",
    "scheduleNumber": "schedule_number",
}

EDGE_FIELD_MAP = {
    "length": "length",
    "diameter": "diameter",
    "celerity": "celerity",
    "friction": "friction",
    "numSegments": "num_segments",
    "cplus": "cplus",
    "cminus": "cminus",
}

EDGE_TYPE = "conduit"


def _node_to_dict(node: Node) -> Dict[str, Any]:
    own = {f.name for f in fields(node)}
    data: Dict[str, Any] = {"label": node.label, "type": node.kind}
    for camel, snake in NODE_FIELD_MAP.items():
        if snake in own and getattr(node, snake) is not None:
            data[camel] = getattr(node, snake)
    x, y = node.position
    return {"id": node.uid, "type": node.kind, "position": {"x": x, "y": y}, "data": data}


def _conduit_to_dict(c: Conduit) -> Dict[str, Any]:
    data: Dict[str, Any] = {"label": c.label, "type": EDGE_TYPE}
    for camel, snake in EDGE_FIELD_MAP.items():
        if getattr(c, snake) is not None:
            data[camel] = getattr(c, snake)
    return {"id": c.uid, "source": c.source, "target": c.target, "type": EDGE_TYPE, "data": data}


def network_to_project(network: Network) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "nodes": [_node_to_dict(n) for n in network.nodes.values()],
        "edges": [_conduit_to_dict(c) for c in network.conduits.values()],
    }
    if network.title:
        out["title"] = network.title
    return out


def _node_from_dict(raw: Dict[str, Any], idx: int) -> Node:
    if not isinstance(raw, dict) or "id" not in raw:
        raise ValueError(f"Invalid node record at index {idx}: {raw!r}")
    data = raw.get("data") or {}
    kind = raw.get("type") or data.get("type")
    if kind not in NODE_CLASSES:
        raise ValueError(f"Unknown node type {kind!r} (node id={raw['id']!r}). Allowed: {sorted(NODE_CLASSES)}")

    cls = NODE_CLASSES[kind]
    own = {f.name for f in fields(cls)}
    kwargs: Dict[str, Any] = {
        snake: data[camel] for camel, snake in NODE_FIELD_MAP.items() if snake in own and camel in data
    }
    pos = raw.get("position") or {}
    return cls(
        uid=str(raw["id"]),
        label=str(data.get("label", "")),
        position=(float(pos.get("x", 0.0)), float(pos.get("y", 0.0))),
        **kwargs,
    )


def _conduit_from_dict(raw: Dict[str, Any], idx: int) -> Conduit:
    if not isinstance(raw, dict) or not {"id", "source", "target"} <= set(raw):
        raise ValueError(f"Invalid edge record at index {idx}: {raw!r}")
    data = raw.get("data") or {}
    kind = raw.get("type") or data.get("type") or EDGE_TYPE
    if kind != EDGE_TYPE:
        raise ValueError(f"Unknown edge type {kind!r} (edge id={raw['id']!r}). Allowed: ['{EDGE_TYPE}']")

    kwargs = {snake: data[camel] for camel, snake in EDGE_FIELD_MAP.items() if camel in data}
    return Conduit(
        uid=str(raw["id"]),
        label=str(data.get("label", "")),
        source=str(raw["source"]),
        target=str(raw["target"]),
        **kwargs,
    )


def network_from_project(project: Dict[str, Any]) -> Tuple[Network, IdAllocator]:
    """
    Rebuilds the network from a project dict and returns it with an id
    allocator positioned at max(numeric node/edge ids) + 1.
    """
    if not isinstance(project, dict) or not isinstance(project.get("nodes"), list) \
            or not isinstance(project.get("edges"), list):
        raise ValueError("Invalid format: project must contain 'nodes' and 'edges' lists.")

    nodes: Dict[str, Node] = {}
    for idx, raw in enumerate(project["nodes"]):
        node = _node_from_dict(raw, idx)
        if node.uid in nodes:
            raise ValueError(f"Duplicate node id in project: {node.uid!r}")
        nodes[node.uid] = node

    conduits: Dict[str, Conduit] = {}
    for idx, raw in enumerate(project["edges"]):
        c = _conduit_from_dict(raw, idx)
        if c.uid in conduits:
            raise ValueError(f"Duplicate edge id in project: {c.uid!r}")
        conduits[c.uid] = c

    ids = IdAllocator.after(list(nodes) + list(conduits))
    logger.info("Loaded project: %d nodes, %d edges, next id %s", len(nodes), len(conduits), ids.peek())
    network = Network(nodes=nodes, conduits=conduits, title=str(project.get("title", "")))
    return network, ids


def save_project(network: Network, path: Union[str, Path]) -> None:
    Path(path).write_text(json.dumps(network_to_project(network), indent=2), encoding="utf-8")


def load_project(path: Union[str, Path]) -> Tuple[Network, IdAllocator]:
    try:
        project = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in project file {str(path)!r}") from e
    return network_from_project(project)
