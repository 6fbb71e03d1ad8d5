from __future__ import annotations

from typing import Tuple

from .conduit import Conduit
from .ids import IdAllocator
from .node import (
    NODE_CLASSES,
    FlowBoundary,
    Junction,
    Node,
    Reservoir,
    SimpleNode,
    SurgeTank,
)

# Values the editor fills in when an element is dropped on the canvas.
CONDUIT_DEFAULTS = {
    "length": 100.0,
    "diameter": 1.0,
    "celerity": 1000.0,
    "friction": 0.02,
    "num_segments": 10,
}

SURGE_TANK_DEFAULTS = {
    "top_elevation": 120.0,
    "bottom_elevation": 80.0,
    "diameter": 5.0,
    "celerity": 1000.0,
    "friction": 0.01,
}

RESERVOIR_ELEVATION_DEFAULT = 100.0
NODE_ELEVATION_DEFAULT = 50.0
SCHEDULE_NUMBER_DEFAULT = 1


def new_node(kind: str, position: Tuple[float, float], ids: IdAllocator) -> Node:
    """
    Creates a node of `kind` with the editor's labels and starting values.
    The id is taken from `ids`; numbered kinds get node_number = int(id).
    """
    if kind not in NODE_CLASSES:
        raise ValueError(f"Unknown node kind: {kind!r}")

    uid = ids.next_id()
    number = int(uid)
    pos = (float(position[0]), float(position[1]))

    if kind == "reservoir":
        return Reservoir(uid=uid, label=f"RES-{uid}", elevation=RESERVOIR_ELEVATION_DEFAULT, position=pos)
    if kind == "node":
        return SimpleNode(uid=uid, label=uid, node_number=number,
                          elevation=NODE_ELEVATION_DEFAULT, position=pos)
    if kind == "junction":
        return Junction(uid=uid, label=f"J-{uid}", node_number=number,
                        elevation=NODE_ELEVATION_DEFAULT, position=pos)
    if kind == "surgeTank":
        return SurgeTank(uid=uid, label=f"ST-{uid}", node_number=number, position=pos, **SURGE_TANK_DEFAULTS)
    return FlowBoundary(uid=uid, label=f"BC-{uid}", node_number=number,
                        schedule_number=SCHEDULE_NUMBER_DEFAULT, position=pos)


def new_conduit(source: str, target: str, ids: IdAllocator) -> Conduit:
    uid = ids.next_id()
    return Conduit(uid=uid, label=f"L-{uid}", source=source, target=target, **CONDUIT_DEFAULTS)
