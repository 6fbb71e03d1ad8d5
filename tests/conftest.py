from __future__ import annotations

from typing import Dict, List

import pytest

from whamo.core.models.conduit import Conduit
from whamo.core.models.network import Network
from whamo.core.models.node import FlowBoundary, Junction, Node, Reservoir, SimpleNode, SurgeTank


def conduit(uid: str, source: str, target: str, label: str = "", **kw) -> Conduit:
    values = dict(length=100.0, diameter=1.0, celerity=1000.0, friction=0.02, num_segments=10)
    values.update(kw)
    return Conduit(uid=uid, label=label or f"L-{uid}", source=source, target=target, **values)


def make_network(nodes: List[Node], conduits: List[Conduit], title: str = "") -> Network:
    return Network(
        nodes={n.uid: n for n in nodes},
        conduits={c.uid: c for c in conduits},
        title=title,
    )


def chain_nodes() -> List[Node]:
    return [
        Reservoir(uid="1", label="RES-1", elevation=100.0),
        Junction(uid="2", label="J-2", node_number=2, elevation=50.0),
        SurgeTank(uid="3", label="ST-3", node_number=3, top_elevation=120.0, bottom_elevation=80.0,
                  diameter=5.0, celerity=1000.0, friction=0.01),
        SimpleNode(uid="4", label="4", node_number=4, elevation=40.0),
        FlowBoundary(uid="5", label="BC-5", node_number=5, schedule_number=1),
    ]


def chain_conduits() -> List[Conduit]:
    return [
        conduit("6", "1", "2"),
        conduit("7", "2", "3", length=250.0),
        conduit("8", "3", "4", diameter=0.8),
        conduit("9", "4", "5", num_segments=4),
    ]


@pytest.fixture
def chain() -> Network:
    """Reservoir -> junction -> surge tank -> node -> flow boundary."""
    return make_network(chain_nodes(), chain_conduits(), title="Test chain")


@pytest.fixture
def long_chain() -> Network:
    """Reservoir followed by ten simple nodes, ten conduits."""
    nodes: List[Node] = [Reservoir(uid="1", label="RES-1", elevation=100.0)]
    conduits: List[Conduit] = []
    prev = "1"
    for i in range(2, 12):
        uid = str(i)
        nodes.append(SimpleNode(uid=uid, label=uid, node_number=i, elevation=90.0 - i))
        conduits.append(conduit(f"c{i}", prev, uid))
        prev = uid
    return make_network(nodes, conduits)


def by_code(issues) -> Dict[str, list]:
    out: Dict[str, list] = {}
    for i in issues:
        out.setdefault(i.code, []).append(i)
    return out
