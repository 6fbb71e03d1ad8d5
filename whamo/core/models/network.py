from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from .node import Node
from .conduit import Conduit


@dataclass(frozen=True, slots=True)
class Network:
    """
    Canonical network snapshot handed over by the editor.
    Dict insertion order is the declared order.
    """
    nodes: Dict[str, Node] = field(default_factory=dict)         # key: node uid
    conduits: Dict[str, Conduit] = field(default_factory=dict)   # key: Conduit.uid

    title: str = ""

    def get_node(self, uid: str) -> Node:
        return self.nodes[uid]

    def get_conduit(self, uid: str) -> Conduit:
        return self.conduits[uid]

    def conduits_from(self, node_uid: str) -> List[Conduit]:
        return [c for c in self.conduits.values() if c.source == node_uid]

    def conduits_to(self, node_uid: str) -> List[Conduit]:
        return [c for c in self.conduits.values() if c.target == node_uid]

    def nodes_of_kind(self, kind: str) -> List[Node]:
        return [n for n in self.nodes.values() if n.kind == kind]

    @property
    def is_empty(self) -> bool:
        return not self.nodes and not self.conduits
