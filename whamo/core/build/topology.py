from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Tuple

import networkx as nx

from whamo.core.build.config import ExportConfig
from whamo.core.build.validate import ExportIssue, IssueCollector, element_ref
from whamo.core.models.conduit import Conduit
from whamo.core.models.network import Network
from whamo.core.models.node import Node

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedConduit:
    conduit: Conduit
    source: Node   # upstream end
    target: Node   # downstream end


@dataclass(frozen=True)
class TopologyResult:
    resolved: Dict[str, ResolvedConduit]   # conduit uid -> endpoints, declared order
    degree_by_node: Dict[str, int]          # node uid -> number of incident conduits
    n_components: int
    issues: List[ExportIssue]

    @property
    def ok(self) -> bool:
        return not any(i.level == "error" for i in self.issues)


def _component_count(resolved: Dict[str, ResolvedConduit], nodes: List[str]) -> int:
    g = nx.Graph()
    g.add_nodes_from(nodes)
    for rc in resolved.values():
        if rc.source.uid in g and rc.target.uid in g:
            g.add_edge(rc.source.uid, rc.target.uid)
    return nx.number_connected_components(g) if nodes else 0


def resolve_topology(network: Network, cfg: ExportConfig) -> TopologyResult:
    """
    Pairs every conduit with its source/target nodes and reports structural
    problems. All problems are collected, none stops the scan.

    Order of checks:
      1. endpoints exist and differ
      2. parallel conduits on the same ordered pair
      3. isolated nodes / disconnected components
      4. flow boundaries without a conduit
    """
    log = IssueCollector("topology")
    resolved: Dict[str, ResolvedConduit] = {}
    degree: Dict[str, int] = {uid: 0 for uid in network.nodes}

    if network.is_empty:
        log.add("structural", "error", "empty_network",
                "Network has zero nodes and zero conduits.",
                hint="Add at least one reservoir and one conduit before exporting.")
        return TopologyResult(resolved=resolved, degree_by_node=degree, n_components=0, issues=log.issues)

    for key, n in network.nodes.items():
        if n.uid != key:
            log.add("structural", "error", "uid_mismatch",
                    f"{element_ref(n)} is stored under key {key!r}.", element=n)

    # --- 1. endpoints ---
    for uid, c in network.conduits.items():
        if c.uid != uid:
            log.add("structural", "error", "uid_mismatch",
                    f"{element_ref(c)} is stored under key {uid!r}.", element=c)
            continue

        src = network.nodes.get(c.source)
        tgt = network.nodes.get(c.target)

        if src is None:
            log.add("structural", "error", "dangling_source",
                    f"{element_ref(c)} references unknown source node {c.source!r}.", element=c,
                    hint="Reconnect the conduit to an existing node or delete it.")
        if tgt is None:
            log.add("structural", "error", "dangling_target",
                    f"{element_ref(c)} references unknown target node {c.target!r}.", element=c,
                    hint="Reconnect the conduit to an existing node or delete it.")

        for end in {c.source, c.target}:
            if end in degree:
                degree[end] += 1

        if src is None or tgt is None:
            continue
        if c.source == c.target:
            log.add("structural", "error", "self_loop",
                    f"{element_ref(c)} starts and ends at node {c.source!r}.", element=c)
            continue

        resolved[uid] = ResolvedConduit(conduit=c, source=src, target=tgt)

    # --- 2. parallel conduits ---
    if cfg.parallel_conduits != "allow":
        pairs = Counter((rc.source.uid, rc.target.uid) for rc in resolved.values())
        first_by_pair: Dict[Tuple[str, str], str] = {}
        for uid, rc in resolved.items():
            pair = (rc.source.uid, rc.target.uid)
            if pairs[pair] < 2:
                continue
            if pair not in first_by_pair:
                first_by_pair[pair] = uid
                continue
            log.add("structural", cfg.parallel_conduits, "parallel_conduit",
                    f"{element_ref(rc.conduit)} runs parallel to Conduit(uid={first_by_pair[pair]}) "
                    f"from node {pair[0]!r} to node {pair[1]!r}.",
                    element=rc.conduit,
                    hint="Merge the conduits or set parallel_conduits='allow'.")

    # --- 3. isolated nodes / components ---
    connected = [uid for uid, d in degree.items() if d > 0]
    n_components = _component_count(resolved, list(network.nodes))
    if len(network.nodes) > 1:
        for uid, n in network.nodes.items():
            if degree[uid] == 0 and n.kind != "flowBoundary":
                log.add("structural", cfg.isolated_nodes, "isolated_node",
                        f"{element_ref(n)} has no conduit attached.", element=n,
                        hint="Connect the node or remove it from the network.")

        n_parts = _component_count(resolved, connected)
        if n_parts > 1:
            log.add("structural", "warning", "disconnected_components",
                    f"Network appears to have {n_parts} disconnected components.",
                    hint="If this is unintended, check the conduit connections.")

    # --- 4. flow boundaries ---
    for uid, n in network.nodes.items():
        if n.kind == "flowBoundary" and degree[uid] == 0:
            log.add("structural", "error", "dead_flow_boundary",
                    f"{element_ref(n)} has no conduit attached; its schedule would force nothing.",
                    element=n)

    logger.info(
        "Topology: %d nodes, %d/%d conduits resolved, %d component(s), %d issue(s)",
        len(network.nodes), len(resolved), len(network.conduits), n_components, len(log.issues),
    )
    return TopologyResult(resolved=resolved, degree_by_node=degree, n_components=n_components, issues=log.issues)
