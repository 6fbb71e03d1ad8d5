from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from whamo.core.build.config import ExportConfig
from whamo.core.build.topology import TopologyResult
from whamo.core.build.validate import ExportIssue, IssueCollector, check_int, element_ref
from whamo.core.models.ids import parse_numeric_id
from whamo.core.models.network import Network
from whamo.core.models.node import Node

logger = logging.getLogger(__name__)

# Element id prefixes in the SYSTEM section; each prefix is its own number domain.
ELEMENT_PREFIX = {
    "reservoir": "R",
    "surgeTank": "ST",
    "flowBoundary": "FB",
    "conduit": "C",
}
BOUNDARY_KINDS = ("reservoir", "surgeTank", "flowBoundary")


@dataclass(frozen=True)
class Numbering:
    """
    Solver numbers for one export.

    - node domain: every hydraulic node
    - element domains: conduits, and one per boundary kind (R, ST, FB)
    Each map has its inverse; numbers are 1-based.
    """
    policy: str
    node_number_by_uid: Dict[str, int]
    node_uid_by_number: Dict[int, str]
    element_number_by_uid: Dict[str, Dict[str, int]]       # domain kind -> uid -> number
    element_uid_by_number: Dict[str, Dict[int, str]]       # domain kind -> number -> uid
    issues: List[ExportIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not any(i.level == "error" for i in self.issues)

    def element_id(self, kind: str, uid: str) -> str:
        return f"{ELEMENT_PREFIX[kind]}{self.element_number_by_uid[kind][uid]}"


def stable_order(uids: Iterable[str]) -> List[str]:
    """
    Numeric uids first in ascending value, then the rest in declared order.
    Ties keep declared order.
    """
    keyed: List[Tuple[Tuple[int, int, int], str]] = []
    for idx, uid in enumerate(uids):
        v = parse_numeric_id(uid)
        keyed.append(((0, v, idx) if v is not None else (1, 0, idx), uid))
    keyed.sort(key=lambda t: t[0])
    return [uid for _, uid in keyed]


def _number_domain(uids: List[str]) -> Tuple[Dict[str, int], Dict[int, str]]:
    by_uid = {uid: i for i, uid in enumerate(stable_order(uids), start=1)}
    return by_uid, {n: uid for uid, n in by_uid.items()}


def _engineering_number(node: Node) -> Optional[int]:
    if getattr(node, "node_number", None) is None:
        return None
    # invalid values are reported by the emitter; here they only count as absent
    return check_int(node, "node_number", IssueCollector("numbering"), required=False)


def _engineering_nodes(network: Network, log: IssueCollector) -> Dict[str, int]:
    by_uid: Dict[str, int] = {}
    owner: Dict[int, str] = {}
    pending: List[str] = []

    for uid in stable_order(network.nodes):
        node = network.nodes[uid]
        n = _engineering_number(node)
        if n is None:
            pending.append(uid)
            continue
        if n in owner:
            log.add("validation", "error", "duplicate_node_number",
                    f"{element_ref(node)} repeats node number {n} already used by node {owner[n]!r}.",
                    element=node, hint="Give every node a distinct node number or use sequential numbering.")
            continue
        owner[n] = uid
        by_uid[uid] = n

    # nodes without an engineering number take the lowest free numbers
    candidate = 1
    for uid in pending:
        while candidate in owner:
            candidate += 1
        owner[candidate] = uid
        by_uid[uid] = candidate

    used = sorted(owner)
    if used and used != list(range(1, len(used) + 1)):
        log.add("validation", "warning", "node_number_gap",
                f"Node numbers are not contiguous (1..{len(used)} expected, highest is {used[-1]}).")
    return by_uid


def assign_numbers(network: Network, topology: TopologyResult, cfg: ExportConfig) -> Numbering:
    """
    Maps internal uids to solver numbers. Numbering never reads positions,
    labels or selection state, so the result depends only on uids and the policy.
    """
    log = IssueCollector("numbering")

    # --- capacity (checked before anything is numbered) ---
    n_conduits = len(topology.resolved)
    if len(network.nodes) > cfg.max_nodes:
        log.add("capacity", "error", "too_many_nodes",
                f"Network has {len(network.nodes)} nodes; the format supports at most {cfg.max_nodes}.")
    if n_conduits > cfg.max_elements:
        log.add("capacity", "error", "too_many_conduits",
                f"Network has {n_conduits} conduits; the format supports at most {cfg.max_elements}.")
    for kind in BOUNDARY_KINDS:
        count = len(network.nodes_of_kind(kind))
        if count > cfg.max_elements:
            log.add("capacity", "error", "too_many_elements",
                    f"Network has {count} {kind} elements; the format supports at most {cfg.max_elements}.")
    if log.has_errors:
        return Numbering(cfg.numbering, {}, {}, {}, {}, issues=log.issues)

    # --- node domain ---
    if cfg.numbering == "engineering":
        node_by_uid = _engineering_nodes(network, log)
        highest = max(node_by_uid.values(), default=0)
        if highest > cfg.max_nodes:
            log.add("capacity", "error", "node_number_ceiling",
                    f"Node number {highest} exceeds the format ceiling {cfg.max_nodes}.")
        node_by_number = {n: uid for uid, n in node_by_uid.items()}
    else:
        node_by_uid, node_by_number = _number_domain(list(network.nodes))

    # --- element domains ---
    element_by_uid: Dict[str, Dict[str, int]] = {}
    element_by_number: Dict[str, Dict[int, str]] = {}

    c_by_uid, c_by_number = _number_domain(list(topology.resolved))
    element_by_uid["conduit"] = c_by_uid
    element_by_number["conduit"] = c_by_number

    for kind in BOUNDARY_KINDS:
        b_by_uid, b_by_number = _number_domain([n.uid for n in network.nodes_of_kind(kind)])
        element_by_uid[kind] = b_by_uid
        element_by_number[kind] = b_by_number

    logger.debug(
        "Numbering (%s): %d nodes, %d conduits, %s",
        cfg.numbering, len(node_by_uid), len(c_by_uid),
        {k: len(v) for k, v in element_by_number.items() if k != "conduit"},
    )
    return Numbering(
        policy=cfg.numbering,
        node_number_by_uid=node_by_uid,
        node_uid_by_number=node_by_number,
        element_number_by_uid=element_by_uid,
        element_uid_by_number=element_by_number,
        issues=log.issues,
    )
