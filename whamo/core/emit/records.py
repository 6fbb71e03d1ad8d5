from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from whamo.core.build.config import ExportConfig
from whamo.core.build.numbering import BOUNDARY_KINDS, Numbering
from whamo.core.build.topology import ResolvedConduit, TopologyResult
from whamo.core.build.validate import (
    ExportIssue,
    IssueCollector,
    element_ref,
    validate_conduit_attributes,
    validate_node_attributes,
)
from whamo.core.emit.fields import (
    FieldOverflow,
    comment,
    elem_at,
    elem_link,
    field_line,
    node_line,
)
from whamo.core.models.network import Network
from whamo.core.models.node import Node

logger = logging.getLogger(__name__)

# Canonical section order of the input file.
SECTION_ORDER = (
    "header",
    "system",
    "reservoirs",
    "nodes",
    "surge_tanks",
    "flow_boundaries",
    "conduits",
    "control",
    "footer",
)

SECTION_BY_KIND = {
    "reservoir": "reservoirs",
    "surgeTank": "surge_tanks",
    "flowBoundary": "flow_boundaries",
}

PROGRAM_NAME = "whamo-inp"


@dataclass(frozen=True)
class EmitResult:
    sections: Dict[str, List[str]]   # empty when any element failed
    issues: List[ExportIssue]

    @property
    def ok(self) -> bool:
        return not any(i.level == "error" for i in self.issues)


def _trace(label: str, uid: str, extra: str = "") -> str:
    return comment(f"{label} [uid {uid}{extra}]")


def _engineering_note(values: Dict[str, Any], numbering: Numbering) -> str:
    n = values.get("node_number")
    if n is None or numbering.policy == "engineering":
        return ""
    return f", editor no. {n}"


# ------------------------------------------------------------
# Per-kind records: (element, checked values, numbers) -> lines
# ------------------------------------------------------------

def reservoir_record(node: Node, values: Dict[str, Any], numbering: Numbering) -> List[str]:
    return [
        _trace(node.label, node.uid, f", node {numbering.node_number_by_uid[node.uid]}"),
        "RESERVOIR",
        f" ID {numbering.element_id('reservoir', node.uid)}",
        field_line("ELEV", values["elevation"]),
        " FINISH",
        "",
    ]


def surge_tank_record(node: Node, values: Dict[str, Any], numbering: Numbering) -> List[str]:
    extra = f", node {numbering.node_number_by_uid[node.uid]}" + _engineering_note(values, numbering)
    return [
        _trace(node.label, node.uid, extra),
        "SURGETANK",
        f" ID {numbering.element_id('surgeTank', node.uid)} SIMPLE",
        field_line("ELTOP", values["top_elevation"]),
        field_line("ELBOTTOM", values["bottom_elevation"]),
        field_line("DIAM", values["diameter"]),
        field_line("CELERITY", values["celerity"]),
        field_line("FRICTION", values["friction"]),
        " FINISH",
        "",
    ]


def flow_boundary_record(node: Node, values: Dict[str, Any], numbering: Numbering) -> List[str]:
    extra = f", node {numbering.node_number_by_uid[node.uid]}" + _engineering_note(values, numbering)
    return [
        _trace(node.label, node.uid, extra),
        "FLOWBC",
        f" ID {numbering.element_id('flowBoundary', node.uid)}",
        field_line("QSCHEDULE", values["schedule_number"]),
        " FINISH",
        "",
    ]


def conduit_record(rc: ResolvedConduit, values: Dict[str, Any], numbering: Numbering) -> List[str]:
    up = numbering.node_number_by_uid[rc.source.uid]
    dn = numbering.node_number_by_uid[rc.target.uid]
    lines = [
        _trace(rc.conduit.label, rc.conduit.uid, f", node {up} -> node {dn}"),
        "CONDUIT",
        f" ID {numbering.element_id('conduit', rc.conduit.uid)}",
        field_line("LENG", values["length"]),
        field_line("DIAM", values["diameter"]),
        field_line("CELE", values["celerity"]),
        field_line("FRIC", values["friction"]),
        field_line("NUMSEG", values["num_segments"]),
    ]
    if values.get("cplus") is not None:
        lines.append(field_line("CPLUS", values["cplus"]))
    if values.get("cminus") is not None:
        lines.append(field_line("CMINUS", values["cminus"]))
    lines += [" FINISH", ""]
    return lines


BOUNDARY_RECORDS: Dict[str, Callable[[Node, Dict[str, Any], Numbering], List[str]]] = {
    "reservoir": reservoir_record,
    "surgeTank": surge_tank_record,
    "flowBoundary": flow_boundary_record,
}


# ------------------------------------------------------------
# Fixed sections
# ------------------------------------------------------------

def header_section(network: Network, cfg: ExportConfig) -> List[str]:
    title = cfg.title or network.title
    lines = [comment("WHAMO INPUT FILE")]
    if title:
        lines.append(comment(title))
    lines += [comment(f"Generated by {PROGRAM_NAME}"), "C", ""]
    return lines


def control_section(cfg: ExportConfig) -> List[str]:
    ctl = cfg.control
    return [
        comment("COMPUTATIONAL PARAMETERS"),
        "CONTROL",
        field_line("DTCOMP", ctl.dt_comp_s),
        field_line("DTOUT", ctl.dt_out_s),
        field_line("TMAX", ctl.t_max_s),
        " FINISH",
        "",
    ]


def footer_section() -> List[str]:
    return ["GO", "GOODBYE"]


# ------------------------------------------------------------
# Emitter
# ------------------------------------------------------------

def _guarded(element: Any, log: IssueCollector, build: Callable[[], List[str]]) -> Optional[List[str]]:
    try:
        return build()
    except FieldOverflow as e:
        log.add("validation", "error", "field_overflow", f"{element_ref(element)} {e}", element=element)
        return None


def emit_records(
    network: Network,
    topology: TopologyResult,
    numbering: Numbering,
    cfg: ExportConfig,
) -> EmitResult:
    """
    Maps every node and conduit to its card lines, grouped by section.

    Every element is re-checked here; a failing element contributes no lines
    and its problems are collected. If anything failed, no section is returned.
    """
    log = IssueCollector("emit")

    checked: Dict[str, Dict[str, Any]] = {}
    for uid, node in network.nodes.items():
        values = validate_node_attributes(node, log)
        if values is not None:
            checked[uid] = values

    conduit_values: Dict[str, Dict[str, Any]] = {}
    for uid, rc in topology.resolved.items():
        values = validate_conduit_attributes(rc.conduit, log)
        if values is not None:
            conduit_values[uid] = values

    sections: Dict[str, List[str]] = {name: [] for name in SECTION_ORDER}
    sections["header"] = header_section(network, cfg)

    # --- SYSTEM: boundary elements at their node, then conduit links ---
    system = [comment("SYSTEM CONNECTIVITY"), "SYSTEM"]
    for kind in BOUNDARY_KINDS:
        by_number = numbering.element_uid_by_number[kind]
        for number in sorted(by_number):
            uid = by_number[number]
            system.append(elem_at(numbering.element_id(kind, uid), numbering.node_number_by_uid[uid]))
    conduits_by_number = numbering.element_uid_by_number["conduit"]
    for number in sorted(conduits_by_number):
        rc = topology.resolved[conduits_by_number[number]]
        system.append(elem_link(
            numbering.element_id("conduit", rc.conduit.uid),
            numbering.node_number_by_uid[rc.source.uid],
            numbering.node_number_by_uid[rc.target.uid],
        ))
    system += ["FINISH", ""]
    sections["system"] = system

    # --- NODE cards: simple nodes, then junctions ---
    nodes_section: List[str] = []
    for kind, title in (("node", "SIMPLE NODES"), ("junction", "JUNCTIONS")):
        members = sorted(
            ((numbering.node_number_by_uid[n.uid], n) for n in network.nodes_of_kind(kind) if n.uid in checked),
            key=lambda t: t[0],
        )
        if not members:
            continue
        nodes_section.append(comment(title))
        for number, n in members:
            line = _guarded(n, log, lambda: [node_line(number, checked[n.uid]["elevation"])])
            if line is not None:
                nodes_section += line
        nodes_section.append("")
    sections["nodes"] = nodes_section

    # --- boundary element blocks ---
    for kind in BOUNDARY_KINDS:
        by_number = numbering.element_uid_by_number[kind]
        out: List[str] = []
        for number in sorted(by_number):
            node = network.nodes[by_number[number]]
            if node.uid not in checked:
                continue
            lines = _guarded(node, log, lambda: BOUNDARY_RECORDS[kind](node, checked[node.uid], numbering))
            if lines is not None:
                out += lines
        sections[SECTION_BY_KIND[kind]] = out

    # --- conduit blocks ---
    conduit_lines: List[str] = []
    for number in sorted(conduits_by_number):
        rc = topology.resolved[conduits_by_number[number]]
        if rc.conduit.uid not in conduit_values:
            continue
        lines = _guarded(rc.conduit, log, lambda: conduit_record(rc, conduit_values[rc.conduit.uid], numbering))
        if lines is not None:
            conduit_lines += lines
    sections["conduits"] = conduit_lines

    sections["control"] = control_section(cfg)
    sections["footer"] = footer_section()

    if log.has_errors:
        logger.info("Emission rejected: %d element error(s)", len(log.errors))
        return EmitResult(sections={}, issues=log.issues)

    logger.debug("Emitted %d lines", sum(len(v) for v in sections.values()))
    return EmitResult(sections=sections, issues=log.issues)
