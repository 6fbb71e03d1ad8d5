from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Dict, List

import pandas as pd

from whamo.core.build.validate import FormatInvariantError
from whamo.core.emit.records import SECTION_ORDER
from whamo.core.models.network import Network

logger = logging.getLogger(__name__)

REQUIRED_NONEMPTY = ("header", "system", "control", "footer")


@dataclass(frozen=True)
class ExportSummary:
    reservoirs: int
    simple_nodes: int
    junctions: int
    surge_tanks: int
    flow_boundaries: int
    conduits: int
    n_lines: int
    n_warnings: int = 0

    @property
    def n_nodes(self) -> int:
        return self.reservoirs + self.simple_nodes + self.junctions + self.surge_tanks + self.flow_boundaries

    def describe(self) -> str:
        return (
            f"{self.reservoirs} reservoir(s), {self.simple_nodes} node(s), {self.junctions} junction(s), "
            f"{self.surge_tanks} surge tank(s), {self.flow_boundaries} flow boundary(ies), "
            f"{self.conduits} conduit(s); {self.n_lines} lines"
        )

    def to_frame(self) -> pd.DataFrame:
        """One row per counter: columns item, count."""
        return pd.DataFrame(
            [{"item": k, "count": v} for k, v in asdict(self).items()]
        )


def summarize(network: Network, n_conduits: int, n_lines: int, n_warnings: int) -> ExportSummary:
    return ExportSummary(
        reservoirs=len(network.nodes_of_kind("reservoir")),
        simple_nodes=len(network.nodes_of_kind("node")),
        junctions=len(network.nodes_of_kind("junction")),
        surge_tanks=len(network.nodes_of_kind("surgeTank")),
        flow_boundaries=len(network.nodes_of_kind("flowBoundary")),
        conduits=n_conduits,
        n_lines=n_lines,
        n_warnings=n_warnings,
    )


def assemble_file(sections: Dict[str, List[str]]) -> str:
    """
    Joins the sections in canonical order into the file text ('\\n' line ends,
    trailing newline).

    A missing, unknown or empty mandatory section means the emitter broke its
    contract; that is raised as FormatInvariantError, never repaired.
    """
    missing = [name for name in SECTION_ORDER if name not in sections]
    unknown = sorted(set(sections) - set(SECTION_ORDER))
    empty = [name for name in REQUIRED_NONEMPTY if name in sections and not sections[name]]

    if missing or unknown or empty:
        msg = f"Malformed section set: missing={missing}, unknown={unknown}, empty={empty}"
        logger.error("%s (sections present: %s)", msg, {k: len(v) for k, v in sections.items()})
        raise FormatInvariantError(msg)

    lines: List[str] = []
    for name in SECTION_ORDER:
        for line in sections[name]:
            if "\n" in line or "\r" in line:
                logger.error("Line with embedded newline in section %r: %r", name, line)
                raise FormatInvariantError(f"Section {name!r} contains a multi-line record: {line!r}")
            lines.append(line.rstrip())

    return "\n".join(lines) + "\n"
