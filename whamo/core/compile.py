from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from whamo.core.build.config import ExportConfig
from whamo.core.build.numbering import assign_numbers
from whamo.core.build.topology import resolve_topology
from whamo.core.build.validate import ExportIssue, raise_on_errors
from whamo.core.emit.assemble import ExportSummary, assemble_file, summarize
from whamo.core.emit.records import emit_records
from whamo.core.models.network import Network

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportResult:
    """
    Outcome of one export: either `text` is set and `errors` is empty, or
    `text` is None and `errors` lists every problem found by the failing stage.
    Warnings may accompany a successful export.
    """
    text: Optional[str]
    summary: Optional[ExportSummary]
    issues: List[ExportIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.text is not None

    @property
    def errors(self) -> List[ExportIssue]:
        return [i for i in self.issues if i.level == "error"]

    @property
    def warnings(self) -> List[ExportIssue]:
        return [i for i in self.issues if i.level == "warning"]

    @property
    def first_error(self) -> Optional[ExportIssue]:
        errors = self.errors
        return errors[0] if errors else None

    def describe(self) -> str:
        """One headline (count + first offender) followed by every issue."""
        if self.ok:
            head = f"Export OK: {self.summary.describe()}" if self.summary else "Export OK"
        else:
            first = self.first_error
            where = f" First: {first.element_label or first.element_id or first.code}." if first else ""
            head = f"Export failed with {len(self.errors)} error(s).{where}"
        return "\n".join([head] + [f"  {i.describe()}" for i in self.issues])


def _failed(issues: List[ExportIssue], stage: str) -> ExportResult:
    n_err = sum(1 for i in issues if i.level == "error")
    logger.info("Export stopped at %s: %d error(s)", stage, n_err)
    return ExportResult(text=None, summary=None, issues=issues)


def export_network(network: Network, cfg: Optional[ExportConfig] = None) -> ExportResult:
    """
    Compiles a network snapshot into the solver input file.

    Stages: topology -> numbering -> records -> assembly. The first stage
    that reports an error ends the export; nothing partial is returned.
    The snapshot is only read.
    """
    cfg = cfg or ExportConfig()
    cfg.validate()
    issues: List[ExportIssue] = []

    topo = resolve_topology(network, cfg)
    issues += topo.issues
    if not topo.ok:
        return _failed(issues, "topology")

    numbering = assign_numbers(network, topo, cfg)
    issues += numbering.issues
    if not numbering.ok:
        return _failed(issues, "numbering")

    emitted = emit_records(network, topo, numbering, cfg)
    issues += emitted.issues
    if not emitted.ok:
        return _failed(issues, "emit")

    text = assemble_file(emitted.sections)
    n_warnings = sum(1 for i in issues if i.level == "warning")
    summary = summarize(network, len(topo.resolved), text.count("\n"), n_warnings)

    logger.info("Export OK: %s", summary.describe())
    return ExportResult(text=text, summary=summary, issues=issues)


def export_or_raise(network: Network, cfg: Optional[ExportConfig] = None) -> ExportResult:
    """export_network, raising NetworkExportError (or a subclass) on failure."""
    result = export_network(network, cfg)
    raise_on_errors(result.issues)
    return result
