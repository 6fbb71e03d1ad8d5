from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Union

from whamo.core.models.conduit import Conduit
from whamo.core.models.node import Node

logger = logging.getLogger(__name__)

Level = Literal["error", "warning"]
Stage = Literal["network", "topology", "numbering", "emit", "assemble"]
Category = Literal["structural", "validation", "capacity", "format"]

Element = Union[Node, Conduit]


@dataclass(frozen=True)
class ExportIssue:
    """
    One problem found while compiling a network.

    element_id/element_label point the user at the offending node or conduit
    in the editor; both are None for network-wide issues.
    """
    stage: Stage
    category: Category
    level: Level
    code: str
    message: str
    element_id: Optional[str] = None
    element_label: Optional[str] = None
    hint: Optional[str] = None

    def describe(self) -> str:
        where = ""
        if self.element_id is not None:
            where = f"[{self.element_id}" + (f" '{self.element_label}'" if self.element_label else "") + "] "
        out = f"{self.level}: {self.stage}/{self.code}: {where}{self.message}"
        if self.hint:
            out += f" | hint: {self.hint}"
        return out


class NetworkExportError(ValueError):
    """Raised when an export finds one or more errors."""
    def __init__(self, issues: List[ExportIssue]):
        self.issues = issues
        lines = [f"Network export failed with {len(issues)} error(s):"]
        for it in issues:
            if it.level == "error":
                lines.append(f"- {it.describe()}")
        super().__init__("\n".join(lines))


class StructuralError(NetworkExportError):
    """Dangling reference, self-loop or disconnected required node."""


class ValidationError(NetworkExportError):
    """Missing or out-of-range attribute."""


class CapacityError(NetworkExportError):
    """Numbering would exceed the format ceiling."""


class FormatInvariantError(RuntimeError):
    """Internal inconsistency while assembling the file (compiler defect)."""


ERROR_BY_CATEGORY = {
    "structural": StructuralError,
    "validation": ValidationError,
    "capacity": CapacityError,
}


def raise_on_errors(issues: List[ExportIssue]) -> None:
    errors = [i for i in issues if i.level == "error"]
    if not errors:
        return
    categories = {i.category for i in errors}
    if len(categories) == 1:
        raise ERROR_BY_CATEGORY.get(categories.pop(), NetworkExportError)(errors)
    raise NetworkExportError(errors)


@dataclass
class IssueCollector:
    """Accumulates issues for one pipeline stage."""
    stage: Stage
    issues: List[ExportIssue] = field(default_factory=list)

    def add(
        self,
        category: Category,
        level: Level,
        code: str,
        message: str,
        *,
        element: Optional[Element] = None,
        element_id: Optional[str] = None,
        hint: Optional[str] = None,
    ) -> None:
        label = None
        if element is not None:
            element_id = element.uid
            label = element.label
        issue = ExportIssue(
            stage=self.stage,
            category=category,
            level=level,
            code=code,
            message=message,
            element_id=element_id,
            element_label=label,
            hint=hint,
        )
        if level == "warning":
            logger.warning(issue.describe())
        else:
            logger.debug(issue.describe())
        self.issues.append(issue)

    @property
    def errors(self) -> List[ExportIssue]:
        return [i for i in self.issues if i.level == "error"]

    @property
    def has_errors(self) -> bool:
        return any(i.level == "error" for i in self.issues)


# ------------------------------------------------------------
# Attribute checks (shared by the emitter and adapters)
# ------------------------------------------------------------

def element_ref(element: Element) -> str:
    name = "Conduit" if element.kind == "conduit" else type(element).__name__
    return f"{name}(uid={element.uid}, label={element.label})"


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and value.strip() == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError, OverflowError):
        return None


def check_float(
    element: Element,
    field_name: str,
    log: IssueCollector,
    *,
    positive: bool = False,
    non_negative: bool = False,
    required: bool = True,
) -> Optional[float]:
    """
    Returns the finite value of `element.<field_name>`, or None after logging
    a validation error. Optional fields that are absent return None silently.
    """
    raw = getattr(element, field_name)
    ref = element_ref(element)

    if raw is None or (isinstance(raw, str) and raw.strip() == ""):
        if required:
            log.add("validation", "error", "missing_attribute",
                    f"{ref} {field_name} is missing.", element=element,
                    hint="Fill the value in the properties panel.")
        return None

    v = _to_float(raw)
    if v is None:
        log.add("validation", "error", "not_numeric",
                f"{ref} {field_name} is not numeric: {raw!r}", element=element)
        return None
    if not math.isfinite(v):
        log.add("validation", "error", "not_finite",
                f"{ref} {field_name} is not finite: {v}", element=element)
        return None
    if positive and v <= 0:
        log.add("validation", "error", "not_positive",
                f"{ref} {field_name} <= 0: {v}", element=element)
        return None
    if non_negative and v < 0:
        log.add("validation", "error", "negative",
                f"{ref} {field_name} < 0: {v}", element=element)
        return None
    return v


def check_int(
    element: Element,
    field_name: str,
    log: IssueCollector,
    *,
    minimum: int = 1,
    required: bool = True,
) -> Optional[int]:
    """Like check_float, for integral fields (numbers, counts)."""
    raw = getattr(element, field_name)
    ref = element_ref(element)

    if raw is None or (isinstance(raw, str) and raw.strip() == ""):
        if required:
            log.add("validation", "error", "missing_attribute",
                    f"{ref} {field_name} is missing.", element=element)
        return None

    v = _to_float(raw)
    if v is None or not math.isfinite(v):
        log.add("validation", "error", "not_numeric",
                f"{ref} {field_name} is not a finite number: {raw!r}", element=element)
        return None
    if v != int(v):
        log.add("validation", "error", "not_integer",
                f"{ref} {field_name} must be an integer: {raw!r}", element=element)
        return None
    if int(v) < minimum:
        log.add("validation", "error", "below_minimum",
                f"{ref} {field_name} < {minimum}: {int(v)}", element=element)
        return None
    return int(v)


def _collect(checks: Dict[str, Any], before: int, log: IssueCollector) -> Optional[Dict[str, Any]]:
    if len(log.errors) > before:
        return None
    return checks


def validate_node_attributes(node: Node, log: IssueCollector) -> Optional[Dict[str, Any]]:
    """
    Checks the attributes required by the node's kind.
    Returns the cleaned values, or None when any check failed.
    """
    before = len(log.errors)
    out: Dict[str, Any] = {}

    if node.kind == "reservoir":
        out["elevation"] = check_float(node, "elevation", log)

    elif node.kind in ("node", "junction"):
        out["node_number"] = check_int(node, "node_number", log)
        out["elevation"] = check_float(node, "elevation", log)

    elif node.kind == "surgeTank":
        top = check_float(node, "top_elevation", log)
        bottom = check_float(node, "bottom_elevation", log)
        out["top_elevation"] = top
        out["bottom_elevation"] = bottom
        out["diameter"] = check_float(node, "diameter", log, positive=True)
        out["celerity"] = check_float(node, "celerity", log, positive=True)
        out["friction"] = check_float(node, "friction", log, non_negative=True)
        out["node_number"] = check_int(node, "node_number", log, required=False)
        if top is not None and bottom is not None and top <= bottom:
            log.add("validation", "error", "inverted_elevations",
                    f"{element_ref(node)} top_elevation ({top}) must be above bottom_elevation ({bottom}).",
                    element=node)

    elif node.kind == "flowBoundary":
        out["schedule_number"] = check_int(node, "schedule_number", log)
        out["node_number"] = check_int(node, "node_number", log, required=False)

    else:
        log.add("validation", "error", "unknown_kind",
                f"Node(uid={node.uid}) has unknown kind {node.kind!r}.", element=node)

    return _collect(out, before, log)


def validate_conduit_attributes(conduit: Conduit, log: IssueCollector) -> Optional[Dict[str, Any]]:
    before = len(log.errors)
    out: Dict[str, Any] = {
        "length": check_float(conduit, "length", log, positive=True),
        "diameter": check_float(conduit, "diameter", log, positive=True),
        "celerity": check_float(conduit, "celerity", log, positive=True),
        "friction": check_float(conduit, "friction", log, non_negative=True),
        "num_segments": check_int(conduit, "num_segments", log),
        "cplus": check_float(conduit, "cplus", log, non_negative=True, required=False),
        "cminus": check_float(conduit, "cminus", log, non_negative=True, required=False),
    }
    return _collect(out, before, log)
