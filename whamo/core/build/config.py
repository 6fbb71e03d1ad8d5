# whamo/core/build/config.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Literal


# ============================================================
# Helpers
# ============================================================

def _pick(cfg: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for k in keys:
        if k in cfg and cfg[k] is not None:
            return cfg[k]
    return default


def _choice(cfg: Dict[str, Any], *keys: str, default: str) -> str:
    return str(_pick(cfg, *keys, default=default)).strip().lower()


# ============================================================
# ControlConfig (CONTROL card)
# ============================================================

@dataclass(frozen=True)
class ControlConfig:
    """
    Computational time parameters written to the CONTROL card.
    """
    dt_comp_s: float = 0.01
    dt_out_s: float = 0.1
    t_max_s: float = 60.0

    @staticmethod
    def from_dict(cfg: Dict[str, Any]) -> "ControlConfig":
        out = ControlConfig(
            dt_comp_s=float(_pick(cfg, "dt_comp_s", "dtcomp", "dt_comp", default=0.01)),
            dt_out_s=float(_pick(cfg, "dt_out_s", "dtout", "dt_out", default=0.1)),
            t_max_s=float(_pick(cfg, "t_max_s", "tmax", "t_end_s", "t_end", default=60.0)),
        )
        out.validate()
        return out

    def validate(self) -> None:
        if self.dt_comp_s <= 0:
            raise ValueError(f"ControlConfig.dt_comp_s must be > 0 (got {self.dt_comp_s})")
        if self.dt_out_s < self.dt_comp_s:
            raise ValueError(
                f"ControlConfig.dt_out_s must be >= dt_comp_s (got {self.dt_out_s} < {self.dt_comp_s})"
            )
        if self.t_max_s <= 0:
            raise ValueError(f"ControlConfig.t_max_s must be > 0 (got {self.t_max_s})")


# ============================================================
# ExportConfig (aggregate)
# ============================================================

NumberingPolicy = Literal["sequential", "engineering"]
ParallelPolicy = Literal["error", "warning", "allow"]
IsolatedPolicy = Literal["error", "warning"]

# Largest number a NODE/ELEM field can hold in the fixed-width columns.
FORMAT_NUMBER_CEILING = 9999


@dataclass(frozen=True)
class ExportConfig:
    """
    Options for one export.

    - numbering: "sequential" renumbers nodes 1..N; "engineering" keeps the
      node numbers typed in the editor
    - parallel_conduits: severity of two conduits on the same ordered node pair
    - isolated_nodes: severity of a node with no conduit attached
    """
    numbering: NumberingPolicy = "sequential"
    parallel_conduits: ParallelPolicy = "error"
    isolated_nodes: IsolatedPolicy = "warning"

    max_nodes: int = FORMAT_NUMBER_CEILING
    max_elements: int = FORMAT_NUMBER_CEILING

    title: str = ""
    control: ControlConfig = field(default_factory=ControlConfig)

    @staticmethod
    def from_dict(cfg: Dict[str, Any]) -> "ExportConfig":
        out = ExportConfig(
            numbering=_choice(cfg, "numbering", "numbering_policy", default="sequential"),
            parallel_conduits=_choice(cfg, "parallel_conduits", "parallel", default="error"),
            isolated_nodes=_choice(cfg, "isolated_nodes", "isolated", default="warning"),
            max_nodes=int(_pick(cfg, "max_nodes", default=FORMAT_NUMBER_CEILING)),
            max_elements=int(_pick(cfg, "max_elements", default=FORMAT_NUMBER_CEILING)),
            title=str(_pick(cfg, "title", default="")).strip(),
            control=ControlConfig.from_dict(cfg),
        )
        out.validate()
        return out

    def validate(self) -> None:
        if self.numbering not in ("sequential", "engineering"):
            raise ValueError(f"ExportConfig.numbering invalid: {self.numbering!r}")
        if self.parallel_conduits not in ("error", "warning", "allow"):
            raise ValueError(f"ExportConfig.parallel_conduits invalid: {self.parallel_conduits!r}")
        if self.isolated_nodes not in ("error", "warning"):
            raise ValueError(f"ExportConfig.isolated_nodes invalid: {self.isolated_nodes!r}")
        for name in ("max_nodes", "max_elements"):
            v = getattr(self, name)
            if not (1 <= v <= FORMAT_NUMBER_CEILING):
                raise ValueError(f"ExportConfig.{name} must be in [1, {FORMAT_NUMBER_CEILING}] (got {v})")
        if "\n" in self.title or "\r" in self.title:
            raise ValueError("ExportConfig.title must be a single line")

        self.control.validate()
