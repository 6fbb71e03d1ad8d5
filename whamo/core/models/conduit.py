from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional


@dataclass(frozen=True, slots=True)
class Conduit:
    """
    Conduit element between two hydraulic nodes (graph edge).

    Notes:
    - source/target reference Node.uid; direction is the positive flow direction
    - num_segments governs the solver's discretization of the reach
    - cplus/cminus are optional entrance loss coefficients for each flow direction
    """
    kind: ClassVar[str] = "conduit"

    uid: str
    label: str

    source: str
    target: str

    length: Optional[float] = None      # [m]
    diameter: Optional[float] = None    # internal diameter [m]
    celerity: Optional[float] = None    # a [m/s]
    friction: Optional[float] = None    # Darcy f [-]
    num_segments: Optional[int] = None

    cplus: Optional[float] = None
    cminus: Optional[float] = None
