from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Literal, Optional, Tuple, Union

NodeKind = Literal["reservoir", "node", "junction", "surgeTank", "flowBoundary"]

NODE_KINDS: Tuple[str, ...] = ("reservoir", "node", "junction", "surgeTank", "flowBoundary")


@dataclass(frozen=True, slots=True)
class Reservoir:
    """
    Fixed-level reservoir attached to a hydraulic node.

    Notes:
    - elevation is the water-surface elevation [m]
    """
    kind: ClassVar[str] = "reservoir"

    uid: str
    label: str
    elevation: Optional[float] = None

    position: Tuple[float, float] = (0.0, 0.0)


@dataclass(frozen=True, slots=True)
class SimpleNode:
    """
    Plain hydraulic node (no storage, no boundary condition).

    Notes:
    - node_number is the engineering number typed in the editor
    """
    kind: ClassVar[str] = "node"

    uid: str
    label: str
    node_number: Optional[int] = None
    elevation: Optional[float] = None   # [m]

    position: Tuple[float, float] = (0.0, 0.0)


@dataclass(frozen=True, slots=True)
class Junction:
    kind: ClassVar[str] = "junction"

    uid: str
    label: str
    node_number: Optional[int] = None
    elevation: Optional[float] = None   # [m]

    position: Tuple[float, float] = (0.0, 0.0)


@dataclass(frozen=True, slots=True)
class SurgeTank:
    """
    Simple surge tank with its own storage geometry.

    Notes:
    - top/bottom elevations bound the water column [m]
    - celerity/friction describe the riser connecting the tank to the node
    """
    kind: ClassVar[str] = "surgeTank"

    uid: str
    label: str

    top_elevation: Optional[float] = None      # [m]
    bottom_elevation: Optional[float] = None   # [m]
    diameter: Optional[float] = None           # [m]
    celerity: Optional[float] = None           # a [m/s]
    friction: Optional[float] = None           # Darcy f [-]

    node_number: Optional[int] = None

    position: Tuple[float, float] = (0.0, 0.0)


@dataclass(frozen=True, slots=True)
class FlowBoundary:
    """
    Externally forced flow; the time series lives in a solver schedule table.
    """
    kind: ClassVar[str] = "flowBoundary"

    uid: str
    label: str
    schedule_number: Optional[int] = None

    node_number: Optional[int] = None

    position: Tuple[float, float] = (0.0, 0.0)


Node = Union[Reservoir, SimpleNode, Junction, SurgeTank, FlowBoundary]

NODE_CLASSES = {
    "reservoir": Reservoir,
    "node": SimpleNode,
    "junction": Junction,
    "surgeTank": SurgeTank,
    "flowBoundary": FlowBoundary,
}
