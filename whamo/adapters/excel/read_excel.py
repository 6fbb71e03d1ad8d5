from __future__ import annotations

import logging
from dataclasses import fields
from typing import Any, Dict, Optional, Tuple, Union

import pandas as pd

from whamo.core.models.conduit import Conduit
from whamo.core.models.network import Network
from whamo.core.models.node import NODE_CLASSES, Node

logger = logging.getLogger(__name__)

# -----------------------------
# Excel contract
# -----------------------------
SHEET_NODES = "nodes"
SHEET_CONDUITS = "conduits"
SHEET_CONFIG = "config"

# Required columns (snake_case)
REQ_NODES = {"node_id", "kind", "label"}
REQ_CONDUITS = {"conduit_id", "label", "source", "target", "length", "diameter", "celerity", "friction",
                "num_segments"}
REQ_CONFIG = {"key", "value"}

NODE_REAL_COLUMNS = ("elevation", "top_elevation", "bottom_elevation", "diameter", "celerity", "friction")
NODE_INT_COLUMNS = ("node_number", "schedule_number")
CONDUIT_REAL_COLUMNS = ("length", "diameter", "celerity", "friction", "cplus", "cminus")

# Spellings accepted in the 'kind' column -> node kind
KIND_MAP = {
    "reservoir": "reservoir",
    "node": "node",
    "simple_node": "node",
    "simplenode": "node",
    "junction": "junction",
    "surge_tank": "surgeTank",
    "surgetank": "surgeTank",
    "flow_boundary": "flowBoundary",
    "flowboundary": "flowBoundary",
    "flow_bc": "flowBoundary",
}


def _is_blank(x: Any) -> bool:
    return x is None or (isinstance(x, float) and pd.isna(x)) or (isinstance(x, str) and x.strip() == "")


def _norm_str(x: Any) -> str:
    if _is_blank(x):
        return ""
    return str(x).strip()


def _norm_id(x: Any) -> str:
    """Ids typed as numbers come back as floats when the column has blanks (1.0 -> '1')."""
    if isinstance(x, float) and not pd.isna(x) and x.is_integer():
        return str(int(x))
    return _norm_str(x)


def _require_columns(df: pd.DataFrame, required: set[str], sheet: str) -> None:
    missing = sorted(list(required - set(df.columns)))
    if missing:
        raise ValueError(f"Sheet '{sheet}' is missing required columns: {missing}")


def _maybe_float(x: Any, field: str, sheet: str, row_hint: str) -> Optional[float]:
    """Empty cell -> None; anything else must be numeric."""
    if _is_blank(x):
        return None
    try:
        return float(x)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid numeric value for '{field}' in sheet '{sheet}' ({row_hint}): {x!r}") from e


def _maybe_int(x: Any, field: str, sheet: str, row_hint: str) -> Union[int, float, None]:
    v = _maybe_float(x, field, sheet, row_hint)
    if v is None:
        return None
    # non-integral values are kept so the export reports them against the element
    return int(v) if v.is_integer() else v


def _check_unique(ids: list[str], column: str, sheet: str) -> None:
    dup = sorted({x for x in ids if ids.count(x) > 1})
    if dup:
        raise ValueError(f"Duplicate {column} in sheet '{sheet}': {dup}")


def _read_config(df_config: pd.DataFrame) -> Dict[str, Any]:
    config: Dict[str, Any] = {}
    for _, r in df_config.iterrows():
        key = _norm_str(r["key"]).lower()
        if not key:
            continue
        val = r["value"]

        # Try to coerce to float if looks numeric
        if isinstance(val, str):
            v = val.strip()
            if v == "":
                continue
            try:
                config[key] = float(v)
            except ValueError:
                config[key] = v
            continue

        if isinstance(val, float) and pd.isna(val):
            continue

        config[key] = val
    return config


def _node_from_row(r: pd.Series, node_id: str) -> Node:
    hint = f"node_id={node_id}"
    kind_raw = _norm_str(r["kind"]).lower()
    if kind_raw not in KIND_MAP:
        raise ValueError(
            f"Invalid kind in '{SHEET_NODES}' ({hint}): {kind_raw!r}. Allowed: {sorted(KIND_MAP)}"
        )
    cls = NODE_CLASSES[KIND_MAP[kind_raw]]
    own = {f.name for f in fields(cls)}

    kwargs: Dict[str, Any] = {}
    for col in NODE_REAL_COLUMNS:
        if col in own and col in r.index:
            kwargs[col] = _maybe_float(r[col], col, SHEET_NODES, hint)
    for col in NODE_INT_COLUMNS:
        if col in own and col in r.index:
            kwargs[col] = _maybe_int(r[col], col, SHEET_NODES, hint)

    x = _maybe_float(r.get("x", None), "x", SHEET_NODES, hint) or 0.0
    y = _maybe_float(r.get("y", None), "y", SHEET_NODES, hint) or 0.0

    return cls(uid=node_id, label=_norm_str(r["label"]) or node_id, position=(x, y), **kwargs)


def load_network_from_excel(path: str) -> Tuple[Network, Dict[str, Any]]:
    """
    Reads 'nodes', 'conduits' and optionally 'config' from an Excel workbook
    and returns:
      - Network (ids taken verbatim from node_id / conduit_id)
      - config dict from 'config' sheet (keys lower-cased, numbers coerced)

    Missing numeric cells become None and are reported by the export, not here.
    """
    sheets = pd.read_excel(path, sheet_name=None, engine="openpyxl")
    for name in (SHEET_NODES, SHEET_CONDUITS):
        if name not in sheets:
            raise ValueError(f"Workbook {path!r} has no sheet '{name}'")

    df_nodes = sheets[SHEET_NODES]
    df_conduits = sheets[SHEET_CONDUITS]
    _require_columns(df_nodes, REQ_NODES, SHEET_NODES)
    _require_columns(df_conduits, REQ_CONDUITS, SHEET_CONDUITS)

    # -----------------------------
    # Config
    # -----------------------------
    config: Dict[str, Any] = {}
    if SHEET_CONFIG in sheets:
        _require_columns(sheets[SHEET_CONFIG], REQ_CONFIG, SHEET_CONFIG)
        config = _read_config(sheets[SHEET_CONFIG])

    # -----------------------------
    # Nodes
    # -----------------------------
    node_ids = [_norm_id(x) for x in df_nodes["node_id"].tolist() if _norm_id(x)]
    _check_unique(node_ids, "node_id", SHEET_NODES)

    nodes: Dict[str, Node] = {}
    for _, r in df_nodes.iterrows():
        node_id = _norm_id(r["node_id"])
        if not node_id:
            continue  # allow blank rows
        nodes[node_id] = _node_from_row(r, node_id)

    # -----------------------------
    # Conduits
    # -----------------------------
    conduit_ids = [_norm_id(x) for x in df_conduits["conduit_id"].tolist() if _norm_id(x)]
    _check_unique(conduit_ids, "conduit_id", SHEET_CONDUITS)

    conduits: Dict[str, Conduit] = {}
    for _, r in df_conduits.iterrows():
        conduit_id = _norm_id(r["conduit_id"])
        if not conduit_id:
            continue
        hint = f"conduit_id={conduit_id}"

        kwargs: Dict[str, Any] = {}
        for col in CONDUIT_REAL_COLUMNS:
            if col in r.index:
                kwargs[col] = _maybe_float(r[col], col, SHEET_CONDUITS, hint)

        # unknown source/target ids are kept; the export reports them as dangling
        conduits[conduit_id] = Conduit(
            uid=conduit_id,
            label=_norm_str(r["label"]) or conduit_id,
            source=_norm_id(r["source"]),
            target=_norm_id(r["target"]),
            num_segments=_maybe_int(r["num_segments"], "num_segments", SHEET_CONDUITS, hint),
            **kwargs,
        )

    title = _norm_str(config.get("title", ""))
    logger.info("Read workbook %s: %d nodes, %d conduits, %d config keys",
                path, len(nodes), len(conduits), len(config))
    return Network(nodes=nodes, conduits=conduits, title=title), config
