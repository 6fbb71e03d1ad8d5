# whamo/cli.py
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from whamo.adapters.excel.read_excel import load_network_from_excel
from whamo.adapters.project.json_project import load_project
from whamo.core.build.config import ExportConfig
from whamo.core.compile import export_network
from whamo.core.models.network import Network


def _parse_overrides(pairs: List[str]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise SystemExit(f"error: --set expects KEY=VALUE, got {pair!r}")
        out[key.strip().lower()] = value.strip()
    return out


def _load(path: Path) -> Tuple[Network, Dict[str, Any]]:
    suffix = path.suffix.lower()
    if suffix in (".xlsx", ".xlsm"):
        return load_network_from_excel(str(path))
    if suffix == ".json":
        network, _ = load_project(path)
        return network, {}
    raise SystemExit(f"error: unsupported input type {suffix!r} (expected .json or .xlsx)")


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entrypoint."""
    parser = argparse.ArgumentParser(
        description="Compile a hydraulic network (JSON project or Excel workbook) into a WHAMO input file."
    )
    parser.add_argument("input", type=Path, help="Project .json or workbook .xlsx")
    parser.add_argument(
        "-o", "--out",
        type=Path,
        default=None,
        help="Output .inp path (default: input path with .inp suffix)",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Export option, e.g. numbering=engineering or parallel_conduits=warning (repeatable).",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on warnings (isolated nodes, disconnected components). Errors always fail.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        network, sheet_cfg = _load(args.input)
        cfg = ExportConfig.from_dict({**sheet_cfg, **_parse_overrides(args.overrides)})
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    result = export_network(network, cfg)
    for issue in result.warnings:
        print(issue.describe(), file=sys.stderr)

    if not result.ok or (args.strict and result.warnings):
        for issue in result.errors:
            print(issue.describe(), file=sys.stderr)
        print(result.describe().splitlines()[0], file=sys.stderr)
        return 2

    out: Path = args.out or args.input.with_suffix(".inp")
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(result.text, encoding="utf-8", newline="\n")
    print(f"{out}: {result.summary.describe()}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
