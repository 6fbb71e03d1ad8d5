from __future__ import annotations

from dataclasses import replace

import pytest

from conftest import conduit, make_network
from whamo.core.build.config import ExportConfig
from whamo.core.build.numbering import assign_numbers
from whamo.core.build.topology import resolve_topology
from whamo.core.build.validate import FormatInvariantError
from whamo.core.emit.assemble import assemble_file
from whamo.core.emit.fields import FieldOverflow, comment, field_line, fmt_real, node_line
from whamo.core.emit.records import SECTION_ORDER, emit_records
from whamo.core.models.node import Reservoir, SimpleNode


def _emit(net, cfg=None):
    cfg = cfg or ExportConfig()
    topo = resolve_topology(net, cfg)
    return emit_records(net, topo, assign_numbers(net, topo, cfg), cfg)


# ------------------------------------------------------------
# Field formatting
# ------------------------------------------------------------

def test_fmt_real_never_uses_exponent():
    assert fmt_real(1e-7, 5) == "0.00000"
    assert fmt_real(12345678.9, 3) == "12345678.900"
    assert "e" not in fmt_real(1e10, 2).lower()


def test_fmt_real_drops_negative_zero():
    assert fmt_real(-0.0, 3) == "0.000"
    assert fmt_real(-0.0001, 3) == "0.000"
    assert fmt_real(-1.5, 3) == "-1.500"


def test_field_line_layout():
    line = field_line("DIAM", 1.25)
    assert line == " DIAM" + " " * 14 + "1.2500"
    assert len(line) == 1 + 10 + 14
    assert field_line("NUMSEG", 12) == " NUMSEG" + " " * 16 + "12"


def test_field_line_overflow():
    with pytest.raises(FieldOverflow):
        field_line("LENG", 1e15)
    with pytest.raises(FieldOverflow):
        node_line(3, -1e12)


def test_comment_is_single_line_and_bounded():
    assert comment("a\nb\tc") == "C  a b c"
    assert len(comment("x" * 200)) == 80
    assert comment("   ") == "C"


# ------------------------------------------------------------
# Record emission
# ------------------------------------------------------------

def test_emit_returns_every_section(chain):
    emitted = _emit(chain)
    assert emitted.ok
    assert list(emitted.sections) == list(SECTION_ORDER)
    assert emitted.sections["footer"] == ["GO", "GOODBYE"]


def test_section_without_members_is_empty(long_chain):
    sections = _emit(long_chain).sections
    assert sections["surge_tanks"] == []
    assert sections["flow_boundaries"] == []
    assert "C  JUNCTIONS" not in sections["nodes"]


def test_overflowing_value_is_reported_against_element(chain):
    net = make_network(
        list(chain.nodes.values()),
        [replace(c, length=1e15) if c.uid == "7" else c for c in chain.conduits.values()],
    )
    emitted = _emit(net)

    assert not emitted.ok
    assert emitted.sections == {}
    assert [(i.code, i.element_id) for i in emitted.issues] == [("field_overflow", "7")]


def test_invalid_values_are_errors_not_defaults():
    nodes = [
        Reservoir(uid="1", label="RES-1", elevation=float("nan")),
        SimpleNode(uid="2", label="2", node_number=2, elevation="12.5"),
    ]
    net = make_network(nodes, [conduit("3", "1", "2", celerity=0.0)])
    emitted = _emit(net)

    assert {(i.element_id, i.code) for i in emitted.issues} == {("1", "not_finite"), ("3", "not_positive")}


def test_numeric_strings_are_accepted():
    nodes = [
        Reservoir(uid="1", label="RES-1", elevation="100"),
        SimpleNode(uid="2", label="2", node_number="2", elevation="12.5"),
    ]
    emitted = _emit(make_network(nodes, [conduit("3", "1", "2", num_segments="8")]))
    assert emitted.ok
    assert "NODE     2 ELEV         12.500" in emitted.sections["nodes"]


# ------------------------------------------------------------
# Assembly
# ------------------------------------------------------------

def _sections():
    return {
        "header": ["C  WHAMO INPUT FILE", ""],
        "system": ["SYSTEM", "FINISH"],
        "reservoirs": [],
        "nodes": [],
        "surge_tanks": [],
        "flow_boundaries": [],
        "conduits": [],
        "control": ["CONTROL", " FINISH"],
        "footer": ["GO", "GOODBYE"],
    }


def test_assemble_follows_canonical_order():
    sections = _sections()
    shuffled = {k: sections[k] for k in reversed(list(sections))}
    text = assemble_file(shuffled)
    assert text == "C  WHAMO INPUT FILE\n\nSYSTEM\nFINISH\nCONTROL\n FINISH\nGO\nGOODBYE\n"


def test_assemble_rejects_missing_section():
    sections = _sections()
    del sections["control"]
    with pytest.raises(FormatInvariantError):
        assemble_file(sections)


def test_assemble_rejects_empty_required_section():
    sections = _sections()
    sections["system"] = []
    with pytest.raises(FormatInvariantError):
        assemble_file(sections)


def test_assemble_rejects_unknown_section_and_multiline_record():
    sections = _sections()
    sections["extra"] = ["X"]
    with pytest.raises(FormatInvariantError):
        assemble_file(sections)

    sections = _sections()
    sections["nodes"] = ["NODE 1\nNODE 2"]
    with pytest.raises(FormatInvariantError):
        assemble_file(sections)
