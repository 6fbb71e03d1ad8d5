from __future__ import annotations

from conftest import by_code, conduit, make_network
from whamo.core.build.config import ExportConfig
from whamo.core.build.numbering import assign_numbers, stable_order
from whamo.core.build.topology import resolve_topology
from whamo.core.models.node import Reservoir, SimpleNode, SurgeTank


def _number(net, cfg=None):
    cfg = cfg or ExportConfig()
    return assign_numbers(net, resolve_topology(net, cfg), cfg)


def test_stable_order_numeric_first_then_declared():
    assert stable_order(["b", "10", "2", "a", "007", "1"]) == ["1", "2", "007", "10", "b", "a"]


def test_stable_order_keeps_declared_order_on_ties():
    assert stable_order(["01", "1", "x"]) == ["01", "1", "x"]


def test_sequential_numbers_are_contiguous_and_invertible(long_chain):
    num = _number(long_chain)
    assert num.ok
    assert sorted(num.node_number_by_uid.values()) == list(range(1, 12))
    assert sorted(num.element_number_by_uid["conduit"].values()) == list(range(1, 11))
    for uid, n in num.node_number_by_uid.items():
        assert num.node_uid_by_number[n] == uid
    for uid, n in num.element_number_by_uid["conduit"].items():
        assert num.element_uid_by_number["conduit"][n] == uid


def test_sequential_ignores_editor_node_numbers():
    nodes = [
        Reservoir(uid="1", label="RES-1", elevation=100.0),
        SimpleNode(uid="2", label="a", node_number=500, elevation=1.0),
        SimpleNode(uid="3", label="b", node_number=500, elevation=1.0),
    ]
    net = make_network(nodes, [conduit("4", "1", "2"), conduit("5", "2", "3")])
    num = _number(net)
    assert num.issues == []
    assert num.node_number_by_uid == {"1": 1, "2": 2, "3": 3}


def test_boundary_kinds_have_their_own_domains(chain):
    num = _number(chain)
    assert num.element_id("reservoir", "1") == "R1"
    assert num.element_id("surgeTank", "3") == "ST1"
    assert num.element_id("flowBoundary", "5") == "FB1"
    assert num.element_id("conduit", "9") == "C4"


def test_conduit_and_node_uids_may_collide():
    nodes = [Reservoir(uid="1", label="RES-1", elevation=100.0),
             SimpleNode(uid="2", label="2", node_number=2, elevation=1.0)]
    net = make_network(nodes, [conduit("1", "1", "2")])
    num = _number(net)
    assert num.element_id("conduit", "1") == "C1"
    assert num.element_id("reservoir", "1") == "R1"
    assert num.node_number_by_uid["1"] == 1


def test_engineering_duplicate_numbers_are_errors():
    nodes = [
        Reservoir(uid="1", label="RES-1", elevation=100.0),
        SimpleNode(uid="2", label="a", node_number=7, elevation=1.0),
        SimpleNode(uid="3", label="b", node_number=7, elevation=1.0),
    ]
    net = make_network(nodes, [conduit("4", "1", "2"), conduit("5", "2", "3")])
    num = _number(net, ExportConfig(numbering="engineering"))

    codes = by_code(num.issues)
    assert not num.ok
    assert [i.element_id for i in codes["duplicate_node_number"]] == ["3"]


def test_engineering_fills_lowest_free_numbers():
    nodes = [
        Reservoir(uid="1", label="RES-1", elevation=100.0),
        SimpleNode(uid="2", label="a", node_number=1, elevation=1.0),
        SurgeTank(uid="3", label="ST-3", top_elevation=10.0, bottom_elevation=1.0,
                  diameter=2.0, celerity=900.0, friction=0.01, node_number=2),
    ]
    net = make_network(nodes, [conduit("4", "1", "2"), conduit("5", "2", "3")])
    num = _number(net, ExportConfig(numbering="engineering"))

    # the reservoir carries no editor number and takes the first free one
    assert num.node_number_by_uid == {"1": 3, "2": 1, "3": 2}
    assert num.issues == []


def test_capacity_limits_are_reported_before_numbering(long_chain):
    num = _number(long_chain, ExportConfig(max_nodes=5, max_elements=3))
    codes = by_code(num.issues)

    assert set(codes) == {"too_many_nodes", "too_many_conduits"}
    assert all(i.category == "capacity" for i in num.issues)
    assert num.node_number_by_uid == {}


def test_boundary_count_over_limit():
    nodes = [Reservoir(uid=str(i), label=f"RES-{i}", elevation=100.0) for i in (1, 2, 3)]
    nodes.append(SimpleNode(uid="4", label="4", node_number=4, elevation=1.0))
    conduits = [conduit(f"c{i}", str(i), "4") for i in (1, 2, 3)]
    num = _number(make_network(nodes, conduits), ExportConfig(max_elements=3, max_nodes=10))
    assert num.ok

    nodes.append(Reservoir(uid="5", label="RES-5", elevation=100.0))
    conduits.append(conduit("c5", "5", "4"))
    num = _number(make_network(nodes, conduits), ExportConfig(max_elements=3, max_nodes=10))
    assert [i.code for i in num.issues] == ["too_many_conduits", "too_many_elements"]


def test_engineering_number_above_ceiling():
    nodes = [
        Reservoir(uid="1", label="RES-1", elevation=100.0),
        SimpleNode(uid="2", label="a", node_number=50, elevation=1.0),
    ]
    net = make_network(nodes, [conduit("3", "1", "2")])
    num = _number(net, ExportConfig(numbering="engineering", max_nodes=20))
    assert "node_number_ceiling" in by_code(num.issues)
    assert not num.ok
