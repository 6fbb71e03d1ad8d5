from __future__ import annotations

import json

import pytest

from whamo.adapters.project.json_project import (
    load_project,
    network_from_project,
    network_to_project,
    save_project,
)
from whamo.core.compile import export_network
from whamo.core.models.defaults import new_node


def test_save_then_load_keeps_network(chain, tmp_path):
    path = tmp_path / "plant.json"
    save_project(chain, path)
    network, ids = load_project(path)

    assert network == chain
    assert ids.peek() == "10"
    assert export_network(network).text == export_network(chain).text


def test_project_file_layout(chain, tmp_path):
    path = tmp_path / "plant.json"
    save_project(chain, path)
    raw = json.loads(path.read_text(encoding="utf-8"))

    assert set(raw) == {"nodes", "edges", "title"}
    tank = next(n for n in raw["nodes"] if n["id"] == "3")
    assert tank["type"] == "surgeTank"
    assert tank["data"]["topElevation"] == 120.0
    edge = raw["edges"][0]
    assert (edge["type"], edge["source"], edge["target"]) == ("conduit", "1", "2")
    assert edge["data"]["numSegments"] == 10
    assert "cplus" not in edge["data"]
    assert path.read_text(encoding="utf-8").startswith('{\n  "nodes"')


def test_loaded_allocator_never_reissues_ids(chain):
    network, ids = network_from_project(network_to_project(chain))
    node = new_node("junction", (0, 0), ids)
    assert node.uid == "10"
    assert node.uid not in network.nodes and node.uid not in network.conduits


def test_non_numeric_ids_are_ignored_by_allocator():
    project = {
        "nodes": [{"id": "a", "type": "reservoir", "data": {"label": "up", "elevation": 10}}],
        "edges": [{"id": "42x", "source": "a", "target": "b", "data": {"label": "x"}}],
    }
    network, ids = network_from_project(project)
    assert ids.peek() == "1"
    assert network.get_conduit("42x").source == "a"


def test_type_may_come_from_data():
    project = {"nodes": [{"id": "4", "data": {"label": "J", "type": "junction", "nodeNumber": 4}}], "edges": []}
    network, _ = network_from_project(project)
    assert network.get_node("4").node_number == 4
    assert network.get_node("4").position == (0.0, 0.0)


@pytest.mark.parametrize(
    "project",
    [
        {"nodes": []},
        {"edges": []},
        {"nodes": {}, "edges": []},
        [],
    ],
)
def test_invalid_format(project):
    with pytest.raises(ValueError, match="Invalid format"):
        network_from_project(project)


def test_unknown_types_and_duplicates_are_rejected():
    with pytest.raises(ValueError, match="Unknown node type"):
        network_from_project({"nodes": [{"id": "1", "type": "pump"}], "edges": []})
    with pytest.raises(ValueError, match="Unknown edge type"):
        network_from_project({"nodes": [], "edges": [{"id": "1", "source": "a", "target": "b", "type": "valve"}]})
    with pytest.raises(ValueError, match="Duplicate node id"):
        network_from_project({"nodes": [{"id": "1", "type": "node"}, {"id": "1", "type": "node"}], "edges": []})


def test_broken_json_is_value_error(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError, match="Invalid JSON"):
        load_project(path)
