from __future__ import annotations

from dataclasses import replace

import pytest

from whamo.adapters.project.json_project import save_project
from whamo.cli import main
from whamo.core.compile import export_network
from whamo.core.models.network import Network
from whamo.core.models.node import SimpleNode


def test_writes_inp_next_to_project(chain, tmp_path, capsys):
    project = tmp_path / "plant.json"
    save_project(chain, project)

    assert main([str(project)]) == 0
    out = tmp_path / "plant.inp"
    assert out.read_bytes() == export_network(chain).text.encode("utf-8")
    assert "4 conduit(s)" in capsys.readouterr().out


def test_out_path_and_overrides(chain, tmp_path):
    project = tmp_path / "plant.json"
    save_project(chain, project)
    out = tmp_path / "build" / "run1.inp"

    assert main([str(project), "-o", str(out), "--set", "title=Run 1", "--set", "tmax=5"]) == 0
    lines = out.read_text(encoding="utf-8").splitlines()
    assert lines[1] == "C  Run 1"
    assert " TMAX" + " " * 15 + "5.000" in lines


def test_failed_export_writes_nothing(chain, tmp_path, capsys):
    bad = Network(nodes=chain.nodes, conduits={**chain.conduits, "7": replace(chain.conduits["7"], target="99")})
    project = tmp_path / "bad.json"
    save_project(bad, project)

    assert main([str(project)]) == 2
    assert not (tmp_path / "bad.inp").exists()
    assert "dangling_target" in capsys.readouterr().err


def test_strict_fails_on_warnings(chain, tmp_path):
    nodes = {**chain.nodes, "20": SimpleNode(uid="20", label="spare", node_number=20, elevation=0.0)}
    project = tmp_path / "plant.json"
    save_project(Network(nodes=nodes, conduits=chain.conduits), project)

    assert main([str(project), "--strict"]) == 2
    assert main([str(project)]) == 0


def test_bad_inputs(chain, tmp_path):
    broken = tmp_path / "broken.json"
    broken.write_text('{"nodes": []}', encoding="utf-8")
    assert main([str(broken)]) == 2

    project = tmp_path / "plant.json"
    save_project(chain, project)

    with pytest.raises(SystemExit):
        main([str(tmp_path / "plant.txt")])
    with pytest.raises(SystemExit):
        main([str(project), "--set", "novalue"])
