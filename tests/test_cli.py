from __future__ import annotations

import json
from pathlib import Path

from combat_lab.cli import main


def test_single_combat_prints_result_json(capsys) -> None:
    code = main(["simulate", "--a", "damage=40", "--b", "armor=10", "--seed", "3"])
    assert code == 0

    out = json.loads(capsys.readouterr().out)
    assert out["winner"] in ("entity1", "entity2", "draw")
    assert out["turn_by_turn_log"]
    assert out["events"]


def test_batch_prints_summary_without_samples(capsys) -> None:
    code = main(["simulate", "--a", "hp=200", "--iterations", "30", "--seed", "1"])
    assert code == 0

    out = json.loads(capsys.readouterr().out)
    assert out["summary"]["total_simulations"] == 30
    assert "sample_combats" not in out


def test_calibrate_prints_weights(tmp_path: Path, capsys) -> None:
    rules = tmp_path / "rules.yaml"
    rules.write_text("calibration:\n  passes: 2\n", encoding="utf-8")

    code = main(["--rules", str(rules), "calibrate", "hp", "--iterations", "20"])
    assert code == 0

    out = json.loads(capsys.readouterr().out)
    assert out["hp"]["stat"] == "hp"
    assert out["hp"]["sample_size"] == 40


def test_configuration_errors_exit_with_code_2(capsys) -> None:
    assert main(["calibrate", "mana", "--iterations", "10"]) == 2
    assert main(["simulate", "--a", "mana=3"]) == 2
    assert main(["simulate", "--iterations", "0"]) == 2
    assert capsys.readouterr().out == ""
