import csv
import json
from pathlib import Path

import pytest

from schedsim import cli
from schedsim.workload_io import load_workload


def test_run_prints_results(capsys):
    assert cli.main(["run", "-a", "rr", "--no-gantt"]) == 0
    out = capsys.readouterr().out
    assert "Round Robin" in out
    assert "Per-process metrics" in out
    assert "System metrics" in out


def test_run_with_gantt_and_step(capsys):
    assert cli.main(["run", "-a", "mlfq", "--step", "--step-delay", "0"]) == 0
    out = capsys.readouterr().out
    assert "Gantt Chart" in out
    assert "t=  0: P1" in out


def test_run_from_workload_file_with_export(tmp_path: Path, capsys):
    workload = tmp_path / "w.json"
    workload.write_text(json.dumps([
        {"pid": 1, "priority": 2, "burst_time": 4},
        {"pid": 2, "priority": 0, "burst_time": 3, "arrival_time": 1},
    ]))
    output = tmp_path / "metrics.csv"
    assert cli.main(["run", "-a", "pp", "-w", str(workload), "-o", str(output)]) == 0
    assert output.read_text().startswith("Metric,Value")


def test_run_random_workload_with_overrides(capsys):
    argv = ["run", "-a", "mlq", "-n", "6", "--seed", "4", "--queues", "4", "--quantums", "2", "3", "-c", "0"]
    assert cli.main(argv) == 0
    assert "Multilevel Queue" in capsys.readouterr().out


def test_compare_with_export(tmp_path: Path, capsys):
    output = tmp_path / "results.csv"
    assert cli.main(["compare", "-o", str(output), "--no-aging"]) == 0
    out = capsys.readouterr().out
    assert "Lowest average waiting time" in out
    assert len(output.read_text().splitlines()) == 6


def test_benchmark(capsys):
    assert cli.main(["benchmark", "--counts", "3", "5", "--seed", "2"]) == 0
    assert "Performance benchmark" in capsys.readouterr().out


@pytest.mark.parametrize(
    "argv",
    [
        ["run", "-a", "lottery"],
        ["run", "-a", "rr", "-q", "0"],
        ["run", "-a", "rr", "-w", "does-not-exist.json"],
        ["compare", "-n", "-2"],
    ],
)
def test_errors_return_non_zero(argv, capsys):
    assert cli.main(argv) == 1
    assert "Error:" in capsys.readouterr().out


def test_command_is_required():
    with pytest.raises(SystemExit):
        cli.main([])


def test_menu_compare_then_quit(monkeypatch, capsys):
    answers = iter(["6", "x", "q"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))
    assert cli.main(["menu"]) == 0
    out = capsys.readouterr().out
    assert "Algorithm comparison" in out
    assert "Invalid selection" in out


def test_config_from_args():
    args = cli.build_parser().parse_args(
        ["run", "-a", "rr", "-q", "3", "-c", "2", "--no-aging", "--slice", "2", "--quantums", "1", "2"]
    )
    config = cli.config_from_args(args)
    assert config.time_quantum == 3
    assert config.context_switch_time == 2
    assert not config.aging_enabled
    assert config.preemption_slice == 2
    assert config.quantums == (1, 2)


def _answer(monkeypatch, *answers):
    replies = iter(answers)
    monkeypatch.setattr("builtins.input", lambda prompt="": next(replies))


def test_menu_add_show_and_save(monkeypatch, tmp_path: Path, capsys):
    saved = tmp_path / "workload.json"
    _answer(monkeypatch, "10", "7 1 3 0", "11", "8", str(saved), "q")
    assert cli.main(["menu"]) == 0
    assert "Process added." in capsys.readouterr().out
    procs = load_workload(saved)
    assert len(procs) == 6
    assert (procs[-1].pid, procs[-1].priority, procs[-1].burst_time) == (7, 1, 3)


def test_menu_configure_then_export(monkeypatch, tmp_path: Path, capsys):
    output = tmp_path / "results.csv"
    _answer(monkeypatch, "12", "2", "0", "6", "13", str(output), "q")
    assert cli.main(["menu"]) == 0
    assert "Configuration updated." in capsys.readouterr().out
    rows = list(csv.reader(output.open(newline="")))
    assert len(rows) == 6
    assert {row[4] for row in rows[1:]} == {"100.00"}


def test_menu_benchmark(monkeypatch, capsys):
    _answer(monkeypatch, "14", "3 4", "q")
    assert cli.main(["menu"]) == 0
    assert "Performance benchmark" in capsys.readouterr().out


def test_menu_reports_bad_input_and_continues(monkeypatch, capsys):
    _answer(monkeypatch, "12", "0", "1", "10", "1 2", "13", "99", "q")
    assert cli.main(["menu"]) == 0
    out = capsys.readouterr().out
    assert out.count("Error:") == 2
    assert "Nothing to export yet" in out
    assert "Invalid selection" in out


def test_zero_random_processes_is_not_the_sample_set():
    args = cli.build_parser().parse_args(["run", "-a", "rr", "-n", "0"])
    assert cli._workload_from_args(args) == []
