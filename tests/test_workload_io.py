import csv
from pathlib import Path

import pytest

from schedsim.algorithms import run_algorithm
from schedsim.models import Process
from schedsim.workload import sample_processes
from schedsim.workload_io import export_metrics_csv, load_workload, save_workload


def test_load_json(tmp_path: Path):
    p = tmp_path / "w.json"
    p.write_text('[{"pid":1,"arrival_time":0,"burst_time":3,"priority":1,"name":"init"},'
                 '{"pid":2,"arrival_time":1,"burst_time":2}]')
    procs = load_workload(p)
    assert isinstance(procs[0], Process)
    assert procs[0].name == "init"
    assert procs[1].priority == 0
    assert procs[1].name == "P2"
    assert procs[1].arrival_time == 1


def test_load_csv(tmp_path: Path):
    p = tmp_path / "w.csv"
    p.write_text("pid,arrival_time,burst_time,priority\n1,0,3,1\n2,1,2,\n")
    procs = load_workload(p)
    assert procs[0].pid == 1
    assert procs[0].priority == 1
    assert procs[1].priority == 0


def test_load_text_skips_header_and_bad_lines(tmp_path: Path):
    p = tmp_path / "w.txt"
    p.write_text("PID Priority BurstTime ArrivalTime\n1 2 10 0\nnot a process line\n2 1 5\n3 3 8 2\n")
    procs = load_workload(p)
    assert [(q.pid, q.priority, q.burst_time, q.arrival_time) for q in procs] == [(1, 2, 10, 0), (3, 3, 8, 2)]


def test_load_rejects_unknown_suffix(tmp_path: Path):
    with pytest.raises(ValueError):
        load_workload(tmp_path / "w.yaml")


@pytest.mark.parametrize(
    "content",
    ['{"pid": 1}', '[{"pid": 1}]', '[{"pid": 1, "burst_time": 0}]', '[{"pid": "x", "burst_time": 2}]'],
)
def test_load_json_rejects_invalid_entries(tmp_path: Path, content):
    p = tmp_path / "bad.json"
    p.write_text(content)
    with pytest.raises(ValueError):
        load_workload(p)


def test_load_missing_file(tmp_path: Path):
    with pytest.raises(OSError):
        load_workload(tmp_path / "missing.csv")


def test_save_writes_base_priority(tmp_path: Path):
    procs = sample_processes()
    procs[0].priority = 0
    path = tmp_path / "saved.csv"
    save_workload(path, procs)
    loaded = load_workload(path)
    assert [(p.pid, p.priority, p.burst_time, p.arrival_time) for p in loaded] == [
        (p.pid, p.base_priority, p.burst_time, p.arrival_time) for p in procs
    ]


def test_save_text_is_loadable(tmp_path: Path):
    path = tmp_path / "saved.txt"
    save_workload(path, sample_processes())
    assert path.read_text().splitlines()[0] == "PID Priority BurstTime ArrivalTime"
    assert len(load_workload(path)) == 5


def test_save_rejects_unknown_suffix(tmp_path: Path):
    with pytest.raises(ValueError):
        save_workload(tmp_path / "w.xml", sample_processes())


def test_export_metrics_csv(tmp_path: Path):
    sched = run_algorithm("rr", sample_processes())
    path = tmp_path / "metrics.csv"
    export_metrics_csv(path, sched.metrics, sched.processes)
    rows = list(csv.reader(path.open(newline="")))
    assert rows[0] == ["Metric", "Value"]
    assert ["Process Count", "5"] in rows
    assert ["Process", "Waiting Time", "Turnaround Time", "Response Time"] in rows
    assert rows[-1][0] == "P5"
