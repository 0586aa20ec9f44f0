import json

import pytest

from fakes import StaticOracle, failed, success
from parity.campaign import (
    FailureNotFoundError,
    FailureRecord,
    FailureStore,
    StoreError,
    format_failure_log,
)
from parity.diff import DivergenceDetector, NormalizedOutput, VerdictKind
from parity.oracles import ExecutionResult, ExecutionStatus, ProgramSource

PROGRAM = ProgramSource("class Program:\n    def main():\n        print(True)\n", origin="seed:42")
ARTIFACT = "// runtime\nvar rt = 1;\n// File: App.js\nconsole.log(true);\n"


def _mismatch_verdict():
    candidate = ExecutionResult(
        status=ExecutionStatus.SUCCESS,
        output_text="true\nProgram End\n",
        artifact=ARTIFACT,
    )
    detector = DivergenceDetector(
        StaticOracle("reference", success("True\nProgram End\n")),
        StaticOracle("candidate", candidate),
    )
    return detector.compare(PROGRAM)


def _record(seed=42, **kwargs):
    return FailureRecord.create(seed, PROGRAM, _mismatch_verdict(), **kwargs)


def test_save_writes_every_artifact(tmp_path):
    store = FailureStore(tmp_path / "failures")
    record = _record(master_seed=7, iteration=3)

    saved = store.save(record)

    assert saved == tmp_path / "failures" / "fail_42.py"
    assert saved.read_text() == PROGRAM.text
    assert store.path("fail_42", ".js").read_text() == ARTIFACT
    assert store.path("fail_42", ".log").exists()
    data = json.loads(store.path("fail_42", ".json").read_text())
    assert data["seed"] == 42
    assert data["master_seed"] == 7
    assert data["iteration"] == 3
    assert data["verdict"]["kind"] == "mismatch"
    assert data["has_artifact"] is True
    assert not list((tmp_path / "failures").glob("*.tmp"))


def test_artifact_is_trimmed_at_marker(tmp_path):
    store = FailureStore(tmp_path, artifact_marker="// File: App.js")
    store.save(_record())
    assert store.path("fail_42", ".js").read_text() == "// File: App.js\nconsole.log(true);\n"


def test_no_artifact_file_without_translation(tmp_path):
    detector = DivergenceDetector(
        StaticOracle("reference", success("1")),
        StaticOracle("candidate", failed(ExecutionStatus.COMPILE_ERROR, diagnostic="unsupported: match")),
    )
    record = FailureRecord.create(5, PROGRAM, detector.compare(PROGRAM))
    store = FailureStore(tmp_path)

    store.save(record)

    assert not store.path("fail_5", ".js").exists()
    assert store.load("fail_5").artifact is None


def test_load_round_trips_the_record(tmp_path):
    store = FailureStore(tmp_path)
    record = _record()
    store.save(record)

    loaded = store.load("fail_42")

    assert loaded.id == record.id
    assert loaded.source == PROGRAM
    assert loaded.verdict.kind == VerdictKind.MISMATCH
    assert loaded.verdict.reference_output == NormalizedOutput(["True", "Program End"])
    assert loaded.verdict.candidate_output == NormalizedOutput(["true", "Program End"])
    assert loaded.artifact == ARTIFACT
    assert loaded.minimized_source is None


@pytest.mark.parametrize("given", ["fail_42", "42", "fail_42.json", " 42 "])
def test_record_ids_accept_seed_or_filename(tmp_path, given):
    store = FailureStore(tmp_path)
    store.save(_record())
    assert store.load(given).id == "fail_42"


def test_missing_record_raises_not_found(tmp_path):
    with pytest.raises(FailureNotFoundError):
        FailureStore(tmp_path).load("fail_1")


def test_corrupt_record_raises_store_error(tmp_path):
    (tmp_path / "fail_9.json").write_text("{not json")
    with pytest.raises(StoreError):
        FailureStore(tmp_path).load(9)


def test_save_minimized_updates_record(tmp_path):
    store = FailureStore(tmp_path)
    record = _record()
    store.save(record)
    minimized = ProgramSource("class Program:\n    def main():\n        pass\n")

    path = store.save_minimized(record, minimized, {"passes": 2, "units_before": 4, "units_after": 1})

    assert path == tmp_path / "fail_42.min.py"
    assert path.read_text() == minimized.text
    loaded = store.load(42)
    assert loaded.minimized_source.text == minimized.text
    assert loaded.minimization["passes"] == 2


def test_list_is_ordered_and_skips_bad_records(tmp_path):
    store = FailureStore(tmp_path)
    older = _record(seed=2)
    older.timestamp = "2024-01-01T00:00:00+00:00"
    newer = _record(seed=1)
    newer.timestamp = "2024-06-01T00:00:00+00:00"
    store.save(newer)
    store.save(older)
    (tmp_path / "fail_3.json").write_text("[]")

    records = store.list()

    assert [r.id for r in records] == ["fail_2", "fail_1"]


def test_list_of_missing_directory_is_empty(tmp_path):
    assert FailureStore(tmp_path / "nope").list() == []


def test_failure_log_layout():
    record = _record(master_seed=11, iteration=4)
    log = format_failure_log(record)

    assert log.startswith("Verdict: mismatch (output mismatch)\nSeed: 42\n")
    assert "Master seed: 11 (iteration 4)" in log
    assert "Reference (success):\n---------------\nTrue\nProgram End\n---------------" in log
    assert "Candidate (success):\n---------------\ntrue\nProgram End\n---------------" in log
    assert "! True        | true" in log
    assert "  Program End | Program End" in log
    assert "Diagnostics:" not in log


def test_failure_log_includes_diagnostics():
    detector = DivergenceDetector(
        StaticOracle("reference", success("1")),
        StaticOracle("candidate", failed(ExecutionStatus.RUNTIME_ERROR, "", "TypeError: x is undefined")),
    )
    record = FailureRecord.create(8, PROGRAM, detector.compare(PROGRAM))

    log = format_failure_log(record)

    assert "Candidate (runtime_error):" in log
    assert "Diagnostics:\n[candidate]\nTypeError: x is undefined" in log
