import pytest

from fakes import FakeSandbox, FakeTranslator, script_error
from parity.oracles import (
    BootstrapCache,
    BootstrapError,
    CandidateOracle,
    ExecutionStatus,
    ProgramSource,
    SandboxError,
    TranslatorUnavailableError,
)

PROGRAM = ProgramSource("class Program:\n    def main():\n        print('Program End')\n")


def _oracle(tmp_path, translator=None, sandbox=None, **kwargs):
    return CandidateOracle(
        translator or FakeTranslator(),
        sandbox or FakeSandbox("1\nProgram End\n"),
        BootstrapCache(tmp_path / "cache"),
        **kwargs,
    )


def test_success_carries_output_and_artifact(tmp_path):
    result = _oracle(tmp_path).execute(PROGRAM)

    assert result.status == ExecutionStatus.SUCCESS
    assert result.output_text == "1\nProgram End\n"
    assert result.artifact.startswith("// File: App.js")


def test_translation_failure_is_compile_error(tmp_path):
    sandbox = FakeSandbox()
    oracle = _oracle(tmp_path, translator=FakeTranslator(reject="Program"), sandbox=sandbox)

    result = oracle.execute(PROGRAM)

    assert result.status == ExecutionStatus.COMPILE_ERROR
    assert "unsupported construct" in result.diagnostic
    assert sandbox.runs == []


def test_script_fault_is_runtime_error_with_captured_output(tmp_path):
    sandbox = FakeSandbox(error=script_error("TypeError: x is undefined", captured="partial\n"))

    result = _oracle(tmp_path, sandbox=sandbox).execute(PROGRAM)

    assert result.status == ExecutionStatus.RUNTIME_ERROR
    assert result.output_text == "partial\n"
    assert result.diagnostic == "TypeError: x is undefined"
    assert result.artifact is not None


def test_missing_sentinel_is_timeout(tmp_path):
    sandbox = FakeSandbox("1\n", sentinel_seen=False)

    result = _oracle(tmp_path, sandbox=sandbox, timeout=0.5).execute(PROGRAM)

    assert result.status == ExecutionStatus.TIMEOUT
    assert result.output_text == "1\n"
    assert "Program End" in result.diagnostic


def test_sandbox_infrastructure_error_propagates(tmp_path):
    oracle = _oracle(tmp_path, sandbox=FakeSandbox(error=SandboxError("node died")))
    with pytest.raises(SandboxError):
        oracle.execute(PROGRAM)


def test_translator_version_failure_propagates(tmp_path):
    class MissingTranslator(FakeTranslator):
        def version(self):
            raise TranslatorUnavailableError("translator not installed")

    with pytest.raises(TranslatorUnavailableError):
        _oracle(tmp_path, translator=MissingTranslator()).execute(PROGRAM)


def test_bootstrap_runs_once_per_version(tmp_path):
    translator = FakeTranslator(version="1.0")
    oracle = _oracle(tmp_path, translator=translator)

    oracle.execute(PROGRAM)
    oracle.execute(PROGRAM)
    assert translator.bootstrapped == ["1.0"]

    translator.current_version = "2.0"
    oracle.execute(PROGRAM)
    assert translator.bootstrapped == ["1.0", "2.0"]
    assert "1.0" not in oracle.cache


def test_bootstrap_failure_is_not_a_compile_error(tmp_path):
    class BrokenBootstrap(FakeTranslator):
        def bootstrap(self, version, target):
            raise OSError("disk full")

    oracle = _oracle(tmp_path, translator=BrokenBootstrap(reject="Program"))
    with pytest.raises(BootstrapError):
        oracle.execute(PROGRAM)


def test_translation_error_after_bootstrap_stays_compile_error(tmp_path):
    translator = FakeTranslator(reject="Program")
    oracle = _oracle(tmp_path, translator=translator)

    assert oracle.execute(PROGRAM).status == ExecutionStatus.COMPILE_ERROR
    assert translator.bootstrapped == ["1.0"]
    assert "1.0" in oracle.cache
