import threading

import pytest

from fakes import FunctionOracle, JsLikeCandidate, StaticOracle, failed, success
from parity.diff import DivergenceDetector, DivergenceVerdict, NormalizedOutput, OutputNormalizer, VerdictKind
from parity.oracles import ExecutionStatus, ProgramSource, ReferenceOracle, SandboxError

PROGRAM = ProgramSource("class Program:\n    def main():\n        print(1 < 2)\n")


def _detector(ref_result, cand_result, **kwargs):
    return DivergenceDetector(
        StaticOracle("reference", ref_result),
        StaticOracle("candidate", cand_result),
        **kwargs,
    )


def test_trailing_space_difference_is_a_match():
    verdict = _detector(success("5\n"), success("5 \n")).compare(PROGRAM)

    assert verdict.kind == VerdictKind.MATCH
    assert not verdict.is_failure
    assert verdict.reference_output == verdict.candidate_output == NormalizedOutput(["5"])


def test_differing_output_is_a_mismatch_with_both_outputs():
    verdict = _detector(success("True\nFalse"), success("True\nTrue")).compare(PROGRAM)

    assert verdict.kind == VerdictKind.MISMATCH
    assert verdict.reference_output == NormalizedOutput(["True", "False"])
    assert verdict.candidate_output == NormalizedOutput(["True", "True"])
    assert verdict.describe() == "output mismatch"


def test_both_errored():
    verdict = _detector(
        failed(ExecutionStatus.RUNTIME_ERROR),
        failed(ExecutionStatus.COMPILE_ERROR),
    ).compare(PROGRAM)

    assert verdict.kind == VerdictKind.BOTH_ERRORED
    assert verdict.statuses == (ExecutionStatus.RUNTIME_ERROR, ExecutionStatus.COMPILE_ERROR)


def test_one_sided_error_is_a_mismatch():
    verdict = _detector(success("1\nProgram End"), failed(ExecutionStatus.TIMEOUT, "1")).compare(PROGRAM)

    assert verdict.kind == VerdictKind.MISMATCH
    assert verdict.statuses == (ExecutionStatus.SUCCESS, ExecutionStatus.TIMEOUT)
    assert "status mismatch" in verdict.describe()


def test_equal_outputs_with_one_error_still_mismatch():
    verdict = _detector(success("x"), failed(ExecutionStatus.RUNTIME_ERROR, "x")).compare(PROGRAM)
    assert verdict.kind == VerdictKind.MISMATCH


@pytest.mark.parametrize("failing", ["reference", "candidate"])
def test_oracle_exception_is_infrastructure_error(failing):
    ok = StaticOracle("reference" if failing == "candidate" else "candidate", success("1"))
    broken = StaticOracle(failing, error=SandboxError("sandbox died"))
    reference, candidate = (broken, ok) if failing == "reference" else (ok, broken)

    verdict = DivergenceDetector(reference, candidate).compare(PROGRAM)

    assert verdict.kind == VerdictKind.INFRASTRUCTURE_ERROR
    assert verdict.failed_oracle == failing
    assert "SandboxError: sandbox died" in verdict.error
    assert verdict.is_failure


def test_normalizer_setting_is_honoured():
    detector = _detector(success("a\n\nb"), success("a\nb"),
                         normalizer=OutputNormalizer(drop_blank_lines=False))
    assert detector.compare(PROGRAM).kind == VerdictKind.MISMATCH


def test_compare_is_deterministic_with_real_oracles():
    detector = DivergenceDetector(ReferenceOracle(timeout=None), JsLikeCandidate())

    first = detector.compare(PROGRAM)
    second = detector.compare(PROGRAM)

    assert first.kind == second.kind == VerdictKind.MISMATCH
    assert first.statuses == second.statuses
    assert first.reference_output == second.reference_output == NormalizedOutput(["True"])
    assert first.candidate_output == second.candidate_output == NormalizedOutput(["true"])


def test_parallel_mode_runs_both_oracles_concurrently():
    barrier = threading.Barrier(2, timeout=5)

    def meet(text):
        def run(source):
            barrier.wait()
            return success(text)
        return run

    detector = DivergenceDetector(
        FunctionOracle("reference", meet("1")),
        FunctionOracle("candidate", meet("1")),
        parallel=True,
    )
    assert detector.compare(PROGRAM).kind == VerdictKind.MATCH


def test_parallel_mode_reports_infrastructure_error():
    detector = DivergenceDetector(
        StaticOracle("reference", success("1")),
        StaticOracle("candidate", error=RuntimeError("lost connection")),
        parallel=True,
    )
    verdict = detector.compare(PROGRAM)
    assert verdict.kind == VerdictKind.INFRASTRUCTURE_ERROR
    assert verdict.reference is not None
    assert verdict.candidate is None


def test_verdict_round_trips_through_dict():
    verdict = _detector(success("True\nFalse"), failed(ExecutionStatus.RUNTIME_ERROR, "True")).compare(PROGRAM)

    restored = DivergenceVerdict.from_dict(verdict.to_dict())

    assert restored.kind == verdict.kind
    assert restored.statuses == verdict.statuses
    assert restored.reference_output == verdict.reference_output
    assert restored.candidate_output == verdict.candidate_output
    assert restored.candidate.diagnostic == "boom"
