"""
Divergence detection between the reference and candidate oracles.
"""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from parity.oracles.types import ExecutionResult, ExecutionStatus, Oracle, ProgramSource
from .normalizer import NormalizedOutput, OutputNormalizer

logger = logging.getLogger(__name__)


class VerdictKind(str, Enum):
    MATCH = "match"
    MISMATCH = "mismatch"
    BOTH_ERRORED = "both_errored"
    INFRASTRUCTURE_ERROR = "infrastructure_error"


@dataclass
class DivergenceVerdict:
    """Classification of one dual execution."""
    kind: VerdictKind
    reference: Optional[ExecutionResult] = None
    candidate: Optional[ExecutionResult] = None
    reference_output: Optional[NormalizedOutput] = None
    candidate_output: Optional[NormalizedOutput] = None
    error: Optional[str] = None
    failed_oracle: Optional[str] = None

    @property
    def is_failure(self) -> bool:
        return self.kind != VerdictKind.MATCH

    @property
    def statuses(self) -> Tuple[Optional[ExecutionStatus], Optional[ExecutionStatus]]:
        return (
            self.reference.status if self.reference else None,
            self.candidate.status if self.candidate else None,
        )

    def describe(self) -> str:
        if self.kind == VerdictKind.INFRASTRUCTURE_ERROR:
            return f"infrastructure error in {self.failed_oracle} oracle: {self.error}"
        ref_status, cand_status = self.statuses
        if self.kind == VerdictKind.MATCH:
            return "outputs match"
        if self.kind == VerdictKind.BOTH_ERRORED:
            return f"both oracles errored (reference {ref_status.value}, candidate {cand_status.value})"
        if ref_status != cand_status:
            return f"status mismatch (reference {ref_status.value}, candidate {cand_status.value})"
        return "output mismatch"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "reference": self.reference.to_dict() if self.reference else None,
            "candidate": self.candidate.to_dict() if self.candidate else None,
            "reference_output": list(self.reference_output) if self.reference_output is not None else None,
            "candidate_output": list(self.candidate_output) if self.candidate_output is not None else None,
            "error": self.error,
            "failed_oracle": self.failed_oracle,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DivergenceVerdict":
        def _result(key):
            value = data.get(key)
            return ExecutionResult.from_dict(value) if value else None

        def _output(key):
            value = data.get(key)
            return NormalizedOutput(value) if value is not None else None

        return cls(
            kind=VerdictKind(data["kind"]),
            reference=_result("reference"),
            candidate=_result("candidate"),
            reference_output=_output("reference_output"),
            candidate_output=_output("candidate_output"),
            error=data.get("error"),
            failed_oracle=data.get("failed_oracle"),
        )


class DivergenceDetector:
    """Runs both oracles on a program and classifies the outcome.

    The oracles share no state; with ``parallel=True`` they run on two worker
    threads and the verdict is computed only after both complete.
    """

    def __init__(self, reference: Oracle, candidate: Oracle,
                 normalizer: Optional[OutputNormalizer] = None, parallel: bool = False):
        self.reference = reference
        self.candidate = candidate
        self.normalizer = normalizer or OutputNormalizer()
        self.parallel = parallel

    def compare(self, source: ProgramSource) -> DivergenceVerdict:
        if self.parallel:
            with ThreadPoolExecutor(max_workers=2, thread_name_prefix="parity-oracle") as pool:
                ref_future = pool.submit(self._guarded, self.reference, source)
                cand_future = pool.submit(self._guarded, self.candidate, source)
                ref_outcome = ref_future.result()
                cand_outcome = cand_future.result()
        else:
            ref_outcome = self._guarded(self.reference, source)
            cand_outcome = self._guarded(self.candidate, source)

        for oracle, (result, error) in ((self.reference, ref_outcome), (self.candidate, cand_outcome)):
            if error is not None:
                logger.warning("%s oracle infrastructure fault: %s", oracle.name, error)
                return DivergenceVerdict(
                    kind=VerdictKind.INFRASTRUCTURE_ERROR,
                    reference=ref_outcome[0],
                    candidate=cand_outcome[0],
                    error=error,
                    failed_oracle=oracle.name,
                )

        return self.classify(ref_outcome[0], cand_outcome[0])

    def classify(self, reference: ExecutionResult, candidate: ExecutionResult) -> DivergenceVerdict:
        ref_output = self.normalizer.normalize(reference.output_text)
        cand_output = self.normalizer.normalize(candidate.output_text)

        if not reference.ok and not candidate.ok:
            kind = VerdictKind.BOTH_ERRORED
        elif reference.ok and candidate.ok and ref_output == cand_output:
            kind = VerdictKind.MATCH
        else:
            kind = VerdictKind.MISMATCH

        return DivergenceVerdict(
            kind=kind,
            reference=reference,
            candidate=candidate,
            reference_output=ref_output,
            candidate_output=cand_output,
        )

    @staticmethod
    def _guarded(oracle: Oracle, source: ProgramSource) -> Tuple[Optional[ExecutionResult], Optional[str]]:
        # Expected failures come back as data, so anything raised here is infrastructure.
        try:
            return oracle.execute(source), None
        except Exception as e:
            return None, f"{type(e).__name__}: {e}"
