"""
Campaign loop: generate, compare, persist, minimize, until the deadline.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from parity.diff.detector import DivergenceDetector, DivergenceVerdict
from parity.reduce.minimizer import MinimizationResult, Minimizer
from .generator import GeneratorError, ProgramGenerator
from .seeds import derive_seed, draw_master_seed
from .store import FailureRecord, FailureStore

logger = logging.getLogger(__name__)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@dataclass
class CampaignReport:
    master_seed: int
    iterations: int = 0
    failures: int = 0
    minimized: int = 0
    errors: int = 0
    started_at: str = ""
    finished_at: str = ""
    failure_ids: List[str] = field(default_factory=list)

    def summary(self) -> str:
        return f"{self.iterations} iterations, {self.failures} failures"


def minimization_summary(result: MinimizationResult) -> Dict[str, Any]:
    return {
        "passes": result.passes,
        "trials": result.trials,
        "accepted": result.accepted,
        "converged": result.converged,
        "units_before": result.units_before,
        "units_after": result.units_after,
        "final_kind": result.final_verdict.kind.value if result.final_verdict else None,
    }


class CampaignRunner:
    """Single sequential fuzzing loop bounded by a wall-clock deadline.

    No single iteration can stop the loop: generator errors, infrastructure
    faults and unexpected exceptions are logged, counted as failures and the
    loop moves on. Failures are persisted before minimization starts.
    """

    def __init__(self, detector: DivergenceDetector, generator: ProgramGenerator,
                 store: FailureStore, minimizer: Optional[Minimizer] = None,
                 minutes: float = 1.0, master_seed: Optional[int] = None,
                 max_iterations: Optional[int] = None, minimize: bool = True,
                 clock: Callable[[], float] = time.monotonic,
                 on_verdict: Optional[Callable[[int, int, DivergenceVerdict], None]] = None):
        self.detector = detector
        self.generator = generator
        self.store = store
        self.minimizer = minimizer
        self.minutes = minutes
        self.master_seed = master_seed
        self.max_iterations = max_iterations
        self.minimize = minimize
        self.clock = clock
        self.on_verdict = on_verdict

    def run(self) -> CampaignReport:
        master = self.master_seed if self.master_seed is not None else draw_master_seed()
        report = CampaignReport(master_seed=master, started_at=_utc_now())
        deadline = self.clock() + self.minutes * 60

        logger.info("Starting campaign with seed %d for %s minutes", master, self.minutes)
        logger.info("Output directory: %s", self.store.output_dir.resolve())

        while self.clock() < deadline:
            if self.max_iterations is not None and report.iterations >= self.max_iterations:
                break
            report.iterations += 1
            iteration = report.iterations
            seed = derive_seed(master, iteration)
            logger.info("Iteration %d: generating program with seed %d", iteration, seed)
            try:
                self._run_iteration(report, master, iteration, seed)
            except Exception:
                logger.exception("Iteration %d (seed %d) failed unexpectedly", iteration, seed)
                report.errors += 1
                report.failures += 1

        report.finished_at = _utc_now()
        logger.info("Campaign finished. %s.", report.summary())
        return report

    def _run_iteration(self, report: CampaignReport, master: int, iteration: int, seed: int) -> None:
        try:
            source = self.generator.next_program(seed)
        except GeneratorError as e:
            logger.error("Generator failed for seed %d: %s", seed, e)
            report.errors += 1
            report.failures += 1
            return

        verdict = self.detector.compare(source)
        if self.on_verdict is not None:
            self.on_verdict(iteration, seed, verdict)
        if not verdict.is_failure:
            logger.info("PASS")
            return

        report.failures += 1
        logger.warning("FAIL: %s", verdict.describe())
        record = FailureRecord.create(seed, source, verdict, master_seed=master, iteration=iteration)
        self.store.save(record)
        report.failure_ids.append(record.id)

        if not self.minimize or self.minimizer is None or not self.minimizer.can_minimize(verdict):
            return
        result = self.minimizer.minimize(source, verdict)
        if result.reproduced:
            self.store.save_minimized(record, result.minimized, minimization_summary(result))
            report.minimized += 1
            logger.info(
                "Minimized %s: %d -> %d removable units in %d passes",
                record.id, result.units_before, result.units_after, result.passes,
            )
