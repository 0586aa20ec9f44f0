"""
Delta-debugging minimizer.

Shrinks a divergent program one removable unit at a time, re-running the
divergence detector after every edit and keeping an edit only when the
failure still reproduces.

Levels are examined coarse to fine on every pass: top-level declarations,
then class members, then statements inside function bodies. Candidates are
recollected from the current best program after every accepted edit and
walked in document order. A pass that accepts anything triggers another
pass; the run ends at the first pass that accepts nothing (a local fixed
point) or at the pass cap. Trials run strictly one after another.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, Optional

from parity.diff.detector import DivergenceDetector, DivergenceVerdict, VerdictKind
from parity.oracles.types import ProgramSource
from .units import GRANULARITY_ORDER, RemovableUnit, UnitError, UnitKind, UnitParser

logger = logging.getLogger(__name__)

DEFAULT_MAX_PASSES = 50


class ReproductionPolicy(str, Enum):
    """What counts as "the same failure" for a trial verdict."""
    KIND = "kind"        # same verdict kind
    STATUS = "status"    # same kind and the same oracle statuses
    OUTPUT = "output"    # same kind, statuses and normalized outputs

    def matches(self, expected: DivergenceVerdict, observed: DivergenceVerdict) -> bool:
        if observed.kind != expected.kind:
            return False
        if self == ReproductionPolicy.KIND:
            return True
        if observed.statuses != expected.statuses:
            return False
        if self == ReproductionPolicy.STATUS:
            return True
        return (observed.reference_output == expected.reference_output
                and observed.candidate_output == expected.candidate_output)


@dataclass
class MinimizationState:
    """Mutable state of one minimization run; discarded when the run ends."""
    current_best: ProgramSource
    current_verdict: DivergenceVerdict
    pass_count: int = 0
    changed_in_pass: bool = False
    trials: int = 0
    accepted: int = 0


@dataclass
class MinimizationResult:
    original: ProgramSource
    minimized: ProgramSource
    expected: DivergenceVerdict
    final_verdict: Optional[DivergenceVerdict]
    reproduced: bool
    converged: bool
    passes: int
    trials: int
    accepted: int
    units_before: int
    units_after: int

    @property
    def reduced(self) -> bool:
        return self.minimized.text != self.original.text


class Minimizer:
    def __init__(self, detector: DivergenceDetector, units: Optional[UnitParser] = None,
                 max_passes: int = DEFAULT_MAX_PASSES,
                 policy: ReproductionPolicy = ReproductionPolicy.KIND,
                 minimizable_kinds: Iterable[VerdictKind] = (VerdictKind.MISMATCH,),
                 cache_trials: bool = True,
                 on_trial: Optional[Callable[[RemovableUnit, bool], None]] = None):
        self.detector = detector
        self.units = units or UnitParser()
        self.max_passes = max_passes
        self.policy = ReproductionPolicy(policy)
        self.minimizable_kinds = frozenset(VerdictKind(k) for k in minimizable_kinds)
        self.cache_trials = cache_trials
        self.on_trial = on_trial
        self._trial_cache: Dict[str, Optional[DivergenceVerdict]] = {}

    def can_minimize(self, verdict: DivergenceVerdict) -> bool:
        return verdict.kind in self.minimizable_kinds

    def minimize(self, source: ProgramSource, expected: DivergenceVerdict) -> MinimizationResult:
        """Shrink ``source`` while it keeps reproducing ``expected`` under the policy."""
        self._trial_cache = {}
        units_before = self._safe_count(source)

        if not self.can_minimize(expected):
            logger.info("Verdict %s is not minimized", expected.kind.value)
            return self._unchanged(source, expected, None, units_before)

        initial = self._trial(source)
        if initial is None or not self.policy.matches(expected, initial):
            logger.info("Program no longer reproduces its %s verdict; nothing to minimize", expected.kind.value)
            return self._unchanged(source, expected, initial, units_before)

        state = MinimizationState(current_best=source, current_verdict=initial, trials=1)
        logger.info("Starting minimization: %d removable units", units_before)

        converged = False
        while state.pass_count < self.max_passes:
            state.pass_count += 1
            state.changed_in_pass = False
            for kind in GRANULARITY_ORDER:
                self._reduce_level(state, expected, kind)
            logger.info(
                "Minimization pass %d: %d accepted so far, %d chars",
                state.pass_count, state.accepted, len(state.current_best),
            )
            if not state.changed_in_pass:
                converged = True
                break

        return MinimizationResult(
            original=source,
            minimized=state.current_best,
            expected=expected,
            final_verdict=state.current_verdict,
            reproduced=True,
            converged=converged,
            passes=state.pass_count,
            trials=state.trials,
            accepted=state.accepted,
            units_before=units_before,
            units_after=self._safe_count(state.current_best),
        )

    def minimize_record(self, record) -> MinimizationResult:
        return self.minimize(record.source, record.verdict)

    def _reduce_level(self, state: MinimizationState, expected: DivergenceVerdict, kind: UnitKind) -> None:
        try:
            candidates = self.units.collect(state.current_best, kind)
        except UnitError as e:
            logger.debug("Cannot collect %s units: %s", kind.value, e)
            return

        index = 0
        while index < len(candidates):
            unit = candidates[index]
            try:
                reduced = self.units.remove(state.current_best, unit)
            except UnitError as e:
                logger.debug("Skipping %s: %s", unit, e)
                index += 1
                continue
            if reduced.text == state.current_best.text:
                # An unchanged program is not a reduction.
                index += 1
                continue

            verdict = self._trial(reduced)
            state.trials += 1
            accepted = verdict is not None and self.policy.matches(expected, verdict)
            if self.on_trial is not None:
                self.on_trial(unit, accepted)

            if not accepted:
                index += 1
                continue

            logger.debug("Removed %s", unit)
            state.current_best = reduced
            state.current_verdict = verdict
            state.changed_in_pass = True
            state.accepted += 1
            # Paths from the discarded tree are stale; the next unit now sits at ``index``.
            try:
                candidates = self.units.collect(state.current_best, kind)
            except UnitError:
                return

    def _trial(self, source: ProgramSource) -> Optional[DivergenceVerdict]:
        """Run the detector, treating any exception as a failed reproduction."""
        key = source.digest
        if self.cache_trials and key in self._trial_cache:
            return self._trial_cache[key]
        try:
            verdict = self.detector.compare(source)
        except Exception as e:
            logger.warning("Trial raised %s: %s; rejecting edit", type(e).__name__, e)
            verdict = None
        if self.cache_trials:
            self._trial_cache[key] = verdict
        return verdict

    def _safe_count(self, source: ProgramSource) -> int:
        try:
            return self.units.count(source)
        except UnitError:
            return 0

    def _unchanged(self, source, expected, verdict, units) -> MinimizationResult:
        return MinimizationResult(
            original=source,
            minimized=source,
            expected=expected,
            final_verdict=verdict,
            reproduced=False,
            converged=False,
            passes=0,
            trials=1 if verdict is not None else 0,
            accepted=0,
            units_before=units,
            units_after=units,
        )
