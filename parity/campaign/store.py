"""
Failure persistence.

Every divergent iteration is written to the output directory under names
derived from its seed:

    fail_<seed>.py       original program
    fail_<seed>.js       translated artifact (when translation succeeded)
    fail_<seed>.log      both normalized outputs side by side, plus diagnostics
    fail_<seed>.json     the FailureRecord
    fail_<seed>.min.py   minimized program (after minimization)

All writes are atomic so an interrupted campaign never leaves a torn file.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from parity.diff.detector import DivergenceVerdict
from parity.oracles.types import ProgramSource

logger = logging.getLogger(__name__)

RULE = "-" * 15


class StoreError(Exception):
    """Raised when a failure record cannot be read or written."""


class FailureNotFoundError(StoreError):
    pass


def record_id_for_seed(seed: int) -> str:
    return f"fail_{seed}"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@dataclass
class FailureRecord:
    id: str
    seed: int
    source: ProgramSource
    verdict: DivergenceVerdict
    timestamp: str
    artifact: Optional[str] = None
    minimized_source: Optional[ProgramSource] = None
    master_seed: Optional[int] = None
    iteration: Optional[int] = None
    minimization: Optional[Dict[str, Any]] = None

    @classmethod
    def create(cls, seed: int, source: ProgramSource, verdict: DivergenceVerdict,
               master_seed: Optional[int] = None, iteration: Optional[int] = None) -> "FailureRecord":
        artifact = verdict.candidate.artifact if verdict.candidate else None
        return cls(
            id=record_id_for_seed(seed),
            seed=seed,
            source=source,
            verdict=verdict,
            timestamp=_utc_now(),
            artifact=artifact,
            master_seed=master_seed,
            iteration=iteration,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "seed": self.seed,
            "master_seed": self.master_seed,
            "iteration": self.iteration,
            "timestamp": self.timestamp,
            "origin": self.source.origin,
            "source": self.source.text,
            "verdict": self.verdict.to_dict(),
            "has_artifact": self.artifact is not None,
            "minimized_source": self.minimized_source.text if self.minimized_source else None,
            "minimization": self.minimization,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], artifact: Optional[str] = None) -> "FailureRecord":
        origin = data.get("origin", "<program>")
        minimized = data.get("minimized_source")
        return cls(
            id=data["id"],
            seed=data["seed"],
            source=ProgramSource(text=data["source"], origin=origin),
            verdict=DivergenceVerdict.from_dict(data["verdict"]),
            timestamp=data.get("timestamp", ""),
            artifact=artifact,
            minimized_source=ProgramSource(text=minimized, origin=origin) if minimized is not None else None,
            master_seed=data.get("master_seed"),
            iteration=data.get("iteration"),
            minimization=data.get("minimization"),
        )


def format_failure_log(record: FailureRecord) -> str:
    """Human-readable report: verdict, both normalized outputs, diagnostics."""
    verdict = record.verdict
    ref_status, cand_status = verdict.statuses
    lines = [
        f"Verdict: {verdict.kind.value} ({verdict.describe()})",
        f"Seed: {record.seed}",
        f"Timestamp: {record.timestamp}",
    ]
    if record.master_seed is not None:
        lines.append(f"Master seed: {record.master_seed} (iteration {record.iteration})")
    lines.append("")

    for title, status, output in (
        ("Reference", ref_status, verdict.reference_output),
        ("Candidate", cand_status, verdict.candidate_output),
    ):
        label = status.value if status else "no result"
        lines.extend([f"{title} ({label}):", RULE])
        lines.extend(output or [])
        lines.extend([RULE, ""])

    ref_lines = list(verdict.reference_output or [])
    cand_lines = list(verdict.candidate_output or [])
    if ref_lines or cand_lines:
        width = max([len(line) for line in ref_lines] + [len("Reference")])
        lines.append("Side by side:")
        lines.append(f"  {'Reference':<{width}} | Candidate")
        for i in range(max(len(ref_lines), len(cand_lines))):
            left = ref_lines[i] if i < len(ref_lines) else ""
            right = cand_lines[i] if i < len(cand_lines) else ""
            same = i < len(ref_lines) and i < len(cand_lines) and left == right
            lines.append(f"{' ' if same else '!'} {left:<{width}} | {right}")
        lines.append("")

    diagnostics = [
        ("reference", verdict.reference.diagnostic if verdict.reference else None),
        ("candidate", verdict.candidate.diagnostic if verdict.candidate else None),
        (f"{verdict.failed_oracle} infrastructure", verdict.error),
    ]
    if any(text for _, text in diagnostics):
        lines.append("Diagnostics:")
        for name, text in diagnostics:
            if text:
                lines.extend([f"[{name}]", text.rstrip(), ""])

    return "\n".join(lines).rstrip() + "\n"


def _atomic_write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(mode="w", delete=False, dir=path.parent, suffix=".tmp",
                                     encoding="utf-8") as tmp:
        tmp.write(text)
        tmp.flush()
        os.fsync(tmp.fileno())
        tmp_path = tmp.name
    os.replace(tmp_path, path)


def _atomic_write_json(path: Path, data: Dict[str, Any]) -> None:
    _atomic_write_text(path, json.dumps(data, indent=2) + "\n")


class FailureStore:
    """Directory of failure records named deterministically from their seeds."""

    def __init__(self, output_dir, artifact_marker: Optional[str] = None):
        self.output_dir = Path(output_dir)
        self.artifact_marker = artifact_marker

    def path(self, record_id: str, suffix: str) -> Path:
        return self.output_dir / f"{record_id}{suffix}"

    def normalize_id(self, record_id) -> str:
        text = str(record_id).strip()
        if text.endswith(".json"):
            text = text[:-len(".json")]
        if text.isdigit():
            return record_id_for_seed(int(text))
        return text

    def save(self, record: FailureRecord) -> Path:
        """Persist a raw failure. Returns the path of the saved program."""
        source_path = self.path(record.id, ".py")
        _atomic_write_text(source_path, record.source.text)
        if record.artifact is not None:
            _atomic_write_text(self.path(record.id, ".js"), self._trim_artifact(record.artifact))
        _atomic_write_text(self.path(record.id, ".log"), format_failure_log(record))
        _atomic_write_json(self.path(record.id, ".json"), record.to_dict())
        logger.info("Failure saved to %s", source_path)
        return source_path

    def save_minimized(self, record: FailureRecord, minimized: ProgramSource,
                       summary: Optional[Dict[str, Any]] = None) -> Path:
        record.minimized_source = minimized
        record.minimization = summary
        min_path = self.path(record.id, ".min.py")
        _atomic_write_text(min_path, minimized.text)
        _atomic_write_json(self.path(record.id, ".json"), record.to_dict())
        logger.info("Minimized program saved to %s", min_path)
        return min_path

    def load(self, record_id) -> FailureRecord:
        record_id = self.normalize_id(record_id)
        json_path = self.path(record_id, ".json")
        if not json_path.exists():
            raise FailureNotFoundError(f"No failure record {record_id} in {self.output_dir}")
        try:
            with open(json_path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Cannot read {json_path}: {e}") from e

        artifact = None
        js_path = self.path(record_id, ".js")
        if js_path.exists():
            artifact = js_path.read_text(encoding="utf-8")
        try:
            return FailureRecord.from_dict(data, artifact=artifact)
        except (KeyError, ValueError, TypeError) as e:
            raise StoreError(f"Malformed failure record {json_path}: {e}") from e

    def list(self) -> List[FailureRecord]:
        """All readable records, oldest first. Unreadable records are skipped with a warning."""
        if not self.output_dir.is_dir():
            return []
        records = []
        for json_path in sorted(self.output_dir.glob("fail_*.json")):
            try:
                records.append(self.load(json_path.stem))
            except StoreError as e:
                logger.warning("Skipping %s: %s", json_path.name, e)
        records.sort(key=lambda r: (r.timestamp, r.id))
        return records

    def _trim_artifact(self, artifact: str) -> str:
        # Keep only the program's own file when the marker is configured and present
        if self.artifact_marker:
            index = artifact.find(self.artifact_marker)
            if index >= 0:
                return artifact[index:]
        return artifact
