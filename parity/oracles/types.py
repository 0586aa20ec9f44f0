"""Shared types for the execution oracles."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Protocol


@dataclass(frozen=True)
class ProgramSource:
    """Immutable program text handed to both oracles.

    Every accepted minimizer edit produces a new instance; nothing mutates one.
    """
    text: str
    origin: str = "<program>"

    @property
    def digest(self) -> str:
        return hashlib.sha256(self.text.encode("utf-8")).hexdigest()

    def __len__(self) -> int:
        return len(self.text)


class ExecutionStatus(str, Enum):
    SUCCESS = "success"
    COMPILE_ERROR = "compile_error"
    RUNTIME_ERROR = "runtime_error"
    TIMEOUT = "timeout"


@dataclass
class ExecutionResult:
    """Outcome of executing one program on one oracle.

    Compile errors, runtime errors and timeouts travel here as data; only
    infrastructure faults are raised.
    """
    status: ExecutionStatus
    output_text: str = ""
    diagnostic: Optional[str] = None
    artifact: Optional[str] = None  # translated artifact (candidate only)
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return self.status == ExecutionStatus.SUCCESS

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "output_text": self.output_text,
            "diagnostic": self.diagnostic,
            "duration": self.duration,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExecutionResult":
        return cls(
            status=ExecutionStatus(data.get("status", ExecutionStatus.SUCCESS.value)),
            output_text=data.get("output_text", ""),
            diagnostic=data.get("diagnostic"),
            duration=data.get("duration", 0.0),
        )


class Oracle(Protocol):
    """Protocol shared by the reference and candidate oracles."""

    name: str

    def execute(self, source: ProgramSource) -> ExecutionResult:
        """Execute a program and return its result."""
        ...
