"""
Candidate oracle: translate a program, then run the artifact in the sandbox.
"""
import logging
import time
from typing import Optional, Protocol

from .bootstrap import BootstrapCache, BootstrapEnvironment
from .errors import ScriptError, TranslationError
from .sandbox import SandboxOutput
from .types import ExecutionResult, ExecutionStatus, ProgramSource

logger = logging.getLogger(__name__)

DEFAULT_SENTINEL = "Program End"


class Translator(Protocol):
    def version(self) -> str:
        ...

    def bootstrap(self, version: str, target) -> BootstrapEnvironment:
        ...

    def translate(self, source: ProgramSource, environment: Optional[BootstrapEnvironment] = None) -> str:
        ...


class Sandbox(Protocol):
    def run(self, artifact: str, *, sentinel: Optional[str], timeout: float) -> SandboxOutput:
        ...


class CandidateOracle:
    """Translate-then-run pipeline exposed through the oracle contract."""

    name = "candidate"

    def __init__(self, translator: Translator, sandbox: Sandbox, cache: BootstrapCache,
                 sentinel: str = DEFAULT_SENTINEL, timeout: float = 30.0):
        self.translator = translator
        self.sandbox = sandbox
        self.cache = cache
        self.sentinel = sentinel
        self.timeout = timeout

    def execute(self, source: ProgramSource) -> ExecutionResult:
        started = time.monotonic()

        # Infrastructure faults from version lookup and bootstrap propagate.
        version = self.translator.version()
        environment = self.cache.resolve(version, self.translator.bootstrap)

        try:
            artifact = self.translator.translate(source, environment)
        except TranslationError as e:
            return ExecutionResult(
                status=ExecutionStatus.COMPILE_ERROR,
                diagnostic=str(e),
                duration=time.monotonic() - started,
            )

        try:
            output = self.sandbox.run(artifact, sentinel=self.sentinel, timeout=self.timeout)
        except ScriptError as e:
            return ExecutionResult(
                status=ExecutionStatus.RUNTIME_ERROR,
                output_text=e.captured_text,
                diagnostic=e.message,
                artifact=artifact,
                duration=time.monotonic() - started,
            )

        if not output.sentinel_seen:
            return ExecutionResult(
                status=ExecutionStatus.TIMEOUT,
                output_text=output.text,
                diagnostic=f"Sentinel {self.sentinel!r} not seen within {self.timeout}s",
                artifact=artifact,
                duration=time.monotonic() - started,
            )

        result = ExecutionResult(
            status=ExecutionStatus.SUCCESS,
            output_text=output.text,
            artifact=artifact,
            duration=time.monotonic() - started,
        )
        logger.debug("candidate run (translator %s): %s in %.3fs", version, result.status.value, result.duration)
        return result
