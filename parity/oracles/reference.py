"""
Reference oracle: runs a program on the trusted Python runtime.
"""
import ast
import asyncio
import builtins
import contextlib
import inspect
import io
import json
import locale
import logging
import os
import subprocess
import sys
import time
import traceback
from pathlib import Path
from typing import Any, Dict, List, Optional

from .errors import OracleInfrastructureError
from .types import ExecutionResult, ExecutionStatus, ProgramSource

logger = logging.getLogger(__name__)

PROGRAM_MODULE_NAME = "__program__"
DEFAULT_TIMEOUT = 30.0

WORKER_MODULE = "parity.oracles.reference_worker"
READY_MARKER = "#parity-worker-ready"
RESULT_MARKER = "#parity-result "


def _worker_env() -> Dict[str, str]:
    env = dict(os.environ)
    package_root = str(Path(__file__).resolve().parents[2])
    existing = env.get("PYTHONPATH")
    env["PYTHONPATH"] = package_root + (os.pathsep + existing if existing else "")
    env["PYTHONIOENCODING"] = "utf-8"
    return env


def _last_payload(lines: List[str]) -> Optional[Dict[str, Any]]:
    for line in reversed(lines):
        if line.startswith(RESULT_MARKER):
            try:
                return json.loads(line[len(RESULT_MARKER):])
            except ValueError:
                return None
    return None


@contextlib.contextmanager
def invariant_locale(locale_name: str):
    """Hold LC_ALL at a fixed locale for the duration of the block."""
    try:
        previous = locale.setlocale(locale.LC_ALL)
        locale.setlocale(locale.LC_ALL, locale_name)
    except locale.Error as e:
        raise OracleInfrastructureError(f"Cannot apply locale {locale_name!r}: {e}") from e
    try:
        yield
    finally:
        locale.setlocale(locale.LC_ALL, previous)


def find_entry_point(tree: ast.Module, entry_point: str) -> Optional[ast.AST]:
    """Return the function node named by a dotted entry point, if present."""
    parts = entry_point.split(".")
    scope = tree.body
    node = None
    for i, part in enumerate(parts):
        last = i == len(parts) - 1
        wanted = (ast.FunctionDef, ast.AsyncFunctionDef) if last else (ast.ClassDef,)
        node = next(
            (n for n in scope if isinstance(n, wanted) and n.name == part),
            None,
        )
        if node is None:
            return None
        scope = node.body
    return node


class ReferenceOracle:
    """Executes Python source on the trusted runtime and captures everything it prints.

    With a ``timeout`` (the default) each program runs in a child interpreter
    that is killed when the bound passes, so an edit that turns a loop into
    an endless one yields a Timeout instead of hanging the caller. With
    ``timeout=None`` the program runs in the calling process.
    """

    name = "reference"

    def __init__(self, entry_point: str = "Program.main", locale_name: str = "C",
                 filename: str = "<program>", timeout: Optional[float] = DEFAULT_TIMEOUT,
                 python: Optional[str] = None):
        self.entry_point = entry_point
        self.locale_name = locale_name
        self.filename = filename
        self.timeout = timeout
        self.python = python or sys.executable

    def execute(self, source: ProgramSource) -> ExecutionResult:
        if self.timeout is None:
            return self.execute_inline(source)
        return self._execute_bounded(source)

    def _execute_bounded(self, source: ProgramSource) -> ExecutionResult:
        request = json.dumps({
            "source": source.text,
            "entry_point": self.entry_point,
            "locale": self.locale_name,
            "filename": self.filename,
        })
        started = time.monotonic()
        try:
            proc = subprocess.run(
                [self.python, "-m", WORKER_MODULE],
                input=request,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
                env=_worker_env(),
            )
        except subprocess.TimeoutExpired:
            logger.debug("reference run exceeded %ss", self.timeout)
            return ExecutionResult(
                status=ExecutionStatus.TIMEOUT,
                diagnostic=f"Reference run did not finish within {self.timeout}s",
                duration=time.monotonic() - started,
            )
        except OSError as e:
            raise OracleInfrastructureError(f"Cannot start reference worker {self.python}: {e}") from e

        lines = proc.stdout.splitlines()
        if READY_MARKER not in lines:
            raise OracleInfrastructureError(
                f"Reference worker failed to start (exit {proc.returncode}): {proc.stderr.strip()[-500:]}"
            )
        payload = _last_payload(lines)
        if payload is None:
            # The program ended the interpreter itself (os._exit, fatal signal).
            return ExecutionResult(
                status=ExecutionStatus.RUNTIME_ERROR,
                diagnostic=f"Reference process exited with code {proc.returncode} before reporting a result",
                duration=time.monotonic() - started,
            )
        if "infrastructure" in payload:
            raise OracleInfrastructureError(payload["infrastructure"])

        result = ExecutionResult.from_dict(payload["result"])
        result.duration = time.monotonic() - started
        return result

    def execute_inline(self, source: ProgramSource) -> ExecutionResult:
        """Run the program in the calling process, without a time bound."""
        started = time.monotonic()
        try:
            tree = ast.parse(source.text, filename=self.filename)
            code = compile(tree, self.filename, "exec")
        except (SyntaxError, ValueError) as e:
            return ExecutionResult(
                status=ExecutionStatus.COMPILE_ERROR,
                diagnostic=f"{type(e).__name__}: {e}",
                duration=time.monotonic() - started,
            )

        if find_entry_point(tree, self.entry_point) is None:
            return ExecutionResult(
                status=ExecutionStatus.COMPILE_ERROR,
                diagnostic=f"Entry point {self.entry_point!r} not found",
                duration=time.monotonic() - started,
            )

        sink = io.StringIO()
        status = ExecutionStatus.SUCCESS
        diagnostic = None
        with invariant_locale(self.locale_name):
            with contextlib.redirect_stdout(sink), contextlib.redirect_stderr(sink):
                try:
                    self._run(code)
                except SystemExit as e:
                    if e.code not in (None, 0):
                        status = ExecutionStatus.RUNTIME_ERROR
                        diagnostic = f"SystemExit: {e.code}"
                except Exception:
                    status = ExecutionStatus.RUNTIME_ERROR
                    diagnostic = traceback.format_exc()

        result = ExecutionResult(
            status=status,
            output_text=sink.getvalue(),
            diagnostic=diagnostic,
            duration=time.monotonic() - started,
        )
        logger.debug("reference run: %s in %.3fs", result.status.value, result.duration)
        return result

    def _run(self, code) -> None:
        namespace: Dict[str, Any] = {
            "__name__": PROGRAM_MODULE_NAME,
            "__builtins__": builtins,
        }
        exec(code, namespace)

        target: Any = namespace
        for part in self.entry_point.split("."):
            target = target[part] if isinstance(target, dict) else getattr(target, part)

        args = []
        try:
            params = [
                p for p in inspect.signature(target).parameters.values()
                if p.default is p.empty and p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
            ]
            if len(params) == 1:
                args = [[]]
        except (TypeError, ValueError):
            pass

        outcome = target(*args)
        if inspect.isawaitable(outcome):
            loop = asyncio.new_event_loop()
            try:
                loop.run_until_complete(outcome)
            finally:
                loop.close()
