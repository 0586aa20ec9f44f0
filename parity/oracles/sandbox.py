"""
Long-lived script sandbox.

A single interpreter process (Node.js by default) evaluates translated
artifacts one at a time. Requests and events travel as JSON lines; a reader
thread moves events from the process stdout into a queue.
"""
import json
import logging
import subprocess
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from queue import Empty, Queue
from typing import Any, Dict, List, Optional, Sequence

from .errors import SandboxBusyError, SandboxError, ScriptError

logger = logging.getLogger(__name__)

DEFAULT_DRIVER = Path(__file__).with_name("sandbox_driver.js")
DEFAULT_COMMAND = ("node", "{driver}")


@dataclass
class SandboxOutput:
    """Text captured from one evaluation."""
    text: str
    sentinel_seen: bool


class ScriptSandbox:
    """Evaluates artifacts in one reusable interpreter process.

    Only one evaluation context may be active at a time; campaigns that run
    concurrently need their own sandbox instances.
    """

    def __init__(self, command: Sequence[str] = DEFAULT_COMMAND,
                 driver: Optional[Path] = None,
                 startup_timeout: float = 15.0):
        self.driver = Path(driver) if driver else DEFAULT_DRIVER
        self.command = [part.replace("{driver}", str(self.driver)) for part in command]
        self.startup_timeout = startup_timeout
        self.process: Optional[subprocess.Popen] = None
        self._events: "Queue[Dict[str, Any]]" = Queue()
        self._reader: Optional[threading.Thread] = None
        self._busy = threading.Lock()
        self._next_id = 0
        self.restarts = 0

    def __enter__(self) -> "ScriptSandbox":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -- process lifecycle ---------------------------------------------------

    def start(self) -> None:
        if self.is_running():
            return
        events: "Queue[Dict[str, Any]]" = Queue()
        try:
            process = subprocess.Popen(
                self.command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
                text=True,
                encoding="utf-8",
                bufsize=1,
            )
        except OSError as e:
            raise SandboxError(f"Failed to start sandbox {' '.join(self.command)}: {e}") from e

        reader = threading.Thread(target=self._read_events, args=(process, events), daemon=True)
        reader.start()
        self.process = process
        self._events = events
        self._reader = reader

        deadline = time.monotonic() + self.startup_timeout
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                self.close()
                raise SandboxError("Sandbox did not become ready in time")
            try:
                event = events.get(timeout=remaining)
            except Empty:
                continue
            if event.get("type") == "ready":
                logger.info("Sandbox started (pid %s)", process.pid)
                return
            if event.get("type") == "exit":
                self.close()
                raise SandboxError("Sandbox exited during startup")

    def close(self) -> None:
        process, self.process = self.process, None
        if process is None:
            return
        try:
            if process.stdin:
                process.stdin.close()
        except OSError:
            pass
        process.terminate()
        try:
            process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()
        if self._reader and self._reader.is_alive():
            self._reader.join(timeout=1)

    def is_running(self) -> bool:
        return self.process is not None and self.process.poll() is None

    def _recycle(self) -> None:
        logger.debug("Recycling sandbox process")
        self.close()
        self.restarts += 1

    @staticmethod
    def _read_events(process: subprocess.Popen, events: "Queue[Dict[str, Any]]") -> None:
        for raw in process.stdout:
            raw = raw.strip()
            if not raw:
                continue
            try:
                events.put(json.loads(raw))
            except json.JSONDecodeError:
                logger.debug("Ignoring non-protocol sandbox output: %s", raw[:200])
        events.put({"type": "exit"})

    # -- evaluation ----------------------------------------------------------

    def run(self, artifact: str, *, sentinel: Optional[str], timeout: float) -> SandboxOutput:
        """Evaluate an artifact until the sentinel line appears or the timeout passes.

        Raises:
            ScriptError: the artifact threw (synchronously or from async work)
            SandboxBusyError: another evaluation is in progress
            SandboxError: the sandbox process is unusable
        """
        if not self._busy.acquire(blocking=False):
            raise SandboxBusyError("Sandbox already has an active evaluation context")
        try:
            self.start()
            self._next_id += 1
            request_id = self._next_id
            self._send({"id": request_id, "code": artifact})

            lines: List[str] = []
            deadline = time.monotonic() + timeout
            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    # Timers from this context may still fire; start clean next time.
                    self._recycle()
                    return SandboxOutput(text=self._join(lines), sentinel_seen=False)
                try:
                    event = self._events.get(timeout=remaining)
                except Empty:
                    continue

                kind = event.get("type")
                if kind == "exit":
                    self.close()
                    raise SandboxError("Sandbox process exited during evaluation")
                if event.get("id") != request_id:
                    continue
                if kind == "line":
                    text = str(event.get("text", ""))
                    lines.append(text)
                    if sentinel is not None and text.strip() == sentinel:
                        return SandboxOutput(text=self._join(lines), sentinel_seen=True)
                elif kind == "error":
                    raise ScriptError(str(event.get("text", "")), captured_text=self._join(lines))
        finally:
            self._busy.release()

    def _send(self, request: Dict[str, Any]) -> None:
        try:
            self.process.stdin.write(json.dumps(request) + "\n")
            self.process.stdin.flush()
        except (OSError, ValueError, AttributeError) as e:
            self.close()
            raise SandboxError(f"Failed to send request to sandbox: {e}") from e

    @staticmethod
    def _join(lines: List[str]) -> str:
        return "".join(line + "\n" for line in lines)
