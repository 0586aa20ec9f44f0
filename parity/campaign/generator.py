"""
Program generators: the campaign's source of test programs.

A generator maps an integer seed to a ProgramSource and must be a pure
function of that seed so every iteration is exactly replayable.
"""
from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from parity.oracles.types import ProgramSource

logger = logging.getLogger(__name__)


class GeneratorError(Exception):
    """Raised when a generator cannot produce a program for a seed."""


class ProgramGenerator(Protocol):
    def next_program(self, seed: int) -> ProgramSource:
        ...


class CommandGenerator:
    """Runs an external generator command and reads the program from stdout.

    ``{seed}`` in any argument is replaced by the seed.
    """

    def __init__(self, command: Sequence[str], timeout: float = 60.0, cwd: Optional[str] = None):
        if not command:
            raise GeneratorError("Generator command is empty")
        self.command = list(command)
        self.timeout = timeout
        self.cwd = cwd

    def next_program(self, seed: int) -> ProgramSource:
        argv = [arg.replace("{seed}", str(seed)) for arg in self.command]
        logger.debug("Generating program: %s", " ".join(argv))
        try:
            proc = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                cwd=self.cwd,
            )
        except FileNotFoundError as e:
            raise GeneratorError(f"Generator executable not found: {argv[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise GeneratorError(f"Generator timed out after {self.timeout}s for seed {seed}") from e

        if proc.returncode != 0:
            raise GeneratorError(
                f"Generator exited with code {proc.returncode} for seed {seed}: {proc.stderr.strip()}"
            )
        if not proc.stdout.strip():
            raise GeneratorError(f"Generator produced no program for seed {seed}")
        return ProgramSource(text=proc.stdout, origin=f"seed:{seed}")


class CorpusGenerator:
    """Serves programs from a directory of ``*.py`` files, chosen by seed."""

    def __init__(self, directory):
        self.directory = Path(directory)
        self._files: Optional[List[Path]] = None

    @property
    def files(self) -> List[Path]:
        if self._files is None:
            if not self.directory.is_dir():
                raise GeneratorError(f"Corpus directory not found: {self.directory}")
            self._files = sorted(self.directory.glob("*.py"))
        return self._files

    def next_program(self, seed: int) -> ProgramSource:
        files = self.files
        if not files:
            raise GeneratorError(f"Corpus directory has no .py files: {self.directory}")
        path = files[seed % len(files)]
        return ProgramSource(text=path.read_text(encoding="utf-8"), origin=str(path))
