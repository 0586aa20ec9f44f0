"""
Command-line translator adapter.

Runs an external source-to-target translator and folds its output files into a
single artifact the sandbox can evaluate.
"""
import logging
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from .bootstrap import BootstrapEnvironment
from .errors import BootstrapError, TranslationError, TranslatorUnavailableError
from .types import ProgramSource

logger = logging.getLogger(__name__)

FILE_BANNER = "// File: {name}"


def _expand(template: Sequence[str], values: Dict[str, str]) -> List[str]:
    expanded = []
    for part in template:
        for key, value in values.items():
            part = part.replace("{" + key + "}", value)
        expanded.append(part)
    return expanded


class CommandTranslator:
    """Adapter around an external translator executable.

    The command template may reference ``{source}`` (the program file),
    ``{outdir}`` (where outputs must land) and ``{deps}`` (the bootstrapped
    dependency directory, empty when there is none).
    """

    def __init__(self,
                 command: Sequence[str],
                 version_command: Optional[Sequence[str]] = None,
                 bootstrap_command: Optional[Sequence[str]] = None,
                 source_name: str = "program.py",
                 output_glob: str = "**/*.js",
                 runtime_prefixes: Sequence[str] = (),
                 timeout: float = 120.0):
        if not command:
            raise ValueError("Translator command must not be empty")
        self.command = list(command)
        self.version_command = list(version_command) if version_command else None
        self.bootstrap_command = list(bootstrap_command) if bootstrap_command else None
        self.source_name = source_name
        self.output_glob = output_glob
        self.runtime_prefixes = tuple(runtime_prefixes)
        self.timeout = timeout
        self._version_cache: Optional[Tuple[Tuple[int, int], str]] = None

    # -- version -----------------------------------------------------------

    def _executable_fingerprint(self) -> Tuple[int, int]:
        executable = shutil.which(self.command[0])
        if executable is None:
            raise TranslatorUnavailableError(f"Translator executable not found: {self.command[0]}")
        stat = os.stat(executable)
        return (stat.st_mtime_ns, stat.st_size)

    def version(self) -> str:
        """Return the translator version, re-queried whenever the executable changes."""
        fingerprint = self._executable_fingerprint()
        if self._version_cache is not None and self._version_cache[0] == fingerprint:
            return self._version_cache[1]

        if self.version_command is None:
            version = f"{self.command[0]}@{fingerprint[0]}:{fingerprint[1]}"
        else:
            try:
                result = subprocess.run(self.version_command, capture_output=True, text=True, timeout=30)
            except (OSError, subprocess.TimeoutExpired) as e:
                raise TranslatorUnavailableError(f"Cannot query translator version: {e}") from e
            if result.returncode != 0:
                raise TranslatorUnavailableError(
                    f"Translator version command failed with exit code {result.returncode}: {result.stderr.strip()}"
                )
            version = result.stdout.strip() or "unknown"

        self._version_cache = (fingerprint, version)
        logger.debug("translator version: %s", version)
        return version

    # -- bootstrap ---------------------------------------------------------

    def bootstrap(self, version: str, target: Path) -> BootstrapEnvironment:
        """Install translator dependencies into ``target`` (used via BootstrapCache)."""
        if self.bootstrap_command is None:
            return BootstrapEnvironment(version=version, path=None)

        argv = _expand(self.bootstrap_command, {"deps": str(target), "version": version})
        logger.info("Bootstrapping translator dependencies: %s", " ".join(argv))
        try:
            result = subprocess.run(argv, cwd=target, capture_output=True, text=True, timeout=600)
        except (OSError, subprocess.TimeoutExpired) as e:
            raise BootstrapError(f"Bootstrap command could not run: {e}") from e
        if result.returncode != 0:
            raise BootstrapError(
                f"Bootstrap command failed with exit code {result.returncode}: {result.stderr.strip()}"
            )
        return BootstrapEnvironment(version=version, path=target)

    # -- translate ---------------------------------------------------------

    def translate(self, source: ProgramSource, environment: Optional[BootstrapEnvironment] = None) -> str:
        """Translate a program, returning the combined artifact text.

        Raises:
            TranslationError: the translator rejected the program
            TranslatorUnavailableError: the translator could not be started
        """
        with tempfile.TemporaryDirectory(prefix="parity_translate_") as workdir:
            work = Path(workdir)
            source_path = work / self.source_name
            outdir = work / "out"
            outdir.mkdir()
            source_path.write_text(source.text, encoding="utf-8")

            deps = str(environment.path) if environment is not None and environment.path else ""
            argv = _expand(self.command, {"source": str(source_path), "outdir": str(outdir), "deps": deps})

            try:
                result = subprocess.run(argv, cwd=work, capture_output=True, text=True, timeout=self.timeout)
            except FileNotFoundError as e:
                raise TranslatorUnavailableError(f"Translator executable not found: {argv[0]}") from e
            except subprocess.TimeoutExpired as e:
                raise TranslationError(f"Translator timed out after {self.timeout}s") from e

            if result.returncode != 0:
                message = (result.stderr or result.stdout).strip()
                raise TranslationError(f"Translator exited with code {result.returncode}:\n{message}")

            return self._collect(outdir)

    def _collect(self, outdir: Path) -> str:
        outputs = [p for p in outdir.glob(self.output_glob) if p.is_file()]
        preferred = [p for p in outputs if not p.name.endswith(".min.js")]
        if preferred:
            outputs = preferred
        if not outputs:
            raise TranslationError("Translator produced no output")

        def order(path: Path):
            name = path.name.lower()
            for rank, prefix in enumerate(self.runtime_prefixes):
                if name.startswith(prefix.lower()):
                    return (rank, name)
            return (len(self.runtime_prefixes), str(path.relative_to(outdir)))

        parts = []
        for path in sorted(outputs, key=order):
            parts.append(FILE_BANNER.format(name=path.relative_to(outdir).as_posix()))
            parts.append(path.read_text(encoding="utf-8"))
            parts.append("")
        return "\n".join(parts)
