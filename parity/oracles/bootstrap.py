"""Per-process cache of resolved translator dependencies, keyed by translator version."""

from __future__ import annotations

import hashlib
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional, Union

from .errors import BootstrapError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BootstrapEnvironment:
    """Resolved dependencies for one translator version."""

    version: str
    path: Optional[Path] = None


Bootstrapper = Callable[[str, Path], BootstrapEnvironment]


def version_digest(version: str) -> str:
    return hashlib.sha256(version.encode("utf-8")).hexdigest()[:16]


class BootstrapCache:
    """Explicit cache object handed to the candidate oracle.

    The cache only saves time: a lookup for a version that differs from the
    cached one drops the stale entries and bootstraps again.
    """

    def __init__(self, base_dir: Union[Path, str]):
        self.base_dir = Path(base_dir)
        self._entries: Dict[str, BootstrapEnvironment] = {}
        self._lock = threading.Lock()
        self.resolutions = 0

    def resolve(self, version: str, bootstrapper: Bootstrapper) -> BootstrapEnvironment:
        with self._lock:
            cached = self._entries.get(version)
            if cached is not None:
                return cached

            stale = [v for v in self._entries if v != version]
            for old in stale:
                logger.info("Translator version changed (%s -> %s); dropping bootstrap cache", old, version)
                del self._entries[old]

            target = self.base_dir / version_digest(version)
            try:
                target.mkdir(parents=True, exist_ok=True)
                environment = bootstrapper(version, target)
            except BootstrapError:
                raise
            except Exception as e:
                raise BootstrapError(f"Failed to bootstrap translator {version}: {e}") from e

            self._entries[version] = environment
            self.resolutions += 1
            logger.info("Bootstrapped translator %s into %s", version, target)
            return environment

    def invalidate(self, version: Optional[str] = None) -> None:
        with self._lock:
            if version is None:
                self._entries.clear()
            else:
                self._entries.pop(version, None)

    def __contains__(self, version: str) -> bool:
        return version in self._entries
