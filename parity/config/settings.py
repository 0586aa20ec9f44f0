"""
Global configuration for Parity - settings for the campaign loop, both
oracles, the normalizer, the minimizer and the program generator.

Stored as TOML at <PARITY_HOME>/config.toml; every section is optional and
missing keys fall back to the dataclass defaults.
"""
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union, get_args, get_origin

import toml

from .paths import get_config_path, get_default_output_dir

logger = logging.getLogger(__name__)

VALID_POLICIES = ("kind", "status", "output")
VALID_GENERATORS = ("command", "corpus")


class InvalidSettingError(Exception):
    """Exception raised when a setting fails validation."""
    pass


@dataclass
class CampaignConfig:
    """Campaign loop settings; CLI flags override these."""
    minutes: float = 1.0
    output_dir: str = field(default_factory=lambda: str(get_default_output_dir()))
    master_seed: Optional[int] = None
    max_iterations: Optional[int] = None
    minimize: bool = True
    parallel_oracles: bool = False


@dataclass
class NormalizerConfig:
    drop_blank_lines: bool = True


@dataclass
class ReferenceConfig:
    """In-process reference execution."""
    entry_point: str = "Program.main"
    locale: str = "C"
    timeout: float = 30.0


@dataclass
class CandidateConfig:
    """Translate-then-run pipeline."""
    translator_command: List[str] = field(default_factory=lambda: [
        "transcrypt", "--build", "--nomin", "--outdir", "{outdir}", "{source}"
    ])
    version_command: Optional[List[str]] = None
    bootstrap_command: Optional[List[str]] = None
    runtime_prefixes: List[str] = field(default_factory=lambda: ["org.transcrypt"])
    output_glob: str = "**/*.js"
    translate_timeout: float = 120.0
    sandbox_command: List[str] = field(default_factory=lambda: ["node", "{driver}"])
    sentinel: str = "Program End"
    timeout: float = 30.0
    cache_dir: Optional[str] = None
    artifact_marker: Optional[str] = None


@dataclass
class MinimizerConfig:
    max_passes: int = 50
    policy: str = "kind"
    chase_both_errored: bool = False
    cache_trials: bool = True
    statement_denylist: List[str] = field(default_factory=lambda: [
        "Return", "Break", "Continue", "Pass"
    ])


@dataclass
class GeneratorConfig:
    """External program generator (``command``) or a directory of programs (``corpus``)."""
    kind: str = "command"
    command: List[str] = field(default_factory=list)
    corpus_dir: Optional[str] = None
    timeout: float = 60.0


_SECTIONS = {
    'campaign': CampaignConfig,
    'normalizer': NormalizerConfig,
    'reference': ReferenceConfig,
    'candidate': CandidateConfig,
    'minimizer': MinimizerConfig,
    'generator': GeneratorConfig,
}


def _section_from_dict(section_cls, name: str, data: Dict[str, Any]):
    if not isinstance(data, dict):
        raise InvalidSettingError(f"[{name}] must be a table, got {type(data).__name__}")
    known = {f.name for f in fields(section_cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning("Ignoring unknown keys in [%s]: %s", name, ", ".join(unknown))
    values = {}
    for f in fields(section_cls):
        if f.name in data:
            values[f.name] = _coerce(f.type, data[f.name], f"{name}.{f.name}")
    return section_cls(**values)


def _coerce(annotation, value, key: str):
    """Check a TOML value against the field annotation; ints widen to floats."""
    if get_origin(annotation) is Union:
        annotation = next(arg for arg in get_args(annotation) if arg is not type(None))
    if get_origin(annotation) is list:
        if isinstance(value, list) and all(isinstance(item, str) for item in value):
            return list(value)
    elif annotation is float:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    elif annotation is int:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    elif isinstance(value, annotation):
        return value
    raise InvalidSettingError(f"{key} has the wrong type: {value!r}")


def _strip_none(value):
    # TOML has no null; absent keys fall back to defaults on load
    if isinstance(value, dict):
        return {k: _strip_none(v) for k, v in value.items() if v is not None}
    return value


@dataclass
class GlobalConfig:
    """Global Parity configuration."""
    verbose: bool = False
    campaign: CampaignConfig = field(default_factory=CampaignConfig)
    normalizer: NormalizerConfig = field(default_factory=NormalizerConfig)
    reference: ReferenceConfig = field(default_factory=ReferenceConfig)
    candidate: CandidateConfig = field(default_factory=CandidateConfig)
    minimizer: MinimizerConfig = field(default_factory=MinimizerConfig)
    generator: GeneratorConfig = field(default_factory=GeneratorConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> 'GlobalConfig':
        """Load configuration from file.

        A missing file yields the defaults; an unreadable or malformed file is
        reported and also yields the defaults. Invalid values raise
        InvalidSettingError.
        """
        if config_path is None:
            config_path = get_config_path()
        config_path = Path(config_path)

        if not config_path.exists():
            return cls()

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                data = toml.load(f)
        except (OSError, toml.TomlDecodeError) as e:
            logger.warning("Could not load config from %s: %s", config_path, e)
            return cls()
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> 'GlobalConfig':
        """Create GlobalConfig from dictionary data."""
        sections = {
            name: _section_from_dict(section_cls, name, data.get(name, {}))
            for name, section_cls in _SECTIONS.items()
        }
        verbose = _coerce(bool, data.get('parity', {}).get('verbose', False), 'parity.verbose')
        config = cls(verbose=verbose, **sections)
        config.validate()
        return config

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'parity': {'verbose': self.verbose}}
        for name in _SECTIONS:
            data[name] = asdict(getattr(self, name))
        return _strip_none(data)

    def validate(self) -> None:
        if self.campaign.minutes <= 0:
            raise InvalidSettingError("campaign.minutes must be positive")
        if self.campaign.max_iterations is not None and self.campaign.max_iterations < 1:
            raise InvalidSettingError("campaign.max_iterations must be at least 1")
        if self.minimizer.max_passes < 1:
            raise InvalidSettingError("minimizer.max_passes must be at least 1")
        if self.minimizer.policy not in VALID_POLICIES:
            raise InvalidSettingError(
                f"minimizer.policy must be one of {', '.join(VALID_POLICIES)}, got {self.minimizer.policy!r}"
            )
        if self.candidate.timeout <= 0 or self.candidate.translate_timeout <= 0:
            raise InvalidSettingError("candidate timeouts must be positive")
        if self.reference.timeout <= 0:
            raise InvalidSettingError("reference.timeout must be positive")
        if not self.candidate.sentinel.strip():
            raise InvalidSettingError("candidate.sentinel must not be blank")
        if not self.candidate.translator_command:
            raise InvalidSettingError("candidate.translator_command must not be empty")
        if self.generator.kind not in VALID_GENERATORS:
            raise InvalidSettingError(
                f"generator.kind must be one of {', '.join(VALID_GENERATORS)}, got {self.generator.kind!r}"
            )
        entry = self.reference.entry_point.split('.')
        if not 1 <= len(entry) <= 2 or not all(part.isidentifier() for part in entry):
            raise InvalidSettingError(
                f"reference.entry_point must be 'func' or 'Class.method', got {self.reference.entry_point!r}"
            )

    def save(self, config_path: Optional[Path] = None) -> bool:
        """Save configuration to file."""
        if config_path is None:
            config_path = get_config_path()
        config_path = Path(config_path)

        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(config_path, 'w', encoding='utf-8') as f:
                toml.dump(self.to_dict(), f)
            return True
        except OSError as e:
            logger.error("Error saving config to %s: %s", config_path, e)
            return False


# Global configuration instance
_global_config = None


def get_config() -> GlobalConfig:
    """Get the global configuration instance."""
    global _global_config
    if _global_config is None:
        _global_config = GlobalConfig.load()
    return _global_config


def set_config(config: Optional[GlobalConfig]) -> None:
    """Set the global configuration instance (None forces a reload)."""
    global _global_config
    _global_config = config
