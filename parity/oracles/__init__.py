from .types import ProgramSource, ExecutionStatus, ExecutionResult, Oracle
from .errors import (
    OracleInfrastructureError,
    BootstrapError,
    TranslatorUnavailableError,
    SandboxError,
    SandboxBusyError,
    TranslationError,
    ScriptError,
)
from .reference import ReferenceOracle, find_entry_point, invariant_locale
from .bootstrap import BootstrapCache, BootstrapEnvironment
from .translator import CommandTranslator
from .sandbox import ScriptSandbox, SandboxOutput
from .candidate import CandidateOracle, DEFAULT_SENTINEL

__all__ = [
    'ProgramSource',
    'ExecutionStatus',
    'ExecutionResult',
    'Oracle',
    'OracleInfrastructureError',
    'BootstrapError',
    'TranslatorUnavailableError',
    'SandboxError',
    'SandboxBusyError',
    'TranslationError',
    'ScriptError',
    'ReferenceOracle',
    'find_entry_point',
    'invariant_locale',
    'BootstrapCache',
    'BootstrapEnvironment',
    'CommandTranslator',
    'ScriptSandbox',
    'SandboxOutput',
    'CandidateOracle',
    'DEFAULT_SENTINEL',
]
