class OracleInfrastructureError(Exception):
    """Base exception for faults in an oracle's own machinery.

    Never raised because of what the program under test does.
    """


class BootstrapError(OracleInfrastructureError):
    """Raised when translator dependencies cannot be resolved."""


class TranslatorUnavailableError(OracleInfrastructureError):
    """Raised when the translator executable cannot be found or queried."""


class SandboxError(OracleInfrastructureError):
    """Raised when the execution sandbox cannot start or dies mid-run."""


class SandboxBusyError(SandboxError):
    """Raised when a sandbox already has an active evaluation context."""


class TranslationError(Exception):
    """Raised when the translator rejects a program."""


class ScriptError(Exception):
    """Raised when a translated program faults inside the sandbox."""

    def __init__(self, message: str, captured_text: str = ""):
        super().__init__(message)
        self.message = message
        self.captured_text = captured_text
