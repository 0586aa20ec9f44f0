"""Output canonicalization used as the comparison key between oracles."""

import re
from typing import Iterable

_NEWLINE = re.compile(r"\r\n|\r|\n")


class NormalizedOutput(tuple):
    """Canonical, ordered lines of program output."""

    def __new__(cls, lines: Iterable[str] = ()):
        return super().__new__(cls, lines)

    @property
    def text(self) -> str:
        return "\n".join(self)

    def __repr__(self) -> str:
        return f"NormalizedOutput({list(self)!r})"


class OutputNormalizer:
    """Trim the text, split on any newline convention, right-trim every line
    and optionally drop blank lines.

    Only literal CR/LF sequences split lines, and no locale-dependent
    operation is involved, so the result is the same on every host.
    Normalizing an already-normalized text returns it unchanged.
    """

    def __init__(self, drop_blank_lines: bool = True):
        self.drop_blank_lines = drop_blank_lines

    def normalize(self, text) -> NormalizedOutput:
        if isinstance(text, NormalizedOutput):
            text = text.text
        stripped = text.strip() if text else ""
        if not stripped:
            return NormalizedOutput()
        lines = [line.rstrip() for line in _NEWLINE.split(stripped)]
        if self.drop_blank_lines:
            lines = [line for line in lines if line]
        return NormalizedOutput(lines)

    __call__ = normalize


def normalize(text, drop_blank_lines: bool = True) -> NormalizedOutput:
    return OutputNormalizer(drop_blank_lines).normalize(text)
