"""
Parity - differential testing for source-to-target translators

This package runs generated programs through a trusted reference runtime and
through a translate-then-run candidate pipeline, compares what they print, and
shrinks every divergent program to a small reproduction.
"""

__version__ = "0.4.0"


def main(*args, **kwargs):
    """Lazy import to avoid CLI startup side effects during help paths."""
    from .main import main as _main

    return _main(*args, **kwargs)


__all__ = ["main", "__version__"]
