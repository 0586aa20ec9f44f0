"""Path resolution utilities for Parity.

Provides centralized path resolution with environment variable overrides for testing.
"""

import os
from pathlib import Path


def get_parity_home() -> Path:
    """Get the Parity home directory, respecting PARITY_HOME override.

    Returns:
        Path to the home directory (defaults to ~/.parity)

    Environment Variables:
        PARITY_HOME: Override for the home directory (useful for testing)
    """
    home = os.environ.get('PARITY_HOME')
    if home:
        return Path(home).expanduser()
    return Path.home() / ".parity"


def get_config_path() -> Path:
    """Get the default configuration file path."""
    return get_parity_home() / "config.toml"


def get_bootstrap_cache_dir() -> Path:
    """Get the directory holding translator bootstrap environments."""
    return get_parity_home() / "bootstrap"


def get_default_output_dir() -> Path:
    """Get the default failure output directory.

    Returns:
        Path to ./failures relative to the current working directory
    """
    return Path("failures")
