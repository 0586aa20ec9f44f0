import os
from pathlib import Path

import pytest
from hypothesis import Phase, Verbosity, settings

from parity.config import set_config

# Register Hypothesis profiles
settings.register_profile(
    "ci",
    max_examples=500,
    deadline=None,
    print_blob=True,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
)

settings.register_profile(
    "dev",
    max_examples=100,
    deadline=None,
    print_blob=True,
)

settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)

settings.load_profile(os.environ.get("PARITY_HYPOTHESIS_PROFILE", "dev"))

FIXTURES_DIR = Path(__file__).resolve().parent / "fixtures"


@pytest.fixture(autouse=True)
def isolate_parity_home(tmp_path, monkeypatch):
    """Point PARITY_HOME at a per-test directory and drop the cached global config."""
    home = tmp_path / "parity_home"
    home.mkdir()
    monkeypatch.setenv("PARITY_HOME", str(home))
    set_config(None)
    yield home
    set_config(None)


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES_DIR
