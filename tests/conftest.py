"""Test configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from unlsim import Sim, build_byzantine_topology  # noqa: E402


@pytest.fixture
def sim():
    """Fresh seeded simulation."""
    s = Sim(seed=1234)
    yield s
    s.close()


@pytest.fixture
def topology(sim):
    """Small mixed topology: 20 peers, 4 Byzantine, overlap 0.5."""
    return build_byzantine_topology(sim, 20, 4, 0.5)
