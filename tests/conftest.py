"""
Pytest Configuration and Fixtures
==================================

Shared test configuration and fixtures for all test modules.
Handles path setup for importing src modules.

Author: Dual-Quaternion Arm Project Team
License: MIT
"""

import sys
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import pytest
import numpy as np


# =============================================================================
# Global Fixtures
# =============================================================================

@pytest.fixture(scope="session")
def random_seed():
    """Set random seed for reproducibility."""
    np.random.seed(42)
    return 42


@pytest.fixture(scope="session")
def project_root_path():
    """Get project root path."""
    return project_root


@pytest.fixture
def rng(random_seed):
    """Seeded random generator."""
    return np.random.default_rng(random_seed)


# =============================================================================
# Markers
# =============================================================================

def pytest_configure(config):
    """Add custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "threaded: marks tests using the background run loop")
