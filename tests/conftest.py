"""
Pytest configuration file for the sort adapter tests.

This file ensures that the parent directory is in the Python path
so that test files can import sortby, lazy, models and utils.
"""

import sys
from pathlib import Path

# Add the parent directory to the Python path
parent_dir = Path(__file__).parent.parent
if str(parent_dir) not in sys.path:
    sys.path.insert(0, str(parent_dir))

import pytest

from utils import clear_performance_metrics


@pytest.fixture(autouse=True)
def reset_performance_metrics():
    """Each test starts with an empty metrics registry"""
    clear_performance_metrics()
    yield
    clear_performance_metrics()


@pytest.fixture
def people():
    """(age, name) rows used across the ordering tests"""
    return [(18, "Rich"), (9, "Bob"), (21, "Marc"), (18, "Alice")]
