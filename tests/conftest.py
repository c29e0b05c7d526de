"""Global pytest configuration and fixtures.

Marks everything under tests/integration so it can be deselected with
``-m "not integration"``.
"""

from __future__ import annotations

from pathlib import Path

import pytest

INTEGRATION_DIR = Path(__file__).parent / "integration"


def pytest_collection_modifyitems(items):
    """Tag integration tests by location."""
    for item in items:
        if INTEGRATION_DIR in item.path.parents:
            item.add_marker(pytest.mark.integration)
