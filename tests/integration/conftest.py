"""Shared fixtures for integration tests.

These hit live NCBI endpoints and are skipped unless
``LIT_PULSE_INTEGRATION=1`` is set.
"""

import os

import pytest


def pytest_collection_modifyitems(config, items):
    if os.getenv("LIT_PULSE_INTEGRATION") == "1":
        return
    skip_live = pytest.mark.skip(reason="set LIT_PULSE_INTEGRATION=1 to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_live)
