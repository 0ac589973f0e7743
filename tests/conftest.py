"""Pytest configuration and shared fixtures."""

import pytest

# Import all fixtures from fixture modules
pytest_plugins = [
    "tests.fixtures.clock",
    "tests.fixtures.store",
]
