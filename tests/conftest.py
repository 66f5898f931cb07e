"""Shared test fixtures for pd-onboard tests."""

from __future__ import annotations

import pytest

from helpers import CountingIds


@pytest.fixture
def ids():
    """Deterministic row-id factory: row-1, row-2, ..."""
    return CountingIds()
