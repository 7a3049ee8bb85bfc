"""Shared fixtures."""

import pytest

from helpers import FakeDynmap


@pytest.fixture
def server() -> FakeDynmap:
    return FakeDynmap()
