"""Shared fixtures."""

import pytest

from helpers import FakeTransport


@pytest.fixture
def transport():
    return FakeTransport()
