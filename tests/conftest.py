"""Shared fixtures for reqid tests."""

from __future__ import annotations

import pytest

from reqid import Generator, default_generator_config


@pytest.fixture
def default_generator() -> Generator:
    return default_generator_config().build()
