"""Shared fixtures."""

import pytest

from shapeguard.config import get_settings


@pytest.fixture(autouse=True)
def fresh_settings():
    """Settings are lru_cached; drop the cache around every test so env overrides apply."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def tree_pattern():
    from shapeguard import SELF, number
    return {"left": [number, SELF], "right": [number, SELF]}
