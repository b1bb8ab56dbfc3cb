from datetime import datetime, timezone

import pytest


@pytest.fixture
def fixed_now():
    """A pinned mid-month instant."""
    return datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(fixed_now):
    """Clock returning ``fixed_now`` for services that take one."""
    return lambda: fixed_now
