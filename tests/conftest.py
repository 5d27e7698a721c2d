"""Shared fixtures for dashboard tests."""

import pytest

from sprint_core.data import load_sample_data
from sprint_core.state import DashboardState


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def sample():
    return load_sample_data()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def dashboard(clock):
    return DashboardState(clock=clock)


def ticket_ids(df):
    return df["ticket_id"].tolist()
