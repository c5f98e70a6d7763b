from datetime import datetime, timedelta, timezone
import pytest
from pawnvault.lib.registry import VaultRegistry


class FakeClock:
    """Returns strictly increasing timestamps, one second apart."""

    def __init__(self, start=datetime(2024, 1, 1, tzinfo=timezone.utc), step=timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self):
        self.now += self.step
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry(tmp_path, clock):
    return VaultRegistry(tmp_path, clock=clock)
