import pytest

from steps_config import Settings
from steps_storage import MemorySnapshotStorage
from steps_tracker import StepsTracker


@pytest.fixture
def settings():
    return Settings(
        roster=["A", "B"],
        target_steps=10000,
        penalty_amount=50,
        currency="₱",
        storage="memory",
    )


@pytest.fixture
def storage():
    return MemorySnapshotStorage()


@pytest.fixture
def tracker(settings, storage):
    return StepsTracker(settings, storage)
