import pytest

from tests.helpers import EnergyOracle, RecordingSink


@pytest.fixture
def oracle():
    return EnergyOracle()


@pytest.fixture
def sink():
    return RecordingSink()
