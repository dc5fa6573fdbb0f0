import pytest

from domain.sale import CURRENT_PERCENT_FULL_SCALE, LEGACY_PERCENT_FULL_SCALE
from tests.helpers.fake_ledger import FakeSaleLedger


@pytest.fixture(scope="function")
def current_ledger() -> FakeSaleLedger:
    percent = CURRENT_PERCENT_FULL_SCALE // 100
    return FakeSaleLedger(version="3.0", schedule=[30 * percent, 30 * percent, 40 * percent])


@pytest.fixture(scope="function")
def legacy_ledger() -> FakeSaleLedger:
    percent = LEGACY_PERCENT_FULL_SCALE // 100
    return FakeSaleLedger(version=None, schedule=[30 * percent, 30 * percent, 40 * percent])
