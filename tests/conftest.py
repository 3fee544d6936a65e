import pytest

from withdrawals import MemoryStore, MonotonicUlid, Policy, WithdrawalService

from tests.helpers import NOW


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def id_source():
    return MonotonicUlid()


@pytest.fixture
def service(store, id_source):
    return WithdrawalService(store, id_source, Policy(), clock=lambda: NOW)
