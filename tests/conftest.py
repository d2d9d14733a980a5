"""
Shared fixtures for the repository tests.
"""
import pytest

from fakes import PRIMARY_URL, REPLICA_URL, FakeClientFactory
from mongo_repository.config import MongoDbOptions
from mongo_repository.database.index_registry import IndexBuildRegistry, index_registry
from mongo_repository.metadata.resolver import clear_descriptor_cache


@pytest.fixture(autouse=True)
def reset_repository_state():
    index_registry.reset()
    clear_descriptor_cache()
    yield
    index_registry.reset()
    clear_descriptor_cache()


@pytest.fixture
def client_factory():
    return FakeClientFactory()


@pytest.fixture
def mongo_options():
    return MongoDbOptions(read_write_connection=PRIMARY_URL, read_only_connection=REPLICA_URL)


@pytest.fixture
def registry():
    return IndexBuildRegistry()
