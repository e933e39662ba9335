"""Shared fixtures for the test suite."""

import logging

import pytest

from shared.clients.index.memory.IndexStoreMemory import IndexStoreMemory
from shared.helper.HelperConfig import HelperConfig
from shared.helper.UserLockRegistry import UserLockRegistry
from shared.logging.logging_setup import ColorLogger
from tests.helpers import FakeEmbedClient


@pytest.fixture
def helper_config() -> HelperConfig:
    return HelperConfig(logger=ColorLogger(logging.getLogger("test")))


@pytest.fixture
def index_store(helper_config) -> IndexStoreMemory:
    return IndexStoreMemory(helper_config=helper_config)


@pytest.fixture
def lock_registry() -> UserLockRegistry:
    return UserLockRegistry()


@pytest.fixture
def embed_client() -> FakeEmbedClient:
    return FakeEmbedClient()
