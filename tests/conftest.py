"""Root pytest configuration for all tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from acp_chat.client import ChatClient
from acp_chat.logging import reset_logging
from acp_chat.state.storage import MemoryBlobStore
from tests.utils import FakeTransportFactory, make_client

pytest_plugins = ("pytest_asyncio",)


@pytest.fixture
def factory() -> FakeTransportFactory:
    """Fake transport factory for the client under test."""
    return FakeTransportFactory()


@pytest.fixture
def blobs() -> MemoryBlobStore:
    """In-memory blob store standing in for durable storage."""
    return MemoryBlobStore()


@pytest.fixture
def client(factory: FakeTransportFactory, blobs: MemoryBlobStore) -> ChatClient:
    """ChatClient wired to fake transports."""
    return make_client(factory, blobs)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep ACP_CHAT_* variables from the developer's shell out of tests."""
    for var in ("ACP_CHAT_URL", "ACP_CHAT_TOKEN", "ACP_CHAT_DATA", "ACP_CHAT_LOG"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """Undo handlers a CLI run attached to the ``acp_chat`` logger."""
    yield
    reset_logging()
