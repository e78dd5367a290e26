"""Shared test utilities for acp-chat tests."""

from __future__ import annotations

import json
from typing import Any

from acp_chat.client import ChatClient
from acp_chat.state.models import Session
from acp_chat.state.storage import MemoryBlobStore
from acp_chat.transport.base import (
    FrameReceived,
    TransportClosed,
    TransportError,
    TransportErrored,
    TransportListener,
    TransportOpened,
    TransportState,
)


class FakeTransport:
    """In-memory transport driven explicitly by the test.

    ``close()`` only records the call; use ``finish_close()`` or ``drop()`` to
    deliver the closed event the way a real socket would later on.
    """

    def __init__(self, url: str) -> None:
        self.url = url
        self._state = TransportState.CONNECTING
        self.listener: TransportListener | None = None
        self.sent: list[str] = []
        self.close_calls = 0

    @property
    def state(self) -> TransportState:
        return self._state

    def open(self, listener: TransportListener) -> None:
        self.listener = listener

    def send(self, data: str) -> None:
        if self._state is not TransportState.OPEN:
            raise TransportError(f"transport is {self._state.name.lower()}")
        self.sent.append(data)

    def close(self) -> None:
        self.close_calls += 1
        if self._state < TransportState.CLOSING:
            self._state = TransportState.CLOSING

    # Test drivers

    def accept(self) -> None:
        self._state = TransportState.OPEN
        self._emit(TransportOpened())

    def receive(self, frame: dict[str, Any] | str) -> None:
        data = frame if isinstance(frame, str) else json.dumps(frame)
        self._emit(FrameReceived(data))

    def fail(self, error: str = "connection reset") -> None:
        self._emit(TransportErrored(error))

    def finish_close(self, code: int = 1000) -> None:
        self._state = TransportState.CLOSED
        self._emit(TransportClosed(code=code))

    def drop(self) -> None:
        self.fail()
        self.finish_close(code=1006)

    def frames(self) -> list[dict[str, Any]]:
        return [json.loads(data) for data in self.sent]

    def frame_types(self) -> list[str]:
        return [frame["type"] for frame in self.frames()]

    def _emit(self, event: Any) -> None:
        assert self.listener is not None, "transport was never opened"
        self.listener(event)


class FakeTransportFactory:
    """Transport factory remembering every transport it built."""

    def __init__(self) -> None:
        self.created: list[FakeTransport] = []

    def __call__(self, url: str) -> FakeTransport:
        transport = FakeTransport(url)
        self.created.append(transport)
        return transport

    @property
    def last(self) -> FakeTransport:
        return self.created[-1]


def make_client(
    factory: FakeTransportFactory | None = None,
    storage: MemoryBlobStore | None = None,
    **kwargs: Any,
) -> ChatClient:
    """Build a ChatClient wired to fake transports and in-memory storage."""
    return ChatClient(
        storage=storage if storage is not None else MemoryBlobStore(),
        transport_factory=factory or FakeTransportFactory(),
        **kwargs,
    )


def connect_session(
    client: ChatClient,
    factory: FakeTransportFactory,
    remote_session_id: str = "remote-1",
    agent: dict[str, Any] | None = None,
) -> tuple[Session, FakeTransport]:
    """Create a session and drive it through the full handshake."""
    session = client.new_session(endpoint="ws://agent.test/ws")
    transport = factory.last
    transport.accept()
    transport.receive({
        "type": "status",
        "payload": {"connected": True, "agentInfo": agent or {"name": "claude", "version": "1.0"}},
    })
    transport.receive({"type": "session_created", "payload": {"sessionId": remote_session_id}})
    return session, transport


def updates(*items: dict[str, Any]) -> dict[str, Any]:
    """Build a session_update frame."""
    return {"type": "session_update", "payload": {"sessionId": "remote-1", "updates": list(items)}}


def delta(text: str) -> dict[str, Any]:
    return {"type": "text_delta", "delta": text}


THINKING = {"type": "thinking_start"}
PROMPT_COMPLETE = {"type": "prompt_complete"}
