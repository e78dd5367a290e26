"""WebSocket transport built on the ``websockets`` asyncio client."""

from __future__ import annotations

import asyncio
import contextlib

import websockets
from websockets import ClientConnection
from websockets.exceptions import ConnectionClosed, ConnectionClosedError, WebSocketException

from acp_chat.logging import TRACE, get_logger
from acp_chat.transport.base import (
    FrameReceived,
    TransportClosed,
    TransportError,
    TransportErrored,
    TransportEvent,
    TransportListener,
    TransportOpened,
    TransportState,
)

log = get_logger("transport")


class WebSocketTransport:
    """One client WebSocket driven by a background task on the running loop.

    ``send`` never awaits: frames go to an outbox drained by a writer task, the
    same way a browser socket buffers frames it has accepted. ``close`` lets
    the writer flush that outbox before the close handshake.
    """

    def __init__(
        self,
        url: str,
        open_timeout: float = 10.0,
        max_size: int | None = 16 * 1024 * 1024,
        close_timeout: float = 5.0,
    ) -> None:
        self.url = url
        self.open_timeout = open_timeout
        self.max_size = max_size
        self.close_timeout = close_timeout
        self._state = TransportState.CONNECTING
        self._listener: TransportListener | None = None
        self._task: asyncio.Task[None] | None = None
        self._outbox: asyncio.Queue[str | None] = asyncio.Queue()

    @property
    def state(self) -> TransportState:
        return self._state

    def open(self, listener: TransportListener) -> None:
        if self._listener is not None:
            raise TransportError("transport already opened")
        self._listener = listener
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"ws:{self.url}"
        )
        self._task.add_done_callback(self._on_task_done)

    def send(self, data: str) -> None:
        if self._state is not TransportState.OPEN:
            raise TransportError(f"transport is {self._state.name.lower()}")
        self._outbox.put_nowait(data)

    def close(self) -> None:
        if self._state >= TransportState.CLOSING:
            return

        if self._state is TransportState.CONNECTING:
            self._state = TransportState.CLOSING
            if self._task is not None:
                self._task.cancel()
            else:
                self._state = TransportState.CLOSED
            return

        self._state = TransportState.CLOSING
        self._outbox.put_nowait(None)

    def _emit(self, event: TransportEvent) -> None:
        if self._listener is None:
            return
        try:
            self._listener(event)
        except Exception:
            log.exception("Transport listener failed on %s", type(event).__name__)

    async def _run(self) -> None:
        code: int | None = None
        reason = ""
        try:
            async with websockets.connect(
                self.url,
                open_timeout=self.open_timeout,
                close_timeout=self.close_timeout,
                max_size=self.max_size,
            ) as ws:
                self._state = TransportState.OPEN
                log.debug("Connected to %s", self.url)
                self._emit(TransportOpened())

                writer = asyncio.create_task(self._write_loop(ws))
                try:
                    async for message in ws:
                        if isinstance(message, bytes):
                            message = message.decode("utf-8", errors="replace")
                        log.log(TRACE, "<- %s", message)
                        self._emit(FrameReceived(message))
                except ConnectionClosedError as exc:
                    # No close frame from the peer means the connection was lost
                    if exc.rcvd is None:
                        log.info("Connection to %s lost: %s", self.url, exc)
                        self._emit(TransportErrored(str(exc)))
                finally:
                    writer.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await writer

                code = ws.close_code
                reason = ws.close_reason or ""

        except (OSError, asyncio.TimeoutError, WebSocketException) as exc:
            log.info("Connection to %s failed: %s", self.url, exc)
            self._emit(TransportErrored(str(exc)))
        finally:
            self._state = TransportState.CLOSED
            log.debug("Closed %s (code=%s)", self.url, code)
            self._emit(TransportClosed(code=code, reason=reason))

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        if not task.cancelled():
            exc = task.exception()
            if exc is not None:
                log.error("Transport task for %s crashed", self.url, exc_info=exc)

        # A task cancelled before it ever ran skips _run's cleanup
        if self._state is not TransportState.CLOSED:
            self._state = TransportState.CLOSED
            self._emit(TransportClosed())

    async def _write_loop(self, ws: ClientConnection) -> None:
        while True:
            data = await self._outbox.get()
            if data is None:
                await ws.close()
                return
            try:
                await ws.send(data)
            except ConnectionClosed:
                # The reader sees the same closure and reports it
                log.debug("Dropped frame to %s: connection closed", self.url)
                return
            log.log(TRACE, "-> %s", data)
