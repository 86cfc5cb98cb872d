"""Framed transport dispatcher: decodes incoming frames, calls a service and writes replies in order."""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Protocol, Set

from .errors import PeerDisconnectedError
from .ordering import ResponseQueue

_READ_SIZE = 64 * 1024


class Codec(Protocol):
    """Frame codec used by the dispatcher."""

    def decode(self, buffer: bytearray) -> Any:
        """Consume one frame from ``buffer`` and return it, or None if more data is needed."""

    def encode(self, item: Any) -> bytes:
        """Serialise one outgoing frame."""


class DispatchKind(Enum):
    """What a dispatched item carries."""

    ITEM = "item"
    KEEPALIVE_TIMEOUT = "keepalive_timeout"
    ENCODER_ERROR = "encoder_error"
    DECODER_ERROR = "decoder_error"
    IO_ERROR = "io_error"


@dataclass(frozen=True)
class DispatchItem:
    """A decoded frame or a connection event handed to the service."""

    kind: DispatchKind
    value: Any = None


class IoState:
    """Shared connection state: the outgoing buffer and the stop flags."""

    def __init__(self) -> None:
        self._buffer = bytearray()
        self._stop_requested = False
        self._io_shutdown = False
        self._wakeup = asyncio.Event()
        self._stopped = asyncio.Event()

    def write_item(self, item: Any, codec: Codec) -> None:
        """Encode ``item`` into the outgoing buffer.

        Raises PeerDisconnectedError once the connection's write side is shut down;
        errors from the codec propagate unchanged.
        """
        if self._io_shutdown:
            raise PeerDisconnectedError()
        self._buffer += codec.encode(item)
        self._wakeup.set()

    def close(self) -> None:
        """Ask the dispatcher to stop; pending replies are still written."""
        self._stop_requested = True
        self._request_stop()

    def is_closed(self) -> bool:
        """True once the dispatcher has been told to stop."""
        return self._stop_requested or self._stopped.is_set()

    def _request_stop(self) -> None:
        self._stopped.set()
        self._wakeup.set()

    def _take_output(self) -> bytes:
        data = bytes(self._buffer)
        self._buffer.clear()
        return data

    def _shutdown(self) -> None:
        self._io_shutdown = True
        self._wakeup.set()


ServiceFn = Callable[[DispatchItem], Awaitable[Any]]


class Dispatcher:
    """Runs one framed connection.

    Each decoded frame is passed to ``service`` as a DispatchItem; the service may
    return a frame to send back, or None. Replies are written in the order the
    frames arrived, even if the service finishes them out of order. An exception
    raised by the service stops the dispatcher and is re-raised by :meth:`run`.
    """

    def __init__(
        self,
        reader: Any,
        writer: Any,
        codec: Codec,
        service: ServiceFn,
        state: Optional[IoState] = None,
        keepalive_timeout: float = 30.0,
        disconnect_timeout: float = 1.0,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._codec = codec
        self._service = service
        self.state = state if state is not None else IoState()
        self.keepalive_timeout = keepalive_timeout
        self.disconnect_timeout = disconnect_timeout

        self._queue = ResponseQueue()
        self._tasks: Set[asyncio.Future] = set()
        self._read_buffer = bytearray()
        self._deadline = 0.0
        self._service_error: Optional[BaseException] = None
        self._pending_error: Optional[DispatchItem] = None
        self._io_error: Optional[BaseException] = None

    async def run(self) -> None:
        """Process the connection until it stops; re-raise a service error if one occurred."""
        loop = asyncio.get_running_loop()
        self._deadline = loop.time() + self.keepalive_timeout
        flush = asyncio.ensure_future(self._flush_loop())
        try:
            decode_failed = await self._read_loop()
            if not decode_failed:
                self._process_unhandled()
                final = self._pending_error
                self._pending_error = None
                if final is None and self._io_error is not None:
                    final = DispatchItem(DispatchKind.IO_ERROR, self._io_error)
                if final is not None:
                    self._dispatch(final)
            await self._drain_tasks()
        finally:
            await self._shutdown_io(flush)

        if self._service_error is not None:
            raise self._service_error

    # reading

    def _keepalive_remaining(self) -> Optional[float]:
        if not self.keepalive_timeout:
            return None
        return max(0.0, self._deadline - asyncio.get_running_loop().time())

    def _touch_keepalive(self) -> None:
        if self.keepalive_timeout:
            self._deadline = asyncio.get_running_loop().time() + self.keepalive_timeout

    async def _read_loop(self) -> bool:
        """Read and dispatch frames until stopped. Returns True on a decode failure."""
        stop_wait = asyncio.ensure_future(self.state._stopped.wait())
        try:
            while not self.state._stopped.is_set():
                read = asyncio.ensure_future(self._reader.read(_READ_SIZE))
                done, _ = await asyncio.wait(
                    {read, stop_wait},
                    timeout=self._keepalive_remaining(),
                    return_when=asyncio.FIRST_COMPLETED,
                )
                if read not in done:
                    read.cancel()
                    with contextlib.suppress(asyncio.CancelledError, OSError):
                        await read
                    if stop_wait not in done:
                        if self._pending_error is None:
                            self._pending_error = DispatchItem(DispatchKind.KEEPALIVE_TIMEOUT)
                        self.state._request_stop()
                    break

                try:
                    chunk = read.result()
                except OSError as exc:
                    self._io_error = exc
                    self.state._request_stop()
                    break
                if not chunk:
                    self.state._request_stop()
                    break

                self._read_buffer += chunk
                while True:
                    try:
                        item = self._codec.decode(self._read_buffer)
                    except Exception as exc:
                        self._dispatch(DispatchItem(DispatchKind.DECODER_ERROR, exc))
                        self.state._request_stop()
                        return True
                    if item is None:
                        break
                    self._touch_keepalive()
                    self._dispatch(DispatchItem(DispatchKind.ITEM, item))
        finally:
            stop_wait.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await stop_wait
        return False

    def _process_unhandled(self) -> None:
        while True:
            try:
                item = self._codec.decode(self._read_buffer)
            except Exception:
                return
            if item is None:
                return
            self._dispatch(DispatchItem(DispatchKind.ITEM, item))

    # service calls

    def _dispatch(self, item: DispatchItem) -> None:
        index = self._queue.reserve()
        task = asyncio.ensure_future(self._call(index, item))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _call(self, index: int, item: DispatchItem) -> None:
        try:
            outcome = (True, await self._service(item))
        except Exception as exc:
            outcome = (False, exc)
        for ok, value in self._queue.complete(index, outcome):
            self._write_result(ok, value)

    def _write_result(self, ok: bool, value: Any) -> None:
        if not ok:
            if self._service_error is None:
                self._service_error = value
            self.state._request_stop()
            return
        if value is None:
            return
        try:
            self.state.write_item(value, self._codec)
        except PeerDisconnectedError:
            return
        except Exception as exc:
            if self._pending_error is None:
                self._pending_error = DispatchItem(DispatchKind.ENCODER_ERROR, exc)
            self.state._request_stop()

    async def _drain_tasks(self) -> None:
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # writing

    async def _flush_loop(self) -> None:
        state = self.state
        while True:
            await state._wakeup.wait()
            state._wakeup.clear()
            data = state._take_output()
            if data:
                try:
                    self._writer.write(data)
                    await self._writer.drain()
                except OSError as exc:
                    if self._io_error is None:
                        self._io_error = exc
                    state._request_stop()
                    return
            if state._io_shutdown and not state._buffer:
                return

    async def _shutdown_io(self, flush: asyncio.Future) -> None:
        self.state._request_stop()
        self.state._shutdown()
        timeout = self.disconnect_timeout or None
        try:
            await asyncio.wait_for(flush, timeout)
        except asyncio.TimeoutError:
            pass
        except OSError:
            pass
        with contextlib.suppress(OSError):
            self._writer.close()
        with contextlib.suppress(OSError, asyncio.TimeoutError):
            await asyncio.wait_for(self._writer.wait_closed(), timeout)