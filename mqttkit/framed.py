"""Connection service: runs a handshake, builds a handler and drives the dispatcher."""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

from .dispatcher import Codec, Dispatcher, IoState, ServiceFn

log = logging.getLogger(__name__)


@dataclass
class Handshake:
    """Outcome of a successful connection handshake.

    ``reader``, ``writer`` and ``state`` may replace the connection's originals
    (for instance after wrapping the stream); None keeps the originals.
    """

    codec: Codec
    session: Any
    keepalive: float = 30.0
    reader: Any = None
    writer: Any = None
    state: Optional[IoState] = None


ConnectFn = Callable[[Any, Any, IoState], Awaitable[Handshake]]
HandlerFactory = Callable[[Any], Union[ServiceFn, Awaitable[ServiceFn]]]


def _close_quietly(writer: Any) -> None:
    with contextlib.suppress(Exception):
        writer.close()


class FramedService:
    """Serves framed connections.

    ``connect(reader, writer, state)`` performs the handshake and returns a
    :class:`Handshake`. ``handler_factory(session)`` then builds the service that
    handles dispatched items; it may return the service directly or an awaitable
    of it. The connection is then run by a :class:`Dispatcher` with the keep-alive
    from the handshake and this service's disconnect timeout.
    """

    def __init__(
        self,
        connect: ConnectFn,
        handler_factory: HandlerFactory,
        disconnect_timeout: float = 1.0,
    ) -> None:
        self.connect = connect
        self.handler_factory = handler_factory
        self.disconnect_timeout = disconnect_timeout

    async def _setup(
        self, reader: Any, writer: Any, state: IoState
    ) -> tuple[Handshake, ServiceFn]:
        try:
            handshake = await self.connect(reader, writer, state)
        except Exception as exc:
            log.debug("Connection handshake failed: %r", exc)
            raise
        log.debug("Connection handshake succeeded")

        handler = self.handler_factory(handshake.session)
        if inspect.isawaitable(handler):
            handler = await handler
        log.debug("Connection handler is created, starting dispatcher")
        return handshake, handler

    async def serve(
        self, reader: Any, writer: Any, handshake_timeout: Optional[float] = None
    ) -> None:
        """Handle one connection until it is closed.

        If ``handshake_timeout`` is set and the handshake together with handler
        creation does not finish in time, the connection is closed and the call
        returns normally. Errors from the handshake, the handler factory or the
        handler service are raised.
        """
        log.debug("Start connection handshake")
        state = IoState()
        setup = self._setup(reader, writer, state)
        try:
            if handshake_timeout:
                try:
                    handshake, service = await asyncio.wait_for(setup, handshake_timeout)
                except asyncio.TimeoutError:
                    log.warning("Handshake timed out")
                    _close_quietly(writer)
                    return
            else:
                handshake, service = await setup
        except BaseException:
            _close_quietly(writer)
            raise

        dispatcher = Dispatcher(
            handshake.reader if handshake.reader is not None else reader,
            handshake.writer if handshake.writer is not None else writer,
            handshake.codec,
            service,
            state=handshake.state if handshake.state is not None else state,
            keepalive_timeout=handshake.keepalive,
            disconnect_timeout=self.disconnect_timeout,
        )
        await dispatcher.run()