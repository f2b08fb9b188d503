"""Websocket transport built on aiohttp.

One :class:`WebSocketTransport` is one connection attempt: it connects,
reports lifecycle events to a :class:`TransportListener`, and ends with a
single ``on_close`` unless it was closed locally.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Protocol

import aiohttp

from flightdeck._redact import redact_url
from flightdeck.exceptions import FlightDeckTransportError

_logger = logging.getLogger(__name__)


class TransportListener(Protocol):
    """Callbacks a transport delivers, always on the event loop thread."""

    def on_open(self) -> None: ...

    def on_message(self, data: str) -> None: ...

    def on_error(self, error: FlightDeckTransportError) -> None: ...

    def on_close(self) -> None: ...


class TransportHandle(Protocol):
    """Live connection owned by the connection manager."""

    def close(self) -> None: ...


TransportFactory = Callable[[str, TransportListener], TransportHandle]
"""Open a connection to a URL and return its handle without blocking."""


class WebSocketTransport:
    """A single websocket connection driven by a reader task.

    Text frames are passed through verbatim. Binary frames and socket
    errors are reported through ``on_error`` and do not end the connection
    by themselves; the close that follows does. A listener callback that
    raises ends the connection: ``on_error`` then ``on_close``.
    """

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        url: str,
        listener: TransportListener,
        *,
        heartbeat: float | None = None,
    ) -> None:
        self._http = http_session
        self._url = url
        self._listener = listener
        self._heartbeat = heartbeat
        self._task: asyncio.Task[None] | None = None

    @classmethod
    def open(
        cls,
        http_session: aiohttp.ClientSession,
        url: str,
        listener: TransportListener,
        *,
        heartbeat: float | None = None,
    ) -> WebSocketTransport:
        """Create a transport and start connecting on the running loop."""
        transport = cls(http_session, url, listener, heartbeat=heartbeat)
        transport.start()
        return transport

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self._task is not None:
            return
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(), name=f"flightdeck-ws:{redact_url(self._url)}")

    def close(self) -> None:
        """Close the connection locally. No ``on_close`` is delivered afterwards."""
        task = self._task
        if task is not None and not task.done():
            _logger.debug("Closing websocket %s", redact_url(self._url))
            task.cancel()

    async def _run(self) -> None:
        safe_url = redact_url(self._url)
        cancelled = False
        try:
            _logger.debug("Connecting websocket %s", safe_url)
            async with self._http.ws_connect(self._url, heartbeat=self._heartbeat) as ws:
                self._listener.on_open()
                async for msg in ws:
                    if msg.type == aiohttp.WSMsgType.TEXT:
                        self._listener.on_message(msg.data)
                    elif msg.type == aiohttp.WSMsgType.BINARY:
                        self._listener.on_error(
                            FlightDeckTransportError(
                                f"Unexpected binary frame ({len(msg.data)} bytes)",
                                url=safe_url,
                            )
                        )
                    elif msg.type == aiohttp.WSMsgType.ERROR:
                        self._listener.on_error(
                            FlightDeckTransportError(f"Socket error: {ws.exception()}", url=safe_url)
                        )
                _logger.debug("Websocket %s closed by peer code=%s", safe_url, ws.close_code)
        except asyncio.CancelledError:
            cancelled = True
            raise
        except (aiohttp.ClientError, OSError, TimeoutError) as exc:
            self._listener.on_error(FlightDeckTransportError(f"Connection to {safe_url} failed: {exc}", url=safe_url))
        except Exception as exc:
            # A failing listener callback ends the connection like a socket error.
            _logger.exception("Listener failed on websocket %s", safe_url)
            self._listener.on_error(FlightDeckTransportError(f"Listener failed: {exc!r}", url=safe_url))
        finally:
            if not cancelled:
                self._listener.on_close()
