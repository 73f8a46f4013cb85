"""Upstream gateway link and its reconnect state machine.

Owns exactly one link at a time, either a TCP client stream or a UDP
listener, and feeds everything it receives through a
:class:`~nmeabridge.ingestion.assembler.StreamAssembler`.

All state changes happen on the event loop. Each link attempt carries a
generation number; callbacks from a link that has since been torn down see a
stale generation and are ignored, so nothing from an old link can leak into
a new one.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from enum import StrEnum
from typing import Any, Protocol

from nmeabridge._constants import CONNECT_TIMEOUT_S, READ_CHUNK_SIZE
from nmeabridge.config import NmeaSettings
from nmeabridge.exceptions import GatewayBindError, GatewayConnectionError
from nmeabridge.ingestion.assembler import StreamAssembler

_logger = logging.getLogger(__name__)

UDP_LISTEN_HOST = "0.0.0.0"


class ConnectionState(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    WAITING_TO_RECONNECT = "waiting_to_reconnect"


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


Scheduler = Callable[[float, Callable[[], None]], TimerHandle]
"""``(delay_seconds, callback) -> handle``; defaults to ``loop.call_later``."""


def _call_later(delay: float, callback: Callable[[], None]) -> TimerHandle:
    return asyncio.get_running_loop().call_later(delay, callback)


class _UdpListener(asyncio.DatagramProtocol):
    def __init__(
        self,
        on_data: Callable[[bytes], None],
        on_lost: Callable[[Exception | None], None],
    ) -> None:
        self._on_data = on_data
        self._on_lost = on_lost

    def datagram_received(self, data: bytes, addr: Any) -> None:
        self._on_data(data)

    def error_received(self, exc: Exception) -> None:
        _logger.debug("UDP error received: %s", exc)

    def connection_lost(self, exc: Exception | None) -> None:
        self._on_lost(exc)


class ConnectionManager:
    """Lifecycle of the gateway link.

    Parameters
    ----------
    settings : NmeaSettings
        Gateway address, protocol, and reconnect interval.
    on_line : callable
        Called on the loop with every complete, non-empty line, in arrival
        order.
    auto_reconnect : bool
        Whether a failed or lost TCP link schedules another attempt.
    scheduler : callable, optional
        Timer factory used for the reconnect delay. Injected by tests.
    connect_timeout : float
        Seconds before a TCP connect attempt counts as failed.
    """

    def __init__(
        self,
        settings: NmeaSettings,
        *,
        on_line: Callable[[str], None],
        auto_reconnect: bool = True,
        scheduler: Scheduler | None = None,
        connect_timeout: float = CONNECT_TIMEOUT_S,
    ) -> None:
        self._settings = settings
        self._on_line = on_line
        self._reconnect_policy = auto_reconnect
        self._schedule = scheduler or _call_later
        self._connect_timeout = connect_timeout
        self._assembler = StreamAssembler()

        self._state = ConnectionState.DISCONNECTED
        self._auto_reconnect = False
        self._generation = 0
        self._attempts = 0
        self._task: asyncio.Task[None] | None = None
        self._timer: TimerHandle | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._udp_transport: asyncio.DatagramTransport | None = None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED

    @property
    def settings(self) -> NmeaSettings:
        return self._settings

    @property
    def auto_reconnect(self) -> bool:
        return self._auto_reconnect

    @property
    def attempt_count(self) -> int:
        """Number of link attempts started since construction."""
        return self._attempts

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def connect(self) -> None:
        """Re-arm auto-reconnect (if enabled) and bring the link up.

        No-op while connecting or connected. While waiting to reconnect the
        pending timer is dropped and the attempt happens now.
        """
        self._auto_reconnect = self._reconnect_policy
        if self._state in (ConnectionState.CONNECTING, ConnectionState.CONNECTED):
            return
        self._cancel_timer()
        self._start_attempt()

    def disconnect(self) -> None:
        """Tear the link down, cancel any pending reconnect, disable auto-reconnect."""
        self._auto_reconnect = False
        self._generation += 1
        self._cancel_timer()

        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()
        writer = self._writer
        self._writer = None
        if writer is not None:
            writer.close()
        transport = self._udp_transport
        self._udp_transport = None
        if transport is not None:
            transport.close()

        self._assembler.reset()
        if self._state != ConnectionState.DISCONNECTED:
            _logger.info("Gateway link disconnected")
            self._set_state(ConnectionState.DISCONNECTED)

    def reconfigure(self, settings: NmeaSettings) -> None:
        """Apply *settings*: always a full disconnect then connect."""
        self.disconnect()
        self._settings = settings
        self.connect()

    async def close(self) -> None:
        """Disconnect and wait for the link task to finish unwinding."""
        task = self._task
        self.disconnect()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _set_state(self, state: ConnectionState) -> None:
        if state != self._state:
            _logger.debug("Gateway link state %s -> %s", self._state, state)
            self._state = state

    def _cancel_timer(self) -> None:
        timer = self._timer
        self._timer = None
        if timer is not None:
            timer.cancel()

    def _start_attempt(self) -> None:
        self._generation += 1
        self._attempts += 1
        generation = self._generation
        self._set_state(ConnectionState.CONNECTING)
        loop = asyncio.get_running_loop()
        if self._settings.protocol == "udp":
            self._task = loop.create_task(self._bind_udp(generation))
        else:
            self._task = loop.create_task(self._run_tcp(generation))

    def _on_timer(self) -> None:
        self._timer = None
        if self._state != ConnectionState.WAITING_TO_RECONNECT:
            return
        self._start_attempt()

    def _link_up(self) -> None:
        self._assembler.reset()
        self._set_state(ConnectionState.CONNECTED)

    def _link_down(self, generation: int, error: GatewayConnectionError) -> None:
        if generation != self._generation:
            return
        self._task = None
        if self._auto_reconnect and not isinstance(error, GatewayBindError):
            _logger.warning(
                "%s; retrying in %d ms",
                error,
                self._settings.reconnect_interval_ms,
            )
            self._set_state(ConnectionState.WAITING_TO_RECONNECT)
            self._timer = self._schedule(self._settings.reconnect_interval_s, self._on_timer)
        else:
            _logger.warning("%s", error)
            self._set_state(ConnectionState.DISCONNECTED)

    def _feed(self, generation: int, chunk: bytes) -> None:
        if generation != self._generation:
            return
        for line in self._assembler.feed(chunk):
            try:
                self._on_line(line)
            except Exception:
                _logger.warning("Line handler failed for %r", line, exc_info=True)

    async def _run_tcp(self, generation: int) -> None:
        host, port = self._settings.host, self._settings.port
        _logger.debug("Connecting to gateway %s:%s (TCP)", host, port)
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(host, port),
                timeout=self._connect_timeout,
            )
        except (OSError, TimeoutError, ValueError) as exc:
            # ValueError covers hosts the resolver cannot encode (IDNA UnicodeError).
            self._link_down(
                generation,
                GatewayConnectionError(f"TCP connect to {host}:{port} failed: {exc!r}", host=host, port=port),
            )
            return

        if generation != self._generation:
            writer.close()
            return
        self._writer = writer
        self._link_up()
        _logger.info("Connected to gateway at %s:%s (TCP)", host, port)

        reason = "closed by peer"
        try:
            while True:
                chunk = await reader.read(READ_CHUNK_SIZE)
                if not chunk:
                    break
                self._feed(generation, chunk)
        except OSError as exc:
            reason = f"error: {exc!r}"
        finally:
            writer.close()
            if self._writer is writer:
                self._writer = None

        self._link_down(
            generation,
            GatewayConnectionError(f"TCP link to {host}:{port} {reason}", host=host, port=port),
        )

    async def _bind_udp(self, generation: int) -> None:
        port = self._settings.port
        loop = asyncio.get_running_loop()
        _logger.debug("Binding UDP listener on port %s", port)

        def on_lost(exc: Exception | None) -> None:
            self._link_down(
                generation,
                GatewayBindError(f"UDP listener on port {port} lost: {exc!r}", port=port),
            )

        try:
            transport, _protocol = await loop.create_datagram_endpoint(
                lambda: _UdpListener(lambda data: self._feed(generation, data), on_lost),
                local_addr=(UDP_LISTEN_HOST, port),
            )
        except OSError as exc:
            self._link_down(
                generation,
                GatewayBindError(f"UDP bind on port {port} failed: {exc!r}", port=port),
            )
            return

        if generation != self._generation:
            transport.close()
            return
        self._task = None
        self._udp_transport = transport
        self._link_up()
        _logger.info("Listening for NMEA on UDP port %s", port)
