"""Top-level service: gateway link, decoder, push channel, and control surface."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from typing import Any

from aiohttp import web

from nmeabridge._constants import CONNECT_TIMEOUT_S, HEARTBEAT_KEY
from nmeabridge.broadcaster import Broadcaster
from nmeabridge.config import BridgeConfig
from nmeabridge.config_store import ConfigStore
from nmeabridge.connection import ConnectionManager, Scheduler
from nmeabridge.control import ControlService
from nmeabridge.exceptions import NmeaBridgeError
from nmeabridge.ingestion.decoder import decode, sentence_type
from nmeabridge.server import create_app
from nmeabridge.stats import SentenceStats

_logger = logging.getLogger(__name__)


class NmeaBridge:
    """One bridge instance.

    Every piece of mutable state lives on the instance, so several bridges
    can run side by side in one process.

    Usage::

        async with NmeaBridge(config, ConfigStore("config.json")) as bridge:
            await bridge.wait_closed()
    """

    def __init__(
        self,
        config: BridgeConfig,
        store: ConfigStore,
        *,
        scheduler: Scheduler | None = None,
        connect_timeout: float = CONNECT_TIMEOUT_S,
    ) -> None:
        self._stats = SentenceStats()
        self._broadcaster = Broadcaster()
        self._manager = ConnectionManager(
            config.nmea,
            on_line=self._handle_line,
            scheduler=scheduler,
            connect_timeout=connect_timeout,
        )
        self._control = ControlService(
            config=config,
            manager=self._manager,
            broadcaster=self._broadcaster,
            store=store,
            stats=self._stats,
        )
        self._app = create_app(self._control, self._broadcaster)
        self._runner: web.AppRunner | None = None
        self._heartbeat_task: asyncio.Task[None] | None = None
        self._closed = asyncio.Event()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def app(self) -> web.Application:
        return self._app

    @property
    def control(self) -> ControlService:
        return self._control

    @property
    def manager(self) -> ConnectionManager:
        return self._manager

    @property
    def broadcaster(self) -> Broadcaster:
        return self._broadcaster

    @property
    def stats(self) -> SentenceStats:
        return self._stats

    @property
    def port(self) -> int:
        """Port the push channel / control surface is listening on."""
        if self._runner is None or not self._runner.addresses:
            raise NmeaBridgeError("Bridge not started")
        return int(self._runner.addresses[0][1])

    # ------------------------------------------------------------------
    # Line pipeline
    # ------------------------------------------------------------------

    def _handle_line(self, line: str) -> None:
        record = decode(line)
        self._stats.record(sentence_type(line), decoded=record is not None)
        if record is None:
            return
        delivered = self._broadcaster.publish(record, line)
        _logger.debug("%s record delivered to %d subscriber(s)", record.type, delivered)

    def _heartbeat_message(self) -> dict[str, Any]:
        return {
            HEARTBEAT_KEY: True,
            "connected": self._manager.connected,
            "state": str(self._manager.state),
        }

    async def _heartbeat_loop(self, interval_s: float) -> None:
        while True:
            await asyncio.sleep(interval_s)
            self._broadcaster.publish_message(self._heartbeat_message())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self, *, connect: bool = True) -> None:
        """Start listening for push/control clients and bring the link up."""
        settings = self._control.config.websocket
        runner = web.AppRunner(self._app)
        await runner.setup()
        site = web.TCPSite(runner, settings.host, settings.port)
        try:
            await site.start()
        except BaseException:
            await runner.cleanup()
            raise
        self._runner = runner
        self._closed.clear()
        _logger.info("HTTP + WebSocket server listening on %s:%s", settings.host, self.port)

        nmea = self._control.config.nmea
        _logger.info(
            "Starting bridge, NMEA source: %s %s:%s",
            nmea.protocol.upper(),
            nmea.host,
            nmea.port,
        )
        if connect:
            self._manager.connect()
        if settings.heartbeat_interval_ms > 0:
            self._heartbeat_task = asyncio.create_task(
                self._heartbeat_loop(settings.heartbeat_interval_ms / 1000.0)
            )

    async def stop(self) -> None:
        """Close the gateway link, every push subscription, and the listener."""
        task = self._heartbeat_task
        self._heartbeat_task = None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        await self._manager.close()
        runner = self._runner
        self._runner = None
        if runner is not None:
            # Runs the app's on_shutdown hooks, closing every WebSocket.
            await runner.cleanup()
        self._broadcaster.close_all()
        self._closed.set()
        _logger.info("Bridge stopped")

    async def wait_closed(self) -> None:
        await self._closed.wait()

    async def __aenter__(self) -> NmeaBridge:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    async def run_until_signalled(self) -> None:
        """Run until SIGINT/SIGTERM, then shut down cleanly."""
        loop = asyncio.get_running_loop()
        stop_requested = asyncio.Event()
        for signum in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.add_signal_handler(signum, stop_requested.set)

        try:
            await self.start()
            await stop_requested.wait()
            _logger.info("Shutting down...")
        finally:
            await self.stop()
            for signum in (signal.SIGINT, signal.SIGTERM):
                with contextlib.suppress(NotImplementedError):
                    loop.remove_signal_handler(signum)
