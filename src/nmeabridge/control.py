"""Synchronous control surface over the gateway link."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from nmeabridge.broadcaster import Broadcaster
from nmeabridge.config import BridgeConfig, NmeaSettingsPatch
from nmeabridge.config_store import ConfigStore
from nmeabridge.connection import ConnectionManager
from nmeabridge.exceptions import BridgeControlError
from nmeabridge.stats import SentenceStats

_logger = logging.getLogger(__name__)


class ControlService:
    """Status, connect, disconnect, and config updates.

    The only path through which the active :class:`BridgeConfig` changes;
    every accepted update is persisted before the link is reconfigured.
    """

    def __init__(
        self,
        *,
        config: BridgeConfig,
        manager: ConnectionManager,
        broadcaster: Broadcaster,
        store: ConfigStore,
        stats: SentenceStats | None = None,
    ) -> None:
        self._config = config
        self._manager = manager
        self._broadcaster = broadcaster
        self._store = store
        self._stats = stats or SentenceStats()

    @property
    def config(self) -> BridgeConfig:
        return self._config

    def status(self) -> dict[str, Any]:
        return {
            "connected": self._manager.connected,
            "state": str(self._manager.state),
            "subscriberCount": self._broadcaster.subscriber_count,
            "config": self._config.to_document(),
            "stats": self._stats.as_dict(),
        }

    def connect(self) -> None:
        self._manager.connect()

    def disconnect(self) -> None:
        self._manager.disconnect()

    def update_config(self, patch: Any) -> BridgeConfig:
        """Merge *patch* into the gateway settings, persist, and reconnect.

        Raises
        ------
        BridgeControlError
            If *patch* is not an object or does not validate. Nothing is
            changed in that case.
        BridgeConfigError
            If the new configuration cannot be written.
        """
        if not isinstance(patch, Mapping):
            raise BridgeControlError("config patch must be a JSON object")
        try:
            settings = NmeaSettingsPatch.model_validate(dict(patch)).apply_to(self._config.nmea)
        except ValidationError as exc:
            raise BridgeControlError(f"invalid config patch: {exc}") from exc

        updated = self._config.with_nmea(settings)
        self._store.save(updated)
        self._config = updated
        _logger.info(
            "Config updated: %s %s:%s reconnect=%sms",
            settings.protocol,
            settings.host,
            settings.port,
            settings.reconnect_interval_ms,
        )
        self._manager.reconfigure(settings)
        return updated
