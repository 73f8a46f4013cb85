"""Bridge configuration for nmeabridge."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from nmeabridge._constants import (
    DEFAULT_GATEWAY_HOST,
    DEFAULT_GATEWAY_PORT,
    DEFAULT_HEARTBEAT_INTERVAL_MS,
    DEFAULT_PROTOCOL,
    DEFAULT_PUSH_CHANNEL_HOST,
    DEFAULT_PUSH_CHANNEL_PORT,
    DEFAULT_RECONNECT_INTERVAL_MS,
)
from nmeabridge.exceptions import BridgeConfigError

GatewayProtocol = Literal["tcp", "udp"]


class _ConfigModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )


class NmeaSettings(_ConfigModel):
    """Upstream gateway settings.

    Parameters
    ----------
    host : str
        Gateway address for TCP. Ignored for UDP, which listens on all
        interfaces.
    port : int
        Gateway TCP port, or the local UDP port to bind.
    protocol : {"tcp", "udp"}
        Link type.
    reconnect_interval_ms : int
        Delay between a lost/failed TCP link and the next attempt.
    """

    host: str = Field(default=DEFAULT_GATEWAY_HOST, min_length=1)
    port: int = Field(default=DEFAULT_GATEWAY_PORT, ge=1, le=65535)
    protocol: GatewayProtocol = DEFAULT_PROTOCOL
    reconnect_interval_ms: int = Field(default=DEFAULT_RECONNECT_INTERVAL_MS, ge=0)

    @property
    def reconnect_interval_s(self) -> float:
        return self.reconnect_interval_ms / 1000.0


class NmeaSettingsPatch(BaseModel):
    """Partial update accepted by the control surface. Unknown keys are rejected."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    host: str | None = None
    port: int | None = None
    protocol: GatewayProtocol | None = None
    reconnect_interval_ms: int | None = None

    def apply_to(self, settings: NmeaSettings) -> NmeaSettings:
        """Return *settings* with every explicitly supplied key replaced.

        The merged result is re-validated, so an explicit ``null`` or an
        out-of-range port fails here rather than reaching the connection.
        """
        merged = settings.model_dump()
        merged.update(self.model_dump(exclude_unset=True))
        return NmeaSettings.model_validate(merged)


class PushChannelSettings(_ConfigModel):
    """HTTP control surface and WebSocket push channel listener.

    ``port`` 0 binds a free port. ``heartbeat_interval_ms`` 0 disables
    heartbeats.
    """

    port: int = Field(default=DEFAULT_PUSH_CHANNEL_PORT, ge=0, le=65535)
    host: str = DEFAULT_PUSH_CHANNEL_HOST
    heartbeat_interval_ms: int = Field(default=DEFAULT_HEARTBEAT_INTERVAL_MS, ge=0)


class BridgeConfig(_ConfigModel):
    """Complete bridge configuration as persisted in ``config.json``."""

    nmea: NmeaSettings = Field(default_factory=NmeaSettings)
    websocket: PushChannelSettings = Field(default_factory=PushChannelSettings)

    @property
    def push_channel_port(self) -> int:
        return self.websocket.port

    def with_nmea(self, settings: NmeaSettings) -> BridgeConfig:
        return self.model_copy(update={"nmea": settings})

    def to_document(self) -> dict[str, Any]:
        """JSON-ready dict using the persisted camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_env(
        cls,
        base: BridgeConfig | None = None,
        *,
        environ: Mapping[str, str] | None = None,
    ) -> BridgeConfig:
        """Apply ``NMEA_BRIDGE_*`` environment overrides on top of *base*.

        Parameters
        ----------
        base
            Configuration to start from, usually what the config store
            loaded. Defaults are used when omitted.
        environ
            Mapping to read instead of :data:`os.environ`.

        Returns
        -------
        BridgeConfig
            Populated configuration.

        Raises
        ------
        BridgeConfigError
            If an override does not validate.
        """
        env = os.environ if environ is None else environ
        config = base or cls()

        _ENV_NMEA_MAP = {
            "NMEA_BRIDGE_HOST": "host",
            "NMEA_BRIDGE_PORT": "port",
            "NMEA_BRIDGE_PROTOCOL": "protocol",
            "NMEA_BRIDGE_RECONNECT_INTERVAL_MS": "reconnect_interval_ms",
        }
        _ENV_PUSH_MAP = {
            "NMEA_BRIDGE_WS_PORT": "port",
            "NMEA_BRIDGE_WS_HOST": "host",
            "NMEA_BRIDGE_HEARTBEAT_INTERVAL_MS": "heartbeat_interval_ms",
        }

        nmea_kwargs = config.nmea.model_dump()
        push_kwargs = config.websocket.model_dump()
        for env_key, field_name in _ENV_NMEA_MAP.items():
            val = env.get(env_key)
            if val is not None:
                nmea_kwargs[field_name] = val.strip()
        for env_key, field_name in _ENV_PUSH_MAP.items():
            val = env.get(env_key)
            if val is not None:
                push_kwargs[field_name] = val.strip()

        try:
            return cls(
                nmea=NmeaSettings.model_validate(nmea_kwargs),
                websocket=PushChannelSettings.model_validate(push_kwargs),
            )
        except ValidationError as exc:
            raise BridgeConfigError(f"Invalid NMEA_BRIDGE_* override: {exc}") from exc
