"""JSON file persistence for :class:`BridgeConfig`."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from nmeabridge.config import BridgeConfig
from nmeabridge.exceptions import BridgeConfigError

_logger = logging.getLogger(__name__)


class ConfigStore:
    """Load and save the bridge configuration document.

    A missing, unreadable, or invalid file never raises from :meth:`load`;
    defaults are returned and a warning is logged.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> BridgeConfig:
        if not self._path.exists():
            _logger.warning("Config file %s not found, using defaults", self._path)
            return BridgeConfig()
        try:
            document = json.loads(self._path.read_text(encoding="utf-8"))
            return BridgeConfig.model_validate(document)
        except (OSError, ValueError, ValidationError) as exc:
            # json.JSONDecodeError and UnicodeDecodeError are ValueErrors.
            _logger.warning("Failed to load config %s, using defaults: %s", self._path, exc)
            return BridgeConfig()

    def save(self, config: BridgeConfig) -> None:
        """Write *config* atomically (temp file in the same directory, then rename)."""
        text = json.dumps(config.to_document(), indent=2) + "\n"
        directory = self._path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self._path.name}.", suffix=".tmp", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(text)
                os.replace(tmp_name, self._path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise BridgeConfigError(f"Could not write config {self._path}: {exc}") from exc
        _logger.debug("Config written to %s", self._path)
