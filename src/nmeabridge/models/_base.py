"""Base model for decoded NMEA records.

Every record model inherits from :class:`NmeaBaseModel` which provides:

* ``alias_generator=to_camel`` so snake_case fields serialise to the
  camelCase keys the logbook UI consumes.
* Frozen instances, so a record can be handed to many subscribers.
* :meth:`NmeaBaseModel.to_message` which builds the push-channel payload
  with absent fields left out rather than sent as ``null``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from nmeabridge._constants import RAW_KEY


class NmeaBaseModel(BaseModel):
    """Base for decoded record models."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_message(self, raw: str | None = None) -> dict[str, Any]:
        """Return the push-channel dict for this record.

        ``None`` fields are omitted; *raw* is attached under ``_raw`` for
        diagnostics when given.
        """
        message = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        if raw is not None:
            message[RAW_KEY] = raw
        return message
