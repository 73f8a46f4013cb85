"""Running counters for ingested sentences."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any


@dataclass
class SentenceStats:
    """Lines seen on the gateway link and what became of them.

    ``by_type`` counts decoded records per talker-less sentence type
    (``RMC``, ``MWV``, ...).
    """

    received: int = 0
    decoded: int = 0
    dropped: int = 0
    by_type: Counter[str] = field(default_factory=Counter)

    def record(self, sentence_type: str | None, *, decoded: bool) -> None:
        self.received += 1
        if not decoded:
            self.dropped += 1
            return
        self.decoded += 1
        if sentence_type:
            self.by_type[sentence_type] += 1

    def as_dict(self) -> dict[str, Any]:
        return {
            "received": self.received,
            "decoded": self.decoded,
            "dropped": self.dropped,
            "byType": dict(sorted(self.by_type.items())),
        }
