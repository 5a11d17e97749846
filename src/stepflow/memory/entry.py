"""Memory entry returned by Sequencer.recall()."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Memory:
    """A remembered value. ``value`` holds the raw JSON bytes, empty if unset."""

    key: str
    value: bytes = b""
    logger: logging.Logger | logging.LoggerAdapter = field(
        default=logger, repr=False, compare=False
    )

    def __bool__(self) -> bool:
        return len(self.value) > 0

    def decode(self, default: Any = None) -> Any:
        """Return the decoded JSON value, or ``default`` if empty or malformed."""
        if not self.value:
            return default
        try:
            return json.loads(self.value)
        except (TypeError, ValueError) as e:
            self.logger.error("decoding memory %r: %s", self.key, e)
            return default

    def as_str(self) -> str:
        val = self.decode()
        return val if isinstance(val, str) else ""

    def as_int(self) -> int:
        val = self.decode()
        # bool is an int subclass; a stored flag is not a number
        if isinstance(val, bool) or not isinstance(val, (int, float)):
            return 0
        return int(val)

    def as_bool(self) -> bool:
        val = self.decode()
        return val if isinstance(val, bool) else False
