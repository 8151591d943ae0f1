"""
Wall-clock abstraction.

Credential expiry and session ``issued_at`` values are computed from a
``Clock`` handed to the issuer and the session manager, so tests can
freeze or advance time.
"""

from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        """Current UTC time, truncated to whole seconds."""
        ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc).replace(microsecond=0)
