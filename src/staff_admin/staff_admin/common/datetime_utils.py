from __future__ import annotations

import time
from datetime import datetime, timezone


def now_utc() -> datetime:
    """Current UTC time without tzinfo, as stored in DATETIME columns.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


def epoch_seconds() -> int:
    return int(time.time())
