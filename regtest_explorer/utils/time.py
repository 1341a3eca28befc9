"""Time utility functions for blockchain data."""

import time
from datetime import datetime, timezone


def get_current_utc() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def current_unix_time() -> int:
    """Unix time used as the synthetic timestamp of unconfirmed transactions."""
    return int(time.time())
