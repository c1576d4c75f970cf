"""Common utility functions for business_time."""

from datetime import date, datetime
from typing import Any

import pandas as pd

Instant = datetime | pd.Timestamp


def _to_timestamp(instant: Any) -> pd.Timestamp:
    """Coerce a datetime, date or Timestamp into a pandas Timestamp."""
    if isinstance(instant, (datetime, date)) and not pd.isna(instant):
        return pd.Timestamp(instant)
    raise TypeError(f"Expected a datetime or Timestamp instant; got {instant!r}")


def _restore_instant(result: pd.Timestamp, like: Any) -> Instant:
    """Return result with the same type as the caller's start instant."""
    if isinstance(like, pd.Timestamp):
        return result
    return result.to_pydatetime(warn=False)
