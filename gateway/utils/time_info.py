"""
TIME INFORMATION UTILITY
========================

Timestamps for the history log. Always UTC, always ISO-8601, so entries sort and
compare the same on every machine.
"""

import datetime


def get_timestamp() -> str:
    """Return the current UTC time as an ISO-8601 string, e.g. 2026-02-05T14:03:11.524000+00:00."""
    return datetime.datetime.now(datetime.timezone.utc).isoformat()
