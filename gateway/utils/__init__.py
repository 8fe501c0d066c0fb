"""
UTILITIES PACKAGE
=================

Helpers used by the services (no HTTP, no business logic):

  time_info - get_timestamp(): ISO-8601 UTC timestamp for history entries.
  retry     - with_retry(fn): calls fn(); on failure retries with exponential backoff (image search).
"""
