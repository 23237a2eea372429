"""Exceptions raised while dumping a queue.

Every failure aborts the run; none of them are retried. An empty queue is
not an error and is never signalled with an exception.
"""

from pathlib import Path
from typing import List, Optional


class DumpError(Exception):
    """Base class for all dump failures."""

    pass


class ConfigurationError(DumpError):
    """Invalid run configuration, detected before connecting."""

    pass


class BrokerConnectionError(DumpError):
    """Dial, authentication, TLS or channel-open failure."""

    pass


class FetchError(DumpError):
    """Broker-side retrieval failure (missing queue, closed channel, ...)."""

    pass


class PersistenceError(DumpError):
    """
    Writing a dump file failed.

    ``written`` holds the paths completed before the failure so they can
    still be reported.
    """

    def __init__(self, message: str, written: Optional[List[Path]] = None):
        super().__init__(message)
        self.written: List[Path] = list(written or [])
