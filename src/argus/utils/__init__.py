"""argus utility modules.

- logging: Standardized logging with human/verbose/JSON modes
- rwlock: Reader/writer lock guarding the incremental cache
"""

from argus.utils.logging import configure_from_cli, get_logger, setup_logging
from argus.utils.rwlock import ReadWriteLock

__all__ = [
    "configure_from_cli",
    "get_logger",
    "setup_logging",
    "ReadWriteLock",
]
