"""Error codes for CLI exit status.

Every fatal condition (usage, precondition, failed external command) exits
with the same non-zero status, so callers only need to distinguish success
from failure.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    These values are used as process exit codes and should remain stable.
    """

    OK = 0
    FAILURE = 1
