"""Standard exit codes for osquery-tool.

Exit codes follow Unix conventions; 130 mirrors SIGINT termination.
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for osquery-tool commands."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    USAGE_ERROR = 2
    INPUT_ERROR = 3
    OUTPUT_ERROR = 4
    NOT_FOUND = 5
    TIMEOUT = 6
    CONFIG_ERROR = 7
    EXECUTION_ERROR = 8
    CANCELLED = 130
