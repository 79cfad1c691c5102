"""Error codes for CLI exit status.

Each release error kind maps onto one of these codes so scripts driving
``relm`` can tell a configuration problem from a failed SCM or build command.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    These values are used as process exit codes and should remain stable:
    - 0: Success
    - 1: User error (invalid arguments, release preconditions not met)
    - 2: Environment error (no module descriptor, unreadable config)
    - 3: Execution error (unexpected failure while running a phase)
    - 4: Command error (an SCM or build command reported failure)
    - 5: I/O error (descriptor store or file system failure)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    EXECUTION_ERROR = 3
    COMMAND_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK
