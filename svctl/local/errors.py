"""
Exceptions raised by the controller.

Dispatch errors end a command run with a fixed exit status. An unresolved
process is never fatal: graceful-kill recovers from it by falling back to a
plain supervisor stop.
"""


class CtlError(Exception):
    """Base class for all controller errors."""


class DispatchError(CtlError):
    """A command line that cannot be dispatched."""

    exit_status = 1


class UnknownCommand(DispatchError):
    """The command name is not in the registry."""

    exit_status = 1

    def __init__(self, command: str) -> None:
        super().__init__(f"Unknown command: '{command}'")
        self.command = command


class ArityViolation(DispatchError):
    """A service argument was given to a command that takes none."""

    exit_status = 2

    def __init__(self, command: str) -> None:
        super().__init__(f"The command {command} does not accept any arguments")
        self.command = command


class UnresolvedProcess(CtlError):
    """A service's pid or process group could not be determined."""
