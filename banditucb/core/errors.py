"""Error kinds raised by the bandit core and the command layer."""
from __future__ import annotations


class BanditError(Exception):
    """Base class; ``prefix`` is the reply prefix used by the command layer."""

    prefix = "ERR"


class WrongTypeError(BanditError):
    prefix = "WRONGTYPE"

    def __init__(self, message: str = "Operation against a key holding the wrong kind of value") -> None:
        super().__init__(message)


class InvalidArgumentError(BanditError, ValueError):
    pass


class InvalidArmError(BanditError):
    def __init__(self, message: str = "invalid arm") -> None:
        super().__init__(message)


class NotInitializedError(BanditError):
    def __init__(self, message: str = "bandit needs to be initialized first") -> None:
        super().__init__(message)


class UnsupportedVersionError(BanditError):
    pass


class CorruptSnapshotError(BanditError):
    pass


class NoChoicesError(BanditError):
    def __init__(self, message: str = "no choices") -> None:
        super().__init__(message)


class WrongArityError(BanditError):
    def __init__(self, command: str) -> None:
        super().__init__(f"wrong number of arguments for '{command.lower()}' command")


class UnknownCommandError(BanditError):
    def __init__(self, command: str) -> None:
        super().__init__(f"unknown command '{command}'")
