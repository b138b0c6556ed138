"""Exceptions raised by sysdash."""


class SysdashError(Exception):
    """Base class for sysdash errors."""


class PersistenceUnavailable(SysdashError):
    """The persistent snapshot slot could not be read or written."""
