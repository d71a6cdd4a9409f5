"""Exceptions raised by procstat."""


class ProcStatError(Exception):
    """Base class for procstat errors."""


class ProcFilesystemError(ProcStatError):
    """The /proc tree or one of its system-wide files cannot be used.

    Raised for conditions that make every percentage meaningless, such as a
    missing root or an unreadable uptime file. Per-process read failures are
    never reported this way.
    """
