"""
Exceptions raised by Bar Tomato.

I/O failures are not wrapped: callers see the original OSError.
"""


class BarTomatoError(Exception):
    """Base class for application errors."""


class VaultValidationError(BarTomatoError):
    """The chosen folder is not a vault with the lifeos-pro plugin installed."""


class VaultNotConfiguredError(BarTomatoError):
    """An operation needs a vault but none has been set."""


class RecordsFileError(BarTomatoError):
    """An existing records file could not be parsed."""


class DailyNoteError(BarTomatoError):
    """Base class for daily note update failures."""


class SectionNotFoundError(DailyNoteError):
    """The daily note has no project list section."""


class NoteEncodingError(DailyNoteError):
    """The daily note is not valid UTF-8."""


class DailyNoteConflictError(DailyNoteError):
    """The daily note kept changing underneath us."""

    def __init__(self, path, attempts: int):
        super().__init__(f"Daily note {path} changed during update, gave up after {attempts} attempts")
        self.path = path
        self.attempts = attempts


class TimerStateError(BarTomatoError):
    """A command was issued in a timer phase that does not allow it."""
