"""Errors raised inside the sync layer.

None of these reach a display surface: the store turns
``StorageUnavailable`` into defaults, the scheduler treats ``DecodeError``
as "no word", and the writer drops a publish on ``EncodeError``.
"""


class SyncError(Exception):
    """Base class for sync layer errors."""


class StorageUnavailable(SyncError):
    """The shared storage group cannot be opened."""

    def __init__(self, group_id: str, reason: str = ""):
        self.group_id = group_id
        self.reason = reason
        message = f"Shared storage group {group_id!r} is unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class DecodeError(SyncError):
    """Stored word of the day bytes are absent or malformed."""


class EncodeError(SyncError):
    """A word of the day cannot be serialized."""
