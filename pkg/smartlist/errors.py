"""
Error taxonomy for the card store.

ValidationError is raised before any mutation. PersistenceError subclasses
are raised by the codec and caught at the CardStore / SmartListApp boundary.
"""


class SmartListError(Exception):
    """Base class for all SmartList errors."""
    pass


class ValidationError(SmartListError):
    """Raised when create input is rejected (blank name, unknown menu, too long)."""
    pass


class PersistenceError(SmartListError):
    """Raised when state cannot be moved to or from storage."""
    pass


class EncodeError(PersistenceError):
    """State could not be serialized. The save is abandoned, not retried."""
    pass


class DecodeError(PersistenceError):
    """Stored blob is unreadable under both the current and legacy schema."""
    pass


class WriteError(PersistenceError):
    """The key-value store rejected the write."""
    pass
