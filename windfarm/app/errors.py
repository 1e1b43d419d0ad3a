"""
Wind Farm Monitor - Error Types

None of these are fatal to the process; callers decide how to surface them.
"""


class WindfarmError(Exception):
    """Base class for errors raised by the alerting and command core."""


class CommandValidationError(WindfarmError):
    """Operator command rejected before anything was forwarded or stored."""

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []


class TransportError(WindfarmError):
    """The command transport could not deliver a message to the broker."""


class PersistenceError(WindfarmError):
    """A database write failed; the transaction was rolled back."""
