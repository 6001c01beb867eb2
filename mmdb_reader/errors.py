"""
mmdb_reader.errors
~~~~~~~~~~~~~~~~~~

Exceptions raised by the reader. Every public operation reports failures
through one of these classes (or through the builtin ``OSError`` family for
files that cannot be read, and ``MemoryError``).
"""


class MaxMindDBError(Exception):
    """Base class of all reader errors."""


class InvalidDatabaseError(MaxMindDBError, RuntimeError):
    """The database file is corrupt or not a MaxMind DB file."""


class InvalidAddressError(MaxMindDBError, ValueError):
    """The address is malformed or belongs to the wrong family."""


class InvalidAddressTypeError(InvalidAddressError, TypeError):
    """The argument is neither text nor an object with packed bytes."""


class ClosedReaderError(MaxMindDBError, ValueError):
    """A query was made on a reader that has been closed."""


class InvalidStateError(MaxMindDBError, ValueError):
    """The reader was used in a way its lifecycle does not allow."""


class UnsupportedModeError(MaxMindDBError, ValueError):
    """The reader was opened with a mode it does not implement."""
