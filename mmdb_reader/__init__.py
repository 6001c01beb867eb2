from . import errors
from .errors import (MaxMindDBError, InvalidDatabaseError, InvalidAddressError,
                     InvalidAddressTypeError, ClosedReaderError,
                     InvalidStateError, UnsupportedModeError)
from .metadata import Metadata
from .reader import Reader, open_database
from .types import MODE_AUTO, MODE_MMAP_EXT
