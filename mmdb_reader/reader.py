"""
mmdb_reader.reader
~~~~~~~~~~~~~~~~~~

The database reader: opens a MaxMind DB file and answers lookups and
metadata queries until it is closed.
"""
from . import types
from .address import resolve_address
from .engine import Engine, EngineError
from .errors import (ClosedReaderError, InvalidDatabaseError,
                     InvalidStateError, UnsupportedModeError)
from .lookup import lookup
from .metadata import metadata_from_entry_data_list
import errno
import logging
import os

logger = logging.getLogger(__name__)


class Reader(object):
    """
    Instances of this class provide a reader for the MaxMind DB format. IP
    addresses can be looked up using the ``get`` method.
    """

    def __init__(self, database, mode=types.MODE_AUTO):
        """Reader for the MaxMind DB file format

        Arguments:
        database -- A path to a valid MaxMind DB file such as a GeoIP2
                    database file.
        mode -- mode to open the database with. MODE_AUTO and MODE_MMAP_EXT
                both memory-map the file.
        """
        self._engine = None

        if mode not in types.SUPPORTED_MODES:
            raise UnsupportedModeError(
                'Unsupported open mode ({}). Only MODE_AUTO and '
                'MODE_MMAP_EXT are supported by this reader.'.format(mode))

        filename = os.fspath(database)
        if not os.access(filename, os.R_OK):
            code = errno.EACCES if os.path.exists(filename) else errno.ENOENT
            raise OSError(code, os.strerror(code), filename)

        try:
            self._engine = Engine(filename)
        except EngineError as ex:
            raise InvalidDatabaseError(
                'Error opening database file ({}). Is this a valid MaxMind DB '
                'file?'.format(filename)) from ex

        logger.debug('Reader opened %s (mode %d)', filename, mode)

    @property
    def closed(self):
        return self._engine is None

    def _open_engine(self):
        if self._engine is None:
            raise ClosedReaderError(
                'Attempt to read from a closed MaxMind DB.')
        return self._engine

    def get(self, ip_address):
        """Return the record for the ip_address in the MaxMind DB

        Arguments:
        ip_address -- an IP address in the standard string notation or an
                      ipaddress object
        """
        record, _ = self.get_with_prefix_len(ip_address)
        return record

    def get_with_prefix_len(self, ip_address):
        """Return a tuple with the record and the associated prefix length"""
        engine = self._open_engine()
        return lookup(engine, resolve_address(ip_address))

    def metadata(self):
        """Return the metadata associated with the MaxMind DB file"""
        engine = self._open_engine()
        try:
            entry_list = engine.get_metadata_as_entry_data_list()
        except EngineError as ex:
            raise InvalidDatabaseError('Error decoding metadata.') from ex

        return metadata_from_entry_data_list(entry_list)

    def close(self):
        """Closes the MaxMind DB file and returns the resources to the system"""
        engine, self._engine = self._engine, None
        if engine is not None:
            engine.close()

    def __enter__(self):
        if self._engine is None:
            raise InvalidStateError('Attempt to reopen a closed MaxMind DB.')
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()


def open_database(database, mode=types.MODE_AUTO):
    """Open a MaxMind DB file and return a ``Reader`` for it."""
    return Reader(database, mode)
