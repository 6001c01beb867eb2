"""
mmdb_reader.metadata
~~~~~~~~~~~~~~~~~~~~

The metadata record stored at the end of every MaxMind DB file.
"""
from .decoder import EntryDataCursor, decode_entry_data_list
from .errors import InvalidDatabaseError
import logging

logger = logging.getLogger(__name__)

FIELDS = (
    'binary_format_major_version',
    'binary_format_minor_version',
    'build_epoch',
    'database_type',
    'description',
    'ip_version',
    'languages',
    'node_count',
    'record_size',
)


class Metadata(object):
    """Read-only metadata of a database.

    Fields the database does not carry are ``None``.
    """

    __slots__ = FIELDS

    def __init__(self, **kwargs):
        for name in FIELDS:
            object.__setattr__(self, name, kwargs.get(name))

    def __setattr__(self, name, value):
        raise AttributeError('Metadata is read-only')

    def __delattr__(self, name):
        raise AttributeError('Metadata is read-only')

    @property
    def node_byte_size(self):
        """The size of a search tree node in bytes"""
        if self.record_size is None:
            return None
        return self.record_size // 4

    @property
    def search_tree_size(self):
        """The size of the search tree in bytes"""
        if self.node_count is None or self.record_size is None:
            return None
        return self.node_count * self.node_byte_size

    def as_dict(self):
        return {name: getattr(self, name) for name in FIELDS}

    def __eq__(self, other):
        if not isinstance(other, Metadata):
            return NotImplemented
        return self.as_dict() == other.as_dict()

    __hash__ = None

    def __repr__(self):
        args = ', '.join('{}={!r}'.format(name, getattr(self, name))
                         for name in FIELDS)
        return '{}.{}({})'.format(self.__module__, self.__class__.__name__,
                                  args)


def materialize(cursor):
    """Build a ``Metadata`` from the metadata entry list at ``cursor``."""
    try:
        decoded = decode_entry_data_list(cursor)
    except InvalidDatabaseError as ex:
        raise InvalidDatabaseError('Error decoding metadata.') from ex

    if not isinstance(decoded, dict):
        raise InvalidDatabaseError('Error decoding metadata.')

    unknown = set(decoded) - set(FIELDS)
    if unknown:
        logger.debug('Ignoring unknown metadata fields: %s',
                     ', '.join(sorted(unknown)))

    return Metadata(**{name: decoded[name] for name in FIELDS
                       if name in decoded})


def metadata_from_entry_data_list(entry_list):
    with entry_list:
        return materialize(EntryDataCursor(entry_list.head))
