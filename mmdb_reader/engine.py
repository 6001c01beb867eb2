"""
mmdb_reader.engine
~~~~~~~~~~~~~~~~~~

Byte level access to a MaxMind DB file: the search tree walk and the data
section field decoder. Records come out of here as flat, pre-order lists of
``EntryData`` nodes; turning them into Python values is the job of
:mod:`mmdb_reader.decoder`.
"""
from . import types
from collections import namedtuple
import logging
import mmap
import struct

logger = logging.getLogger(__name__)

SUCCESS = 0
FILE_OPEN_ERROR = 1
CORRUPT_SEARCH_TREE_ERROR = 2
INVALID_METADATA_ERROR = 3
IO_ERROR = 4
OUT_OF_MEMORY_ERROR = 5
UNKNOWN_DATABASE_FORMAT_ERROR = 6
INVALID_DATA_ERROR = 7
IPV6_LOOKUP_IN_IPV4_DATABASE_ERROR = 11

_MESSAGES = {
    SUCCESS: 'Success (not an error)',
    FILE_OPEN_ERROR: 'Error opening the specified MaxMind DB file',
    CORRUPT_SEARCH_TREE_ERROR: "The MaxMind DB file's search tree is corrupt",
    INVALID_METADATA_ERROR: 'The MaxMind DB file contains invalid metadata',
    IO_ERROR: 'An attempt to read data from the MaxMind DB file failed',
    OUT_OF_MEMORY_ERROR: 'A memory allocation call failed',
    UNKNOWN_DATABASE_FORMAT_ERROR:
        "The MaxMind DB file is in a format this library can't handle "
        "(unknown record size or binary format version)",
    INVALID_DATA_ERROR:
        "The MaxMind DB file's data section contains bad data "
        "(unknown data type or corrupt data)",
    IPV6_LOOKUP_IN_IPV4_DATABASE_ERROR:
        'You attempted to look up an IPv6 address in an IPv4-only database',
}


def strerror(status):
    """Return the message for an engine status code."""
    return _MESSAGES.get(status, 'Unknown error code')


class EngineError(Exception):
    """An engine failure carrying its status code in ``status``."""

    def __init__(self, status):
        super().__init__(strerror(status))
        self.status = status
        self.strerror = strerror(status)


LookupResult = namedtuple('LookupResult', ['found', 'netmask', 'entry'])

# Added to the extended length bytes, keyed by their count.
_LENGTH_BASES = {1: 29, 2: 285, 3: 65821}

# Added to pointer values, keyed by their byte count.
_POINTER_BASES = {1: 0, 2: 2048, 3: 526336}


class EntryData(object):
    """One node of a flattened entry list.

    Maps and arrays carry their pair or element count in ``data_size`` and
    are followed by their children; scalars carry their payload in
    ``value``.
    """

    __slots__ = ('type', 'data_size', 'value', 'next')

    def __init__(self, type_, data_size, value=None):
        self.type = type_
        self.data_size = data_size
        self.value = value
        self.next = None

    def __repr__(self):
        return 'EntryData({}, {}, {!r})'.format(self.type, self.data_size,
                                                self.value)


class EntryDataList(object):
    """Owner of a flattened entry list; frees it exactly once."""

    def __init__(self, head):
        self.head = head
        self.freed = False

    def free(self):
        """Unlink every node. Calling it again does nothing."""
        if self.freed:
            return

        node = self.head
        while node is not None:
            next_node = node.next
            node.next = None
            node = next_node

        self.head = None
        self.freed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.free()


class DataDecoder(object):
    """Flattens fields of one section of the buffer.

    Pointers are taken relative to ``pointer_base`` and followed in place, so
    the lists this produces never contain pointer nodes. Reads past
    ``limit`` are reported as invalid data.
    """

    def __init__(self, db, pointer_base, limit, uint128_as_bytes=True):
        self.db = db
        self.pointer_base = pointer_base
        self.limit = limit
        self.uint128_as_bytes = uint128_as_bytes

    def entry_data_list(self, offset):
        """Flatten the field at ``offset`` into an ``EntryDataList``."""
        head = tail = EntryData(None, 0)

        # Each open map or array saves the parent's unread child count and
        # the offset to resume at once its own children are read.
        open_containers = []
        remaining = 1
        while True:
            while not remaining:
                if not open_containers:
                    return EntryDataList(head.next)
                remaining, resume = open_containers.pop()
                if resume is not None:
                    offset = resume

            remaining -= 1
            node, offset, resume = self._read_field(offset, True)
            tail.next = node
            tail = node

            if node.type == types.TYPE_MAP:
                children = 2 * node.data_size
            elif node.type == types.TYPE_ARRAY:
                children = node.data_size
            else:
                children = 0

            if children:
                open_containers.append((remaining, resume))
                if len(open_containers) > types.MAXIMUM_DATA_STRUCTURE_DEPTH:
                    raise EngineError(INVALID_DATA_ERROR)
                remaining = children
            elif resume is not None:
                offset = resume

    def _check(self, offset, length):
        if offset < 0 or offset + length > self.limit:
            raise EngineError(INVALID_DATA_ERROR)

    def _read_field(self, offset, follow_pointer):
        # Returns the node, the offset of its first child (or of whatever
        # follows it) and, for a pointer, the offset just past the pointer.
        self._check(offset, 1)
        control_byte = self.db[offset]
        offset += 1

        field_type = control_byte >> 5

        if field_type == types.TYPE_POINTER:
            # Pointers to pointers are not allowed by the format.
            if not follow_pointer:
                raise EngineError(INVALID_DATA_ERROR)

            pointer, offset = self._read_pointer(control_byte, offset)
            node, target_end, _ = self._read_field(self.pointer_base + pointer,
                                                   False)
            return node, target_end, offset

        if field_type == types.TYPE_EXTENDED:
            self._check(offset, 1)
            field_type = 7 + self.db[offset]
            offset += 1
            if field_type <= types.TYPE_MAP:
                raise EngineError(INVALID_DATA_ERROR)

        field_length, offset = self._read_length(control_byte & 0x1f, offset)
        value, offset = self._read_payload(field_type, field_length, offset)

        return EntryData(field_type, field_length, value), offset, None

    def _read_length(self, size, offset):
        # Sizes 29 to 31 are followed by 1 to 3 bytes added to a base.
        if size < 29:
            return size, offset

        extra = size - 28
        self._check(offset, extra)
        return (_LENGTH_BASES[extra] + self._read_uint(offset, extra),
                offset + extra)

    def _read_pointer(self, control_byte, offset):
        size = ((control_byte >> 3) & 0x03) + 1
        self._check(offset, size)
        pointer = self._read_uint(offset, size)

        # The 4 byte form ignores the low control bits and has no base.
        if size < 4:
            pointer += ((control_byte & 0x07) << (8 * size)) + \
                _POINTER_BASES[size]

        return pointer, offset + size

    def _read_payload(self, field_type, field_length, offset):
        if field_type in (types.TYPE_UTF8, types.TYPE_BYTES):
            self._check(offset, field_length)
            return self.db[offset:offset+field_length], offset + field_length

        elif field_type == types.TYPE_DOUBLE:
            if field_length != 8:
                raise EngineError(INVALID_DATA_ERROR)
            self._check(offset, 8)
            value, = struct.unpack_from('>d', self.db, offset)
            return value, offset + 8

        elif field_type == types.TYPE_FLOAT:
            if field_length != 4:
                raise EngineError(INVALID_DATA_ERROR)
            self._check(offset, 4)
            value, = struct.unpack_from('>f', self.db, offset)
            return value, offset + 4

        elif field_type in types.INTEGER_SIZES:
            if field_length > types.INTEGER_SIZES[field_type]:
                raise EngineError(INVALID_DATA_ERROR)
            self._check(offset, field_length)

            if field_type == types.TYPE_UINT128 and self.uint128_as_bytes:
                raw = self.db[offset:offset+field_length]
                return b'\x00' * (16 - field_length) + raw, \
                    offset + field_length

            value = self._read_uint(offset, field_length)
            if (field_type == types.TYPE_INT32 and field_length == 4 and
                    value & 0x80000000):
                value -= 1 << 32
            return value, offset + field_length

        elif field_type == types.TYPE_BOOLEAN:
            if field_length > 1:
                raise EngineError(INVALID_DATA_ERROR)
            return field_length == 1, offset

        elif field_type in (types.TYPE_MAP, types.TYPE_ARRAY,
                            types.TYPE_DATA_CACHE_CONTAINER,
                            types.TYPE_END_MARKER):
            return None, offset

        else:
            raise EngineError(INVALID_DATA_ERROR)

    def _read_uint(self, offset, length):
        return int.from_bytes(self.db[offset:offset+length], 'big')


def next_sibling(node):
    """Return the node following the subtree that starts at ``node``."""
    remaining = 1
    while remaining and node is not None:
        if node.type == types.TYPE_MAP:
            remaining += 2 * node.data_size
        elif node.type == types.TYPE_ARRAY:
            remaining += node.data_size
        remaining -= 1
        node = node.next

    return node


class Engine(object):
    """A memory-mapped MaxMind DB file.

    Opening reads and checks the metadata. ``lookup`` walks the search tree
    and the ``get_*`` methods flatten records and metadata into
    ``EntryDataList`` objects.
    """

    def __init__(self, filename, uint128_as_bytes=True):
        self.filename = filename
        self.uint128_as_bytes = uint128_as_bytes
        self._ipv4_start = None

        try:
            with open(filename, 'rb') as f:
                self.db = mmap.mmap(f.fileno(), 0, access=mmap.ACCESS_READ)
        except (OSError, ValueError) as ex:
            # mmap refuses empty files with ValueError.
            logger.debug('Cannot map %s: %s', filename, ex)
            raise EngineError(FILE_OPEN_ERROR) from ex

        try:
            self._read_metadata()
        except EngineError:
            self.close()
            raise

        logger.debug('Opened %s: ip_version=%d node_count=%d record_size=%d',
                     filename, self.ip_version, self.node_count,
                     self.record_size)

    def _read_metadata(self):
        size = len(self.db)
        start = max(0, size - types.METADATA_SEARCH_SIZE)
        marker_offset = self.db.rfind(types.METADATA_MAGIC, start)
        if marker_offset < 0:
            raise EngineError(INVALID_METADATA_ERROR)

        self.metadata_offset = marker_offset + len(types.METADATA_MAGIC)
        self._metadata_decoder = DataDecoder(self.db, self.metadata_offset,
                                             size, self.uint128_as_bytes)

        with self.get_metadata_as_entry_data_list() as entry_list:
            fields = _integer_fields(entry_list.head)

        try:
            major_version = fields[b'binary_format_major_version']
            self.node_count = fields[b'node_count']
            self.record_size = fields[b'record_size']
            self.ip_version = fields[b'ip_version']
        except KeyError:
            raise EngineError(INVALID_METADATA_ERROR)

        if major_version != 2:
            raise EngineError(UNKNOWN_DATABASE_FORMAT_ERROR)

        if self.record_size not in (24, 28, 32):
            raise EngineError(UNKNOWN_DATABASE_FORMAT_ERROR)
        self.node_byte_size = self.record_size // 4

        if self.ip_version not in (4, 6):
            raise EngineError(INVALID_METADATA_ERROR)

        search_tree_size = self.node_byte_size * self.node_count
        self.data_offset = (search_tree_size +
                            types.DATA_SECTION_SEPARATOR_SIZE)
        if self.data_offset > marker_offset:
            raise EngineError(INVALID_METADATA_ERROR)

        self.data_section_end = marker_offset
        self._data_decoder = DataDecoder(self.db, self.data_offset,
                                         marker_offset, self.uint128_as_bytes)

    def _read_node(self, node_idx):
        size = self.node_byte_size
        offset = node_idx * size
        node = int.from_bytes(self.db[offset:offset+size], 'big')

        if self.record_size == 28:
            # The middle byte holds the top nibble of each record.
            left = (node >> 32) | (((node >> 28) & 0x0f) << 24)
            return left, node & 0x0fffffff

        return (node >> self.record_size,
                node & ((1 << self.record_size) - 1))

    def _ipv4_start_node(self):
        # IPv4 addresses live under ::/96 of an IPv6 tree.
        if self._ipv4_start is None:
            node = 0
            depth = 0
            while depth < 96 and node < self.node_count:
                node = self._read_node(node)[0]
                depth += 1
            self._ipv4_start = (node, depth)

        return self._ipv4_start

    def lookup(self, packed):
        """Walk the tree for a 4 or 16 byte address; return a LookupResult."""
        bit_count = len(packed) * 8
        if bit_count == 128 and self.ip_version == 4:
            raise EngineError(IPV6_LOOKUP_IN_IPV4_DATABASE_ERROR)

        if bit_count == 32 and self.ip_version == 6:
            node, netmask = self._ipv4_start_node()
        else:
            node, netmask = 0, 0

        node_count = self.node_count
        for i in range(bit_count):
            if node >= node_count:
                break
            bit = (packed[i >> 3] >> (7 - i % 8)) & 1
            node = self._read_node(node)[bit]
            netmask += 1

        if node == node_count:
            # No information about particular network.
            return LookupResult(False, netmask, 0)

        elif node > node_count:
            return LookupResult(True, netmask, self._resolve_record(node))

        raise EngineError(CORRUPT_SEARCH_TREE_ERROR)

    def _resolve_record(self, idx):
        offset = (self.data_offset + idx - self.node_count -
                  types.DATA_SECTION_SEPARATOR_SIZE)
        if offset < self.data_offset or offset >= self.data_section_end:
            raise EngineError(CORRUPT_SEARCH_TREE_ERROR)

        return offset

    def get_entry_data_list(self, entry):
        """Flatten the record at data section offset ``entry``."""
        return self._data_decoder.entry_data_list(entry)

    def get_metadata_as_entry_data_list(self):
        """Flatten the metadata map."""
        return self._metadata_decoder.entry_data_list(self.metadata_offset)

    def close(self):
        """Unmap the file. Safe to call more than once."""
        if self.db is not None:
            self.db.close()
            self.db = None
            logger.debug('Closed %s', self.filename)


def _integer_fields(head):
    # Integer valued top level fields of the metadata map, by raw key.
    if head is None or head.type != types.TYPE_MAP:
        raise EngineError(INVALID_METADATA_ERROR)

    fields = {}
    node = head.next
    for _ in range(head.data_size):
        if node is None or node.next is None:
            raise EngineError(INVALID_METADATA_ERROR)

        key, value = node, node.next
        if (key.type == types.TYPE_UTF8 and
                value.type in (types.TYPE_UINT16, types.TYPE_UINT32,
                               types.TYPE_UINT64)):
            fields[bytes(key.value)] = value.value

        node = next_sibling(value)

    return fields
