"""
mmdb_reader.decoder
~~~~~~~~~~~~~~~~~~~

Rebuilds Python values from the flat, pre-order entry lists produced by the
engine. A map node is followed by its key/value subtrees and an array node by
its element subtrees, so walking one shared cursor with a stack of open
containers is enough to rebuild the tree at any depth.
"""
from . import types
from .errors import InvalidDatabaseError


class EntryDataCursor(object):
    """Forward-only position in an entry list."""

    def __init__(self, head):
        self.node = head

    def take(self):
        node = self.node
        if node is None:
            raise InvalidDatabaseError(
                'Error while looking up data. Your database may be corrupt '
                'or you have found a bug in the database engine.')

        self.node = node.next
        return node


class _OpenContainer(object):
    __slots__ = ('value', 'remaining', 'key')

    def __init__(self, value, remaining):
        self.value = value
        self.remaining = remaining
        self.key = None


def decode_entry_data_list(cursor):
    """Decode the subtree at the cursor and move the cursor past it."""
    stack = []
    while True:
        node = cursor.take()

        if node.type in (types.TYPE_MAP, types.TYPE_ARRAY):
            value = {} if node.type == types.TYPE_MAP else []
            if node.data_size:
                container = _OpenContainer(value, node.data_size)
                if node.type == types.TYPE_MAP:
                    container.key = _map_key(cursor)
                stack.append(container)
                continue
        else:
            value = _from_scalar(node)

        # Hand the finished value to its parent, closing every container
        # that it completes.
        while stack:
            container = stack[-1]
            if container.key is None:
                container.value.append(value)
            else:
                container.value[container.key] = value

            container.remaining -= 1
            if container.remaining:
                if container.key is not None:
                    container.key = _map_key(cursor)
                break

            stack.pop()
            value = container.value
        else:
            return value


def _map_key(cursor):
    node = cursor.take()
    if node.type != types.TYPE_UTF8:
        raise InvalidDatabaseError(
            'Invalid map key type: {}'.format(node.type))

    return _from_utf8(node)


def _from_scalar(node):
    if node.type == types.TYPE_UTF8:
        return _from_utf8(node)

    elif node.type == types.TYPE_BYTES:
        return bytes(node.value)

    elif node.type in (types.TYPE_DOUBLE, types.TYPE_FLOAT):
        return float(node.value)

    elif node.type in (types.TYPE_UINT16, types.TYPE_UINT32,
                       types.TYPE_UINT64, types.TYPE_INT32):
        return int(node.value)

    elif node.type == types.TYPE_BOOLEAN:
        return bool(node.value)

    elif node.type == types.TYPE_UINT128:
        return from_uint128(node)

    raise InvalidDatabaseError(
        'Invalid data type arguments: {}'.format(node.type))


def _from_utf8(node):
    try:
        return bytes(node.value).decode('utf-8')
    except UnicodeDecodeError as ex:
        raise InvalidDatabaseError(
            'Invalid UTF-8 string in database: {}'.format(ex)) from ex


def from_uint128(node):
    """Return the uint128 payload of ``node`` as an ``int``.

    The engine hands the value over either as 16 big-endian bytes or as an
    integer; both give the same number.
    """
    value = node.value
    if isinstance(value, int):
        high = value >> 64
        low = value & 0xffffffffffffffff
    else:
        value = bytes(value).rjust(16, b'\x00')
        high = 0
        for b in value[:8]:
            high = (high << 8) | b
        low = 0
        for b in value[8:]:
            low = (low << 8) | b

    return int('{:016X}{:016X}'.format(high, low), 16)
