from .decoder import EntryDataCursor, decode_entry_data_list
from .engine import EngineError, IPV6_LOOKUP_IN_IPV4_DATABASE_ERROR
from .errors import InvalidAddressError, InvalidDatabaseError


def lookup(engine, address):
    """Return ``(record, prefix_len)`` for a ``CanonicalAddress``.

    ``record`` is ``None`` when the database has no data for the address.
    """
    try:
        result = engine.lookup(address.packed)
    except EngineError as ex:
        if ex.status == IPV6_LOOKUP_IN_IPV4_DATABASE_ERROR:
            exception = InvalidAddressError
        else:
            exception = InvalidDatabaseError
        raise exception('Error looking up {}. {}'.format(
            address, ex.strerror)) from ex

    prefix_len = result.netmask
    if address.version == 4 and engine.ip_version == 6:
        # The IPv4 subtree starts 96 bits down an IPv6 tree. Without one
        # the prefix length is 0.
        prefix_len = prefix_len - 96 if prefix_len >= 96 else 0

    if not result.found:
        return None, prefix_len

    try:
        entry_list = engine.get_entry_data_list(result.entry)
    except EngineError as ex:
        raise InvalidDatabaseError('Error while looking up data for {}. {}'
                                   .format(address, ex.strerror)) from ex

    with entry_list:
        record = decode_entry_data_list(EntryDataCursor(entry_list.head))

    return record, prefix_len
