"""
mmdb_reader.address
~~~~~~~~~~~~~~~~~~~

Turns the caller's ``ip_address`` argument into the fixed-size key the search
tree is walked with.
"""
from .errors import InvalidAddressError, InvalidAddressTypeError
from collections import namedtuple
import ipaddress
import socket


class CanonicalAddress(namedtuple('CanonicalAddress', ['family', 'packed'])):
    __slots__ = ()

    @property
    def version(self):
        return 4 if self.family == socket.AF_INET else 6

    @property
    def bit_count(self):
        return len(self.packed) * 8

    def __str__(self):
        return socket.inet_ntop(self.family, self.packed)


def resolve_address(ip_address):
    """Return a ``CanonicalAddress`` for text or an object with ``packed``.

    Text must be a numeric IPv4 or IPv6 address; host names are never
    resolved.
    """
    if isinstance(ip_address, str):
        if '\0' in ip_address:
            raise InvalidAddressTypeError(
                'argument 1 contains an embedded null character')

        try:
            packed = ipaddress.ip_address(ip_address).packed
        except ValueError:
            raise InvalidAddressError(
                "'{}' does not appear to be an IPv4 or IPv6 address."
                .format(ip_address)) from None

    else:
        packed = getattr(ip_address, 'packed', None)
        if not isinstance(packed, bytes):
            raise InvalidAddressTypeError(
                'argument 1 must be a string or ipaddress object')

    if len(packed) == 4:
        return CanonicalAddress(socket.AF_INET, packed)

    elif len(packed) == 16:
        return CanonicalAddress(socket.AF_INET6, packed)

    raise InvalidAddressError(
        'argument 1 returned an unexpected packed length for address')
