from mmdb_reader.address import CanonicalAddress, resolve_address
from mmdb_reader.errors import InvalidAddressError, InvalidAddressTypeError
import ipaddress
import socket

import pytest


@pytest.mark.parametrize(
    'text, family, packed',
    [
        ('1.2.3.4', socket.AF_INET, b'\x01\x02\x03\x04'),
        ('0.0.0.0', socket.AF_INET, b'\x00' * 4),
        ('::1', socket.AF_INET6, b'\x00' * 15 + b'\x01'),
        ('2001:db8::ff00:42:8329', socket.AF_INET6,
         ipaddress.IPv6Address('2001:db8::ff00:42:8329').packed),
        ('::ffff:1.2.3.4', socket.AF_INET6,
         b'\x00' * 10 + b'\xff\xff\x01\x02\x03\x04'),
    ],
)
def test_text_addresses_keep_their_family(text, family, packed):
    address = resolve_address(text)

    assert address == CanonicalAddress(family, packed)
    assert address.version == (4 if family == socket.AF_INET else 6)
    assert address.bit_count == len(packed) * 8


@pytest.mark.parametrize('obj', [ipaddress.ip_address('81.2.69.160'),
                                 ipaddress.ip_address('2001:db8::1')])
def test_ipaddress_objects_use_packed_bytes(obj):
    address = resolve_address(obj)

    assert address.packed == obj.packed
    assert address.version == obj.version
    assert str(address) == str(obj)


@pytest.mark.parametrize('text', ['', 'not an ip', '1.2.3', '1.2.3.256',
                                  '::g', 'example.com', '1.2.3.4/24'])
def test_malformed_text_is_rejected(text):
    with pytest.raises(InvalidAddressError, match='does not appear to be'):
        resolve_address(text)


def test_embedded_null_is_rejected():
    with pytest.raises(InvalidAddressTypeError, match='null character'):
        resolve_address('1.2.3.4\0')


class Packed(object):
    def __init__(self, packed):
        self.packed = packed


@pytest.mark.parametrize('length', [0, 1, 3, 5, 8, 15, 17, 32])
def test_unexpected_packed_length_is_rejected(length):
    with pytest.raises(InvalidAddressError, match='unexpected packed length'):
        resolve_address(Packed(b'\x01' * length))


@pytest.mark.parametrize('obj', [None, 16843009, b'\x01\x02\x03\x04',
                                 Packed('1.2.3.4'), object()])
def test_wrong_types_are_rejected(obj):
    with pytest.raises(InvalidAddressTypeError):
        resolve_address(obj)


def test_type_errors_are_also_builtin_type_and_value_errors():
    with pytest.raises(TypeError):
        resolve_address(None)
    with pytest.raises(ValueError):
        resolve_address(None)
