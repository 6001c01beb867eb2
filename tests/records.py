from mmdb_writer import Double, Float, Int32, Uint16, Uint32, Uint64, Uint128

AU_RECORD = {
    'country': {'iso_code': 'AU',
                'geoname_id': Uint32(2077456),
                'names': {'en': 'Australia', 'de': 'Australien'}},
    'location': {'latitude': Double(-27.5),
                 'longitude': Double(153.0),
                 'accuracy_radius': Uint16(1000)},
    'subdivisions': [{'iso_code': 'QLD'}, {'iso_code': 'NSW'}],
    'is_anycast': True,
    'is_satellite': False,
    'big': Uint128(2 ** 128 - 1),
    'uint64': Uint64(2 ** 64 - 1),
    'int32': Int32(-268435456),
    'float': Float(1.5),
    'raw': b'\x00\x01\xfe',
    'utf8': 'Zürich {"not": ["json"]}',
}

AU_EXPECTED = {
    'country': {'iso_code': 'AU',
                'geoname_id': 2077456,
                'names': {'en': 'Australia', 'de': 'Australien'}},
    'location': {'latitude': -27.5,
                 'longitude': 153.0,
                 'accuracy_radius': 1000},
    'subdivisions': [{'iso_code': 'QLD'}, {'iso_code': 'NSW'}],
    'is_anycast': True,
    'is_satellite': False,
    'big': 2 ** 128 - 1,
    'uint64': 2 ** 64 - 1,
    'int32': -268435456,
    'float': 1.5,
    'raw': b'\x00\x01\xfe',
    'utf8': 'Zürich {"not": ["json"]}',
}

FR_RECORD = {'country': {'iso_code': 'FR'}}
DOC_RECORD = {'country': {'iso_code': 'ZZ'}, 'documentation': True}

IPV4_NETWORKS = [
    ('1.2.3.0/24', AU_RECORD),
    ('81.2.69.128/26', FR_RECORD),
]

IPV6_NETWORKS = IPV4_NETWORKS + [
    ('2001:db8::/32', DOC_RECORD),
]
