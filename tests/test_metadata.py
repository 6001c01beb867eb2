from mmdb_reader import types
from mmdb_reader.decoder import EntryDataCursor
from mmdb_reader.engine import DataDecoder
from mmdb_reader.errors import InvalidDatabaseError
from mmdb_reader.metadata import (FIELDS, Metadata, materialize,
                                  metadata_from_entry_data_list)
from mmdb_writer import MMDBMeta, Uint16, make_value_header, serialize_value

import pytest


def entry_list(value):
    buf = serialize_value(value)
    return DataDecoder(buf, 0, len(buf)).entry_data_list(0)


def test_materialize_full_metadata():
    meta = MMDBMeta(6)
    meta.node_count = 1234
    meta.record_size = 28

    metadata = metadata_from_entry_data_list(entry_list(meta.get()))

    assert metadata == Metadata(
        binary_format_major_version=2,
        binary_format_minor_version=0,
        build_epoch=1500000000,
        database_type='Test-DB',
        description={'en': 'Test database', 'de': 'Testdatenbank'},
        ip_version=6,
        languages=['en', 'de'],
        node_count=1234,
        record_size=28,
    )
    assert metadata.node_byte_size == 7
    assert metadata.search_tree_size == 1234 * 7


def test_missing_fields_stay_unset():
    metadata = metadata_from_entry_data_list(
        entry_list({'database_type': 'Partial'}))

    assert metadata.database_type == 'Partial'
    for name in FIELDS:
        if name != 'database_type':
            assert getattr(metadata, name) is None
    assert metadata.node_byte_size is None
    assert metadata.search_tree_size is None


def test_unknown_fields_are_ignored():
    metadata = metadata_from_entry_data_list(
        entry_list({'database_type': 'X', 'vendor': 'someone'}))

    assert metadata.database_type == 'X'
    assert not hasattr(metadata, 'vendor')


def test_metadata_is_read_only():
    metadata = Metadata(ip_version=4)

    with pytest.raises(AttributeError):
        metadata.ip_version = 6
    with pytest.raises(AttributeError):
        metadata.extra = 1
    with pytest.raises(AttributeError):
        del metadata.ip_version

    assert metadata.ip_version == 4


def test_repr_lists_every_field():
    text = repr(Metadata(ip_version=4, languages=['en']))

    assert text.startswith('mmdb_reader.metadata.Metadata(')
    assert "ip_version=4" in text
    assert "languages=['en']" in text
    assert "node_count=None" in text


def test_non_map_metadata_is_rejected():
    with pytest.raises(InvalidDatabaseError, match='Error decoding metadata'):
        metadata_from_entry_data_list(entry_list(['a', 'b']))


def test_decode_failure_is_reported_as_metadata_error():
    buf = make_value_header(types.TYPE_MAP, 1) + serialize_value('key') + \
        make_value_header(types.TYPE_END_MARKER, 0)
    cursor = EntryDataCursor(DataDecoder(buf, 0, len(buf))
                             .entry_data_list(0).head)

    with pytest.raises(InvalidDatabaseError,
                       match='Error decoding metadata') as excinfo:
        materialize(cursor)

    assert 'Invalid data type arguments: 13' in str(excinfo.value.__cause__)


def test_entry_list_is_freed():
    entries = entry_list({'ip_version': Uint16(4)})

    metadata_from_entry_data_list(entries)

    assert entries.freed
