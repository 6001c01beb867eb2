from mmdb_writer import write_database
from records import DOC_RECORD, IPV4_NETWORKS, IPV6_NETWORKS
import pytest


@pytest.fixture(params=[24, 28, 32])
def record_size(request):
    return request.param


@pytest.fixture
def ipv6_db(tmp_path, record_size):
    path = tmp_path / 'test-ipv6-{}.mmdb'.format(record_size)
    write_database(str(path), IPV6_NETWORKS, ip_version=6,
                   record_size=record_size)
    return path


@pytest.fixture
def ipv4_db(tmp_path):
    path = tmp_path / 'test-ipv4.mmdb'
    write_database(str(path), IPV4_NETWORKS, ip_version=4)
    return path


@pytest.fixture
def ipv6_only_db(tmp_path):
    # An IPv6 tree without an IPv4 subtree.
    path = tmp_path / 'test-ipv6-only.mmdb'
    write_database(str(path), [('2001:db8::/32', DOC_RECORD)], ip_version=6)
    return path
