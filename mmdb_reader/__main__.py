"""
Look up addresses in a MaxMind DB file and print the records as JSON.

Usage:
  python -m mmdb_reader DATABASE [IP ...] [--metadata] [-v]
"""
from .errors import MaxMindDBError
from .reader import open_database
import argparse
import ipaddress
import json
import logging
import sys

logger = logging.getLogger(__name__)


def _json_default(value):
    if isinstance(value, (bytes, bytearray)):
        return value.hex()
    raise TypeError('{!r} is not JSON serializable'.format(value))


def network_for(ip_address, prefix_len):
    """Render the network an address was found in, e.g. ``1.2.3.0/24``."""
    address = ipaddress.ip_address(ip_address)
    return str(ipaddress.ip_network((address, prefix_len), strict=False))


def dump_record(ip_address, record, prefix_len):
    return json.dumps({'ip': ip_address,
                       'network': network_for(ip_address, prefix_len),
                       'record': record},
                      default=_json_default, sort_keys=True)


def main(argv=None):
    ap = argparse.ArgumentParser(
        prog='mmdb_reader',
        description='Look up IP addresses in a MaxMind DB file.')
    ap.add_argument('database', help='path to the .mmdb file')
    ap.add_argument('addresses', nargs='*', metavar='IP',
                    help='IPv4 or IPv6 addresses to look up')
    ap.add_argument('--metadata', action='store_true',
                    help='print the database metadata')
    ap.add_argument('-v', '--verbose', action='store_true',
                    help='enable debug logging')
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else
                        logging.WARNING)

    try:
        with open_database(args.database) as reader:
            if args.metadata:
                print(json.dumps(reader.metadata().as_dict(),
                                 default=_json_default, sort_keys=True))

            for ip_address in args.addresses:
                record, prefix_len = reader.get_with_prefix_len(ip_address)
                logger.debug('%s: prefix length %d', ip_address, prefix_len)
                print(dump_record(ip_address, record, prefix_len))

    except (MaxMindDBError, OSError) as ex:
        print('error: {}'.format(ex), file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
