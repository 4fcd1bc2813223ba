"""
Command line access to archived NDBC buoy data.

Usage:
    # List buoys in a dataset
    ndbc-archive buoys cwind

    # List files for a buoy
    ndbc-archive files cwind 46085

    # Download and decode the first file for a buoy
    ndbc-archive get cwind 46085

    # Specific year and datatype
    ndbc-archive get cwind 45005 --year 2008 --datatype c

    # Station locations (slow with --refresh)
    ndbc-archive stations --refresh
"""

import argparse
import logging
import sys

import httpx

from .catalog import buoy_files, buoys, find_buoy
from .config import DATASETS
from .exceptions import BuoyError, BuoyNotFoundError
from .fetcher import buoy
from .stations import buoy_stations

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="ndbc-archive",
        description="Get archived buoy data from the National Data Buoy Center",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="Datasets:\n" + "\n".join(
            f"  {name:<8} {description}" for name, description in DATASETS.items()
        ),
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Log debug output'
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    buoys_parser = subparsers.add_parser('buoys', help='List buoys available in a dataset')
    buoys_parser.add_argument('dataset', help='Dataset name')

    files_parser = subparsers.add_parser('files', help='List data files for a buoy')
    files_parser.add_argument('dataset', help='Dataset name')
    files_parser.add_argument('buoyid', help='Buoy ID (any case)')

    get_parser = subparsers.add_parser('get', help='Download and decode a buoy data file')
    get_parser.add_argument('dataset', help='Dataset name')
    get_parser.add_argument('buoyid', help='Buoy ID (any case)')
    get_parser.add_argument('--year', type=int, help='Year of data collection')
    get_parser.add_argument('--datatype', help="Data type code, one of 'c', 'cc', 'p', 'o'")
    get_parser.add_argument('--output-dir', help='Download directory. Default: system temp dir')
    get_parser.add_argument('--timeout', type=float, help='HTTP timeout in seconds')
    get_parser.add_argument('--rows', type=int, default=10, help='Rows to print. Default: 10')

    stations_parser = subparsers.add_parser('stations', help='Show buoy station locations')
    stations_parser.add_argument(
        '--refresh',
        action='store_true',
        help='Scrape station pages instead of reading the snapshot (slow)'
    )
    stations_parser.add_argument('--snapshot', help='Station snapshot CSV')
    stations_parser.add_argument('--rows', type=int, default=10, help='Rows to print. Default: 10')

    return parser.parse_args(argv)


def _list_files(dataset: str, buoyid: str):
    entry = find_buoy(dataset, buoyid)
    if entry is None:
        raise BuoyNotFoundError()
    return buoy_files(entry.url, buoyid)


def main(argv=None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        if args.command == 'buoys':
            for entry in buoys(args.dataset):
                print(f"{entry.id}\t{entry.url}")

        elif args.command == 'files':
            for name in _list_files(args.dataset, args.buoyid):
                print(name)

        elif args.command == 'get':
            client_options = {}
            if args.timeout is not None:
                client_options['timeout'] = args.timeout
            result = buoy(
                args.dataset,
                args.buoyid,
                year=args.year,
                datatype=args.datatype,
                output_dir=args.output_dir,
                **client_options,
            )
            print(result.summary(n=args.rows))

        elif args.command == 'stations':
            stations = buoy_stations(refresh=args.refresh, snapshot_path=args.snapshot)
            print(stations.head(args.rows).to_string(index=False))

    except (BuoyError, httpx.HTTPError, FileNotFoundError) as e:
        logger.error(str(e))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
