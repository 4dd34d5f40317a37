"""
Command-line entry point for the gpsdash dashboard.
"""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .config import Config, resolve_config
from .dashboard import DashboardLoop, DashboardState
from .exceptions import ConfigurationError, SourceError
from .gpsd_client import GpsdClient
from .screen import open_screen
from .utils import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='gpsdash',
        description='Live terminal dashboard for gpsd position and satellite data')
    parser.add_argument('-V', '--version', action='version',
                        version=f'%(prog)s {__version__}')
    parser.add_argument('-s', '--silent', action='store_true', default=None,
                        help='Start with the raw log panel silenced')
    parser.add_argument('-m', '--magnetic', action='store_true', default=None,
                        help='Show heading relative to magnetic north')
    parser.add_argument('-l', '--degree-format', choices=['d', 'm', 's'],
                        help='Latitude/longitude format: d=DD.ddddddd, m=DD MM.mmmm, s=DD MM SS.sss')
    parser.add_argument('-u', '--units', metavar='{imperial,nautical,metric}',
                        help='Unit system (also i, n or m); detected from the locale by default')
    parser.add_argument('-a', '--attitude', action='store_const', const='attitude', dest='mode',
                        help='Show heading/attitude data instead of the position fix')
    parser.add_argument('-c', '--config', help='JSON configuration file')
    parser.add_argument('--log-file', help='Write diagnostic log to this file')
    parser.add_argument('--log-level', help='Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)')
    parser.add_argument('source', nargs='?', metavar='server[:port[:device]]',
                        help='gpsd server to connect to (default localhost:2947)')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    overrides = {
        'silent': args.silent,
        'magnetic': args.magnetic,
        'degree_format': args.degree_format,
        'units': args.units,
        'mode': args.mode,
        'source': args.source,
        'log_file': args.log_file,
        'log_level': args.log_level,
    }
    try:
        config = resolve_config(Config(args.config), overrides)
    except ConfigurationError as e:
        print(f"gpsdash: {e}", file=sys.stderr)
        return 1

    try:
        setup_logging(config.log_file, config.log_level)
    except OSError as e:
        print(f"gpsdash: cannot open log file: {e}", file=sys.stderr)
        return 1
    logger.info(f"Starting gpsdash {__version__} against {config.host}:{config.port}")

    source = GpsdClient(config.host, config.port, config.mode)
    try:
        source.connect()
        source.stream(config.device)
    except SourceError as e:
        source.close()
        print(f"gpsdash: {e}", file=sys.stderr)
        return 1

    state = DashboardState(units=config.units, degree_format=config.degree_format,
                           magnetic=config.magnetic, silent=config.silent, mode=config.mode)
    with open_screen() as screen:
        result = DashboardLoop(source, screen, state).run()

    if result.message:
        print(result.message, file=sys.stderr)
    return result.exit_status


if __name__ == '__main__':
    sys.exit(main())
