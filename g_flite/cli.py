"""
Command line entry point.

    g-flite TEXTFILE WAVFILE [--subtasks NUM] [--datadir PATH]
            [--address ADDR] [--port PORT] [--verbose]
"""

import argparse
import logging
import signal
import sys
import threading
from typing import List, Optional

from g_flite import __version__
from g_flite.conf import (
    ASSETS_DIR,
    DEFAULT_ADDRESS,
    DEFAULT_DATADIR,
    DEFAULT_NUM_SUBTASKS,
    DEFAULT_PORT,
    POLL_INTERVAL,
    POLL_TIMEOUT,
    REQUEST_TIMEOUT,
    WORKSPACE_ROOT,
)
from g_flite.core.exceptions import GFliteError

logger = logging.getLogger(__name__)


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='g-flite',
        description='flite, a text-to-speech program, distributed over a compute network',
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('textfile', metavar='TEXTFILE', help='Input text file')
    parser.add_argument('wavfile', metavar='WAVFILE', help='Output WAV file')
    parser.add_argument(
        '--subtasks', metavar='NUM', type=positive_int, default=DEFAULT_NUM_SUBTASKS,
        help=f'Sets number of subtasks (default: {DEFAULT_NUM_SUBTASKS})'
    )
    parser.add_argument(
        '--datadir', metavar='DATADIR', default=DEFAULT_DATADIR,
        help='Sets path to the node datadir'
    )
    parser.add_argument(
        '--address', metavar='ADDRESS', default=DEFAULT_ADDRESS,
        help=f'Sets RPC address of the compute node (default: {DEFAULT_ADDRESS})'
    )
    parser.add_argument(
        '--port', metavar='PORT', type=int, default=DEFAULT_PORT,
        help=f'Sets RPC port of the compute node (default: {DEFAULT_PORT})'
    )
    parser.add_argument(
        '--assets', metavar='DIR', default=ASSETS_DIR, required=ASSETS_DIR is None,
        help='Directory holding flite.js and flite.wasm '
             '(required unless G_FLITE_ASSETS_DIR is set)'
    )
    parser.add_argument(
        '--workspace', metavar='DIR', default=WORKSPACE_ROOT,
        help='Parent directory of the per-run workspace'
    )
    parser.add_argument(
        '--keep-workspace', action='store_true',
        help='Do not delete the workspace when done'
    )
    parser.add_argument(
        '--poll-interval', metavar='SECONDS', type=float, default=POLL_INTERVAL,
        help=f'Seconds between status queries (default: {POLL_INTERVAL})'
    )
    parser.add_argument(
        '--timeout', metavar='SECONDS', type=float, default=POLL_TIMEOUT,
        help='Give up waiting after this many seconds (default: no limit)'
    )
    parser.add_argument(
        '-v', '--verbose', action='store_true',
        help='Turns verbose logging on'
    )
    return parser


def setup_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run g-flite.

    Returns:
        int: 0 on success, 1 on error, 130 when interrupted
    """
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    from g_flite.distributed.client import CeleryComputeClient
    from g_flite.distributed.coordinator import FliteCoordinator
    from g_flite.distributed.payload import Payload

    cancel_event = threading.Event()
    previous_handler = signal.signal(signal.SIGTERM, lambda signum, frame: cancel_event.set())

    try:
        payload = Payload.from_dir(args.assets)
        with CeleryComputeClient(
            args.address, args.port, args.datadir, request_timeout=REQUEST_TIMEOUT
        ) as client:
            coordinator = FliteCoordinator(
                client,
                payload,
                workspace_root=args.workspace,
                keep_workspace=args.keep_workspace,
                poll_interval=args.poll_interval,
                poll_timeout=args.timeout,
            )
            coordinator.run(args.textfile, args.wavfile, args.subtasks, cancel_event)
    except GFliteError as e:
        logger.debug("Run failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return 130
    finally:
        if previous_handler is not None:
            signal.signal(signal.SIGTERM, previous_handler)

    return 0
