import argparse
import logging
import sys
import textwrap
import time

from . import Scanner, ScanSettings, ProgressReporter
from .commands.scan import DEFAULT_PROGRESS_INTERVAL, VERBOSE_PROGRESS_INTERVAL
from .index.settings import parse_size
from .report.writer import DEFAULT_OUTPUT, FORMATS, STDOUT, write_report
from .scanner import configure_logging
from .utils.fingerprint import ALGORITHMS
from .utils.profiling import profile_main


class ConsoleProgressReporter(ProgressReporter):
    def __init__(self, stream=None):
        self._stream = stream if stream is not None else sys.stderr

    def progress(self, processed: int, unique: int):
        print(f"Processed approximately {unique} unique hashes", file=self._stream)

    def finished(self, processed: int, skipped: int):
        print(f"Processed {processed} files", file=self._stream)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='hashdup',
        description='Scan a directory tree, fingerprint every regular file and report groups of files with the '
                    'same content.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent('''
            Examples:
              hashdup /home/user/photos
              hashdup --format text --verify /data
              hashdup --max-file-size 500M --workers 32 --output dups.json /srv

            Files that are empty or larger than --max-file-size are not considered.
            Fingerprints are truncated digests; use --verify to confirm groups byte by byte.
            ''').strip())
    parser.add_argument(
        'root',
        metavar='ROOT',
        help='Directory to scan')
    parser.add_argument(
        '--output', '-o',
        metavar='PATH',
        help=f'Where to write the report, "-" for standard output (default: {DEFAULT_OUTPUT} for json and msgpack, '
             f'standard output for text)')
    parser.add_argument(
        '--format',
        choices=sorted(FORMATS),
        default='json',
        help='Report format (default: json)')
    parser.add_argument(
        '--verify',
        action='store_true',
        help='Compare the content of grouped files and only report groups that are byte-for-byte identical')
    parser.add_argument(
        '--workers',
        type=int,
        metavar='N',
        help='Number of concurrent file processors (default: 16)')
    parser.add_argument(
        '--max-file-size',
        type=parse_size,
        metavar='SIZE',
        help='Skip files larger than SIZE bytes; K, M and G suffixes are accepted (default: 1M)')
    parser.add_argument(
        '--progress-interval',
        type=int,
        metavar='N',
        help=f'Report progress every N fingerprinted files (default: {DEFAULT_PROGRESS_INTERVAL}, '
             f'{VERBOSE_PROGRESS_INTERVAL} with --verbose)')
    parser.add_argument(
        '--algorithm',
        choices=sorted(ALGORITHMS),
        help='Fingerprint algorithm (default: md5)')
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Report progress more often')
    parser.add_argument(
        '--config',
        metavar='PATH',
        help='Path to a TOML settings file. If not provided, uses the HASHDUP_CONFIG environment variable.')
    parser.add_argument(
        '--log-file',
        metavar='PATH',
        help='Path to log file. If not provided, uses logging.path from the settings file or logs warnings to '
             'standard error.')
    parser.add_argument(
        '--log-level',
        metavar='LEVEL',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Defaults to INFO when logging to a file.')
    return parser


@profile_main
def hashdup_main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    start_time = time.monotonic()
    try:
        try:
            settings = ScanSettings.from_environment(args.config)
        except (OSError, ValueError) as e:
            parser.error(f"cannot read settings: {e}")

        try:
            logging_configured = configure_logging(settings, args.log_file, args.log_level)
        except ValueError as e:
            parser.error(str(e))
        if not logging_configured:
            logging.basicConfig(level=logging.WARNING, format='%(levelname)s: %(message)s')

        progress_interval = args.progress_interval
        if progress_interval is None and args.verbose:
            progress_interval = VERBOSE_PROGRESS_INTERVAL

        try:
            scanner = Scanner.from_settings(
                settings,
                ConsoleProgressReporter(),
                max_file_size=args.max_file_size,
                worker_count=args.workers,
                progress_interval=progress_interval,
                algorithm=args.algorithm)
            index = scanner.run(args.root)
        except ValueError as e:
            parser.error(str(e))

        destination = args.output
        if destination is None:
            destination = STDOUT if args.format == 'text' else DEFAULT_OUTPUT

        try:
            write_report(scanner.duplicates(index, verify=args.verify), args.format, destination)
        except OSError as e:
            print(f"Error writing report to {destination}: {e}", file=sys.stderr)
            return 1

        return 0
    finally:
        print(f"Time taken: {time.monotonic() - start_time:.2f}s", file=sys.stderr)


def main():
    sys.exit(hashdup_main())


if __name__ == '__main__':
    main()
