import argparse
import logging
import os
import signal
import sys
import textwrap
from contextlib import contextmanager, nullcontext
from pathlib import Path

from . import (AuditSettings, Cancellation, CompareMode, ConsoleProgress, DEFAULT_COMPARE_MODE, DuplicateScanner,
               Processor, ProgressReporter, ReportRenderer, ScanCancelled, ScanState, WalkPolicy, export_csv,
               processor_verify_args)
from .records import printable
from .utils.profiling import profile_main
from .verifier import DEFAULT_SAMPLE_SIZE, DEFAULT_SAMPLE_THRESHOLD

DEFAULT_MAX_DISPLAY = 10

LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']

EXIT_INVALID_ROOT = 1
EXIT_INTERRUPTED = 130


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='dupaudit',
        description='Find duplicate files in one or more directory trees, either by content digest or by '
                    'file name and size. Files are never modified, moved or deleted.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent('''
            Examples:
              dupaudit /srv/share
              dupaudit --mode name+size --max-display 5 /mnt/a /mnt/b
              dupaudit --mode md5 --export report.csv --exclude '*.tmp' /data

            Compare modes:
              sha256, sha1, md5  group by size, then confirm equal content with the digest
              name+size          case-insensitive file name and exact size, content is not read
            ''').strip()
    )
    parser.add_argument(
        'paths',
        nargs='+',
        metavar='PATH',
        help='Directories to scan')
    parser.add_argument(
        '--exclude',
        action='append',
        default=[],
        metavar='PATTERN',
        help='Skip files and directories whose name or absolute path matches PATTERN (shell wildcards), or that '
             'lie under PATTERN when it is an absolute path. May be given multiple times.')
    parser.add_argument(
        '--mode',
        choices=[mode.value for mode in CompareMode],
        help=f'How duplicates are detected (default: {DEFAULT_COMPARE_MODE.value})')
    parser.add_argument(
        '--export',
        metavar='PATH',
        help='Write every duplicate file as one row of a UTF-8 CSV file. Not written when nothing is found.')
    parser.add_argument(
        '--max-display',
        type=_positive_int,
        metavar='N',
        help=f'Show at most N files per group; the rest are summarized (default: {DEFAULT_MAX_DISPLAY}). '
             f'The export always contains every file.')
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Show progress while enumerating and hashing files')
    parser.add_argument(
        '--config',
        metavar='PATH',
        help='Path to a TOML settings file. If not provided, uses the DUPAUDIT_CONFIG environment variable, if set.')
    parser.add_argument(
        '--concurrency',
        type=_positive_int,
        metavar='N',
        help='Number of worker processes reading files (default: number of CPUs)')
    parser.add_argument(
        '--no-sample',
        action='store_true',
        help='Digest every candidate in full without splitting large files by a head and tail sample first')
    parser.add_argument(
        '--log-file',
        metavar='PATH',
        help='Path to log file for operation logging. If not provided, uses logging.path from settings or no '
             'logging.')
    parser.add_argument(
        '--log-level',
        metavar='LEVEL',
        choices=LOG_LEVELS,
        help='Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Defaults to INFO when logging is enabled.')
    return parser


def _resolve_log_level(args, settings: AuditSettings) -> str:
    log_level = str(args.log_level or settings.get('logging.level') or 'INFO').upper()
    if log_level not in LOG_LEVELS:
        raise ValueError(f"logging.level must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}")
    return log_level


def _configure_logging(args, settings: AuditSettings, log_level: str):
    log_file = args.log_file or settings.get('logging.path')
    if not log_file:
        return

    logging.basicConfig(
        filename=str(log_file),
        level=getattr(logging, log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def _validate_roots(paths: list[str]) -> list[Path] | None:
    """Check every root before scanning starts; report each problem on stderr."""
    roots = []
    valid = True
    for raw in paths:
        root = Path(raw).expanduser()
        if not root.exists():
            print(f"Error: path does not exist: {raw}", file=sys.stderr)
            valid = False
        elif not root.is_dir():
            print(f"Error: path is not a directory: {raw}", file=sys.stderr)
            valid = False
        elif not os.access(root, os.R_OK | os.X_OK):
            print(f"Error: path is not accessible: {raw}", file=sys.stderr)
            valid = False
        else:
            roots.append(root)

    return roots if valid else None


@contextmanager
def _cancel_on_interrupt(cancellation: Cancellation):
    def handler(signum, frame):
        cancellation.cancel()

    previous = signal.signal(signal.SIGINT, handler)
    try:
        yield cancellation
    finally:
        signal.signal(signal.SIGINT, previous)


@profile_main
def dupaudit_main(argv: list[str] | None = None):
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        settings = AuditSettings(Path(args.config) if args.config else None)
        mode = CompareMode.parse(str(args.mode or settings.get('scan.mode', DEFAULT_COMPARE_MODE.value)))
        max_display = args.max_display or settings.get_int('display.max_files', DEFAULT_MAX_DISPLAY)
        if max_display < 1:
            raise ValueError(f"display.max_files must be at least 1, got {max_display}")
        concurrency = args.concurrency or settings.get_int('processor.concurrency')
        if concurrency is not None and concurrency < 1:
            raise ValueError(f"processor.concurrency must be at least 1, got {concurrency}")
        sample_size = settings.get_int('scan.sample_size', DEFAULT_SAMPLE_SIZE)
        sample_threshold = 0 if args.no_sample else settings.get_int('scan.sample_threshold', DEFAULT_SAMPLE_THRESHOLD)
        excluded = [*settings.get_list('scan.exclude'), *args.exclude]
        log_level = _resolve_log_level(args, settings)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    _configure_logging(args, settings, log_level)

    roots = _validate_roots(args.paths)
    if roots is None:
        sys.exit(EXIT_INVALID_ROOT)

    progress = ConsoleProgress() if args.verbose else ProgressReporter()
    renderer = ReportRenderer()

    with _cancel_on_interrupt(Cancellation()) as cancellation:
        with Processor(concurrency) if mode.verifies_content else nullcontext() as processor:
            verify_args = None
            if processor is not None:
                verify_args = processor_verify_args(
                    processor, mode, sample_size=sample_size, sample_threshold=sample_threshold)

            scanner = DuplicateScanner(
                mode, verify_args, policy=WalkPolicy(excluded), progress=progress, cancellation=cancellation)
            try:
                result = scanner.scan(roots)
            except ScanCancelled:
                print("Scan aborted; no report was produced.", file=sys.stderr)
                sys.exit(EXIT_INTERRUPTED)

    if result.state is ScanState.NO_FILES:
        renderer.no_files()
    elif result.state is ScanState.NO_CANDIDATES:
        renderer.no_candidates('size' if mode.verifies_content else 'name and size')
    elif result.state is ScanState.NO_DUPLICATES:
        renderer.no_duplicates()
    else:
        renderer.render(result.report(max_display))

    if args.export:
        if result.is_empty:
            print(f"Nothing to export; {printable(args.export)} was not written.")
        else:
            count = export_csv(Path(args.export), result.report(max_display), mode)
            print(f"Exported {count} files to {printable(args.export)}")


if __name__ == '__main__':
    dupaudit_main()
