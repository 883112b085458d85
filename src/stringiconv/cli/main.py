"""Main CLI entry point for the stringiconv command-line tool.

Provides iconv-style conversion of files or standard input, listing of the
known encoding names and a backend benchmark.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import BinaryIO, List, Optional

from stringiconv import __version__
from stringiconv.api.transcoder import InternalEncoding, Transcoder
from stringiconv.catalog import canonical_iconvlist, iconvlist
from stringiconv.errors import IconvError
from stringiconv.shared.config import (
    SUPPORTED_BACKENDS,
    ConfigError,
    TranscodeConfig,
)
from stringiconv.shared.logging import get_logger
from stringiconv.tools.profiling import benchmark_backends

PROG = "stringiconv"


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self):
        self.transcode_config = TranscodeConfig()
        self.verbose = False
        self.quiet = False

    @classmethod
    def from_file(cls, config_path: Path) -> "CLIConfig":
        """Load CLI configuration from a JSON file.

        Unreadable or invalid files leave the defaults in place and print a
        warning.
        """
        config = cls()
        if config_path.exists():
            try:
                config.transcode_config = TranscodeConfig.from_json(config_path.read_text())
            except (OSError, ConfigError) as e:
                print(f"Warning: Could not load config file: {e}", file=sys.stderr)

        return config

    def apply_arguments(self, args: argparse.Namespace) -> None:
        """Apply command-line overrides on top of the loaded configuration."""
        overrides = {}
        if getattr(args, "discard", False):
            overrides["discard_illegal_sequences"] = True
        if getattr(args, "translit", False):
            overrides["transliterate"] = True
        if getattr(args, "backend", None):
            overrides["backend"] = args.backend
        if getattr(args, "buffer_size", None) is not None:
            overrides["buffer_size"] = args.buffer_size
        if overrides:
            self.transcode_config = self.transcode_config.override(**overrides)


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Convert text between character encodings"
    )

    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Convert command
    convert_parser = subparsers.add_parser("convert", help="Convert files or stdin")
    convert_parser.add_argument(
        "paths",
        nargs="*",
        type=Path,
        help="Input files (default: stdin)"
    )
    convert_parser.add_argument(
        "--from-code", "-f",
        required=True,
        help="Encoding of the input"
    )
    convert_parser.add_argument(
        "--to-code", "-t",
        required=True,
        help="Encoding of the output"
    )
    convert_parser.add_argument(
        "-c",
        dest="discard",
        action="store_true",
        help="Omit invalid characters from output"
    )
    convert_parser.add_argument(
        "--translit",
        action="store_true",
        help="Approximate characters the output encoding cannot represent"
    )
    convert_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )
    _add_engine_arguments(convert_parser)

    # List command
    list_parser = subparsers.add_parser("list", help="List known encodings")
    list_parser.add_argument(
        "--canonical",
        action="store_true",
        help="List each encoding once under its canonical name"
    )

    # Bench command
    bench_parser = subparsers.add_parser("bench", help="Benchmark conversion backends")
    bench_parser.add_argument(
        "path",
        type=Path,
        help="Input file"
    )
    bench_parser.add_argument(
        "--from-code", "-f",
        required=True,
        help="Encoding of the input"
    )
    bench_parser.add_argument(
        "--to-code", "-t",
        default=InternalEncoding.UTF16.codec_name,
        help="Encoding of the output (default: UTF-16)"
    )
    bench_parser.add_argument(
        "--iterations", "-n",
        type=int,
        default=10,
        help="Conversions per backend (default: 10)"
    )
    bench_parser.add_argument(
        "--format",
        choices=["json", "text"],
        default="text",
        help="Output format"
    )
    bench_parser.add_argument(
        "-c",
        dest="discard",
        action="store_true",
        help="Omit invalid characters from output"
    )
    _add_engine_arguments(bench_parser)

    # Global options
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )

    return parser


def _add_engine_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        help="Configuration file path"
    )
    parser.add_argument(
        "--backend",
        choices=SUPPORTED_BACKENDS,
        help="Conversion backend"
    )
    parser.add_argument(
        "--buffer-size",
        type=int,
        help="Scratch buffer size in bytes"
    )


def _load_config(args: argparse.Namespace) -> CLIConfig:
    config = CLIConfig()
    if args.config:
        config = CLIConfig.from_file(args.config)
    config.apply_arguments(args)
    return config


def _write_output(data: bytes, output: Optional[Path], stream: BinaryIO) -> None:
    if output is not None:
        output.write_bytes(data)
    else:
        stream.write(data)
        stream.flush()


def cmd_convert(args: argparse.Namespace) -> int:
    """Handle convert command."""
    try:
        config = _load_config(args)
    except ConfigError as e:
        print(f"{PROG}: {e}", file=sys.stderr)
        return 1

    transcoder = Transcoder(config.transcode_config)
    logger = get_logger(__name__, transcoder.correlation_id, "cli_convert")

    sources = args.paths or [None]
    chunks = []
    exit_code = 0
    for path in sources:
        name = str(path) if path is not None else "<stdin>"
        try:
            data = path.read_bytes() if path is not None else sys.stdin.buffer.read()
        except OSError as e:
            print(f"{PROG}: {name}: {e.strerror or e}", file=sys.stderr)
            exit_code = 1
            continue

        try:
            chunks.append(transcoder.convert(data, args.to_code, args.from_code))
        except (IconvError, ConfigError) as e:
            print(f"{PROG}: {name}: {e}", file=sys.stderr)
            exit_code = 1
            continue

        logger.debug("Converted input", extra={"input": name, "input_size": len(data)})

    try:
        _write_output(b"".join(chunks), args.output, sys.stdout.buffer)
    except OSError as e:
        print(f"Error writing output: {e}", file=sys.stderr)
        return 1

    return exit_code


def cmd_list(args: argparse.Namespace) -> int:
    """Handle list command."""
    names = canonical_iconvlist() if args.canonical else iconvlist()
    print("\n".join(names))
    return 0


def format_benchmark(reports, format_type: str) -> str:
    """Format benchmark reports for output."""
    if format_type == "json":
        return json.dumps({name: report.to_dict() for name, report in reports.items()}, indent=2)

    lines = [f"{'backend':<10} {'avg ms':>10} {'MB/s':>10}"]
    lines.append("-" * 32)
    for name, report in reports.items():
        lines.append(
            f"{name:<10} {report.average_duration_ms:>10.2f} "
            f"{report.average_throughput_mb_per_s:>10.2f}"
        )
    return "\n".join(lines)


def cmd_bench(args: argparse.Namespace) -> int:
    """Handle bench command."""
    try:
        config = _load_config(args)
    except ConfigError as e:
        print(f"{PROG}: {e}", file=sys.stderr)
        return 1

    try:
        data = args.path.read_bytes()
    except OSError as e:
        print(f"{PROG}: {args.path}: {e.strerror or e}", file=sys.stderr)
        return 1

    try:
        reports = benchmark_backends(
            data,
            args.from_code,
            args.to_code,
            iterations=args.iterations,
            config=config.transcode_config,
        )
    except (IconvError, ConfigError, ValueError) as e:
        print(f"{PROG}: {e}", file=sys.stderr)
        return 1

    print(format_benchmark(reports, args.format))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # Set up logging verbosity
    if args.verbose:
        import logging
        logging.basicConfig(level=logging.DEBUG)
    elif args.quiet:
        import logging
        logging.basicConfig(level=logging.ERROR)

    # Route to appropriate command handler
    try:
        if args.command == "convert":
            return cmd_convert(args)
        elif args.command == "list":
            return cmd_list(args)
        elif args.command == "bench":
            return cmd_bench(args)
        else:
            print(f"Unknown command: {args.command}", file=sys.stderr)
            return 1

    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
