#!/usr/bin/env python3
"""
leakscope - static memory leak explorer
Command-line tool for spotting leaks in C, C++, JavaScript and Python sources.

Usage: leakscope [FILE|-] [-l LANG] [--sample] [--sort KEY] [-v]
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape

from analyzer import analyze
from config import load_settings
from display import LEAK_SORT_KEYS, display_report
from samples import get_sample
from type_defs import LanguageTag

# Return codes
SUCCESS = 0
ERROR = 1

EXTENSION_LANGUAGES = {
    ".c": LanguageTag.C,
    ".h": LanguageTag.C,
    ".cpp": LanguageTag.CPP,
    ".cc": LanguageTag.CPP,
    ".cxx": LanguageTag.CPP,
    ".hpp": LanguageTag.CPP,
    ".js": LanguageTag.JAVASCRIPT,
    ".mjs": LanguageTag.JAVASCRIPT,
    ".py": LanguageTag.PYTHON,
    ".java": LanguageTag.JAVA,
    ".rs": LanguageTag.RUST,
    ".go": LanguageTag.GO,
}

log = logging.getLogger("leakscope")


class InputError(Exception):
    """Raised when the source to analyze cannot be read or is too large."""

    pass


def print_error(console: Console, message: str) -> None:
    """Print a formatted error message."""
    console.print(f"\n[bold color(174)]Error:[/] {escape(message)}\n")


def _configure_logging(verbosity: int, debug: bool) -> None:
    """
    Attach a stderr handler to the root logger.

    Args:
        verbosity: Number of ``-v`` flags (0 → WARNING, 1 → INFO, 2+ → DEBUG).
        debug: Force DEBUG (``LEAKSCOPE_DEBUG``).
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    if verbosity >= 2 or debug:
        level = logging.DEBUG

    root = logging.getLogger()
    root.setLevel(level)

    # main() may run several times in one process
    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root.addHandler(handler)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="leakscope",
        description="Static memory leak explorer: tracks allocations and releases "
                    "in a source file and reports what is never freed.",
    )
    parser.add_argument("file", nargs="?", metavar="FILE",
                        help="Source file to analyze, '-' for stdin")
    parser.add_argument("-l", "--language", default=None,
                        help="Source language (c, cpp, javascript, python, java, rust, go). "
                             "Guessed from the file extension when omitted")
    parser.add_argument("--sample", action="store_true",
                        help="Analyze the built-in sample program for the language")
    parser.add_argument("--sort", choices=sorted(LEAK_SORT_KEYS), default="line",
                        help="Leak ordering (default: line)")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="More logging (-v info, -vv debug)")
    return parser


def _resolve_language(args: argparse.Namespace, default: LanguageTag) -> LanguageTag:
    """Explicit flag first, then the file extension, then the configured default."""
    if args.language:
        return LanguageTag.parse(args.language)

    if args.file and args.file != "-":
        suffix = Path(args.file).suffix.lower()
        if suffix in EXTENSION_LANGUAGES:
            return EXTENSION_LANGUAGES[suffix]

    return default


def _read_source(args: argparse.Namespace, language: LanguageTag, max_size: int) -> tuple[str, str]:
    """
    Load the code to analyze.

    Returns:
        Tuple: (code, title shown above the report)

    Raises:
        InputError: Missing, unreadable or oversized input.
    """
    if args.sample:
        return get_sample(language), f"{language.value} sample"

    if not args.file:
        raise InputError("no input file given (use FILE, '-' for stdin, or --sample)")

    if args.file == "-":
        code, title = sys.stdin.read(), "stdin"
    else:
        path = Path(args.file)
        try:
            code = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            raise InputError(f"cannot read {path}: {e.strerror or e}") from e
        title = path.name

    if len(code) > max_size:
        raise InputError(f"input is {len(code)} characters, the limit is {max_size} "
                         f"(LEAKSCOPE_MAX_CODE_SIZE)")

    return code, title


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point of leakscope.

    Returns:
        0 on success, 1 on error
    """
    args = build_parser().parse_args(argv)
    settings = load_settings()
    _configure_logging(args.verbose, settings.debug)

    console = Console()
    language = _resolve_language(args, settings.default_language)

    try:
        code, title = _read_source(args, language, settings.max_code_size)
    except InputError as e:
        print_error(console, str(e))
        return ERROR

    log.info("Analyzing %s as %s", title, language.value)

    try:
        report = analyze(code, language)
        display_report(report, title=f"leakscope · {title}", sort_by=args.sort, console=console)
    except KeyboardInterrupt:
        console.print("\n\nAnalysis interrupted by user.\n")
        return ERROR

    return SUCCESS


if __name__ == "__main__":
    sys.exit(main())
