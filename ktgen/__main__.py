#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ktgen/__main__.py
=================

Developer command line for ktgen.

Usage
-----
    python -m ktgen <command> [options]

Commands
--------
    format      Render a positional format string with string arguments
    wrap        Re-flow stdin through the line wrapper

Arguments consumed by ``%T`` are parsed as qualified names, splitting at the
first capitalized component (``java.util.Map.Entry`` names ``Entry`` nested in
``Map``).  A literal ``\\n`` in FORMAT is read as a newline.
"""

from __future__ import annotations

import argparse
import logging
import re
import sys
import textwrap
from typing import Any, Dict, List, Optional, Sequence

from ktgen import __description__, __version__
from ktgen.config import DEFAULT_COLUMN_LIMIT, DEFAULT_INDENT
from ktgen.errors import KtgenError
from ktgen.names import ClassName
from ktgen.renderer import Renderer
from ktgen.template import ARGUMENT_CODES, CodeFragment, scan_directives
from ktgen.wrapper import LineWrapper

logger = logging.getLogger(__name__)

_SPACE_RUN = re.compile(r" +")


# ═══════════════════════════════════════════════════════════════════════════
# COMMANDS
# ═══════════════════════════════════════════════════════════════════════════

def _typed_arguments(format_string: str, raw: Sequence[str]) -> List[Any]:
    """Parse the arguments that ``%T`` directives consume as class names."""
    codes: Dict[int, str] = {}
    relative = 0
    for index_text, code in scan_directives(format_string):
        if code not in ARGUMENT_CODES:
            continue
        if index_text:
            index = int(index_text) - 1
        else:
            index = relative
            relative += 1
        codes.setdefault(index, code)
    return [
        ClassName.best_guess(value) if codes.get(index) == "T" else value
        for index, value in enumerate(raw)
    ]


def cmd_format(args: argparse.Namespace) -> int:
    """Handle the 'format' command."""
    format_string = args.format.replace("\\n", "\n")
    values = _typed_arguments(format_string, args.args)
    fragment = CodeFragment.of(format_string, *values)
    logger.debug("format has %d argument(s)", fragment.argument_count())

    renderer = Renderer(indent=args.indent, column_limit=args.width)
    text = renderer.render_fragment(fragment, namespace=args.package)
    sys.stdout.write(text)
    if not text.endswith("\n"):
        sys.stdout.write("\n")
    return 0


def cmd_wrap(args: argparse.Namespace) -> int:
    """Handle the 'wrap' command."""
    wrapper = LineWrapper(sys.stdout, args.indent, args.width)
    for line in sys.stdin:
        words = _SPACE_RUN.split(line.rstrip("\n"))
        wrapper.append(words[0], args.level)
        for word in words[1:]:
            wrapper.wrapping_space(args.level)
            wrapper.append(word, args.level)
        wrapper.newline()
    wrapper.close()
    return 0


# ═══════════════════════════════════════════════════════════════════════════
# ARGUMENT PARSER
# ═══════════════════════════════════════════════════════════════════════════

def _add_layout_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--width",
        type=int,
        default=DEFAULT_COLUMN_LIMIT,
        help=f"Column budget (default: {DEFAULT_COLUMN_LIMIT})",
    )
    parser.add_argument(
        "--indent",
        default=DEFAULT_INDENT,
        help="Indent unit (default: two spaces)",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the ktgen CLI."""
    parser = argparse.ArgumentParser(
        prog="ktgen",
        description=__description__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              %(prog)s format 'val %%N: %%T = %%S' greeting kotlin.String hello
              %(prog)s format 'foo(%%L,%%W%%L)' alpha beta --width 10
              printf 'a b c d e f\\n' | %(prog)s wrap --width 5
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=False,
        help="Log pipeline details to stderr",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="available commands",
        metavar="<command>",
    )

    # ── format ───────────────────────────────────────────────────────────

    p_format = subparsers.add_parser(
        "format",
        help="Render a positional format string",
        description=(
            "Render FORMAT with ARGS through the two-pass renderer. Names "
            "print as they would in a file of --package; the import lines "
            "themselves are not shown."
        ),
    )
    p_format.add_argument("format", help="Format string, e.g. 'val %%N = %%S'")
    p_format.add_argument("args", nargs="*", help="Directive arguments")
    p_format.add_argument(
        "--package",
        default="",
        help="Namespace the fragment is rendered in",
    )
    _add_layout_options(p_format)
    p_format.set_defaults(func=cmd_format)

    # ── wrap ─────────────────────────────────────────────────────────────

    p_wrap = subparsers.add_parser(
        "wrap",
        help="Re-flow stdin; runs of spaces are soft-wrap points",
    )
    p_wrap.add_argument(
        "--level",
        type=int,
        default=2,
        help="Continuation indent level (default: 2)",
    )
    _add_layout_options(p_wrap)
    p_wrap.set_defaults(func=cmd_wrap)

    return parser


# ═══════════════════════════════════════════════════════════════════════════
# MAIN
# ═══════════════════════════════════════════════════════════════════════════

def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point; returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    if args.command is None:
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except KtgenError as e:
        sys.stderr.write(e.to_gcc_format() + "\n")
        return 1
    except ValueError as e:
        sys.stderr.write(f"error: {e}\n")
        return 1


if __name__ == "__main__":
    sys.exit(main())
