#!/usr/bin/env python3
"""
CLI for the MinJ interpreter.

Usage:
    python -m minj run FILE.minj [--config FILE] [-v]
    python -m minj check FILE.minj
    python -m minj ast FILE.minj

Examples:
    # Run a program
    python -m minj run examples/fib.minj

    # Run with call tracing from a config file
    python -m minj run examples/fib.minj --config minj.yaml -v

    # Check syntax only
    python -m minj check examples/fib.minj
"""

import argparse
import logging
import sys
from pathlib import Path

import yaml

logger = logging.getLogger("minj")


def _read_source(path_arg: str, encoding: str = "utf-8"):
    source_path = Path(path_arg)
    if not source_path.exists():
        print(f"Error: File not found: {source_path}", file=sys.stderr)
        print("Usage: minj run <file.minj>", file=sys.stderr)
        return source_path, None
    try:
        return source_path, source_path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: cannot read {source_path}: {e}", file=sys.stderr)
        return source_path, None


def _parse_file(source_path: Path, source: str):
    from . import tokenize, parse
    tokens = tokenize(source, source_path.name)
    return parse(tokens, source_path.name)


def cmd_check(args):
    """Lex and parse a MinJ file."""
    from .errors import MinjError

    source_path, source = _read_source(args.file)
    if source is None:
        return 1

    try:
        program = _parse_file(source_path, source)
    except MinjError as e:
        e.diagnostic.source_line = e.diagnostic.source_line or _line_of(source, e)
        print(e.diagnostic.format(), file=sys.stderr)
        return 1

    print(f"OK: {source_path.name} - {len(program.classes)} class(es), "
          f"{len(program.methods)} method(s), {len(program.statements)} statement(s)")
    return 0


def cmd_ast(args):
    """Print the syntax tree of a MinJ file."""
    from .errors import MinjError
    from .ast import print_ast

    source_path, source = _read_source(args.file)
    if source is None:
        return 1

    try:
        program = _parse_file(source_path, source)
    except MinjError as e:
        print(e.diagnostic.format(), file=sys.stderr)
        return 1

    print_ast(program, out=sys.stdout)
    return 0


def cmd_run(args):
    """Execute a MinJ file."""
    from .config import ConfigError, load_config
    from .errors import MinjError
    from . import run_source

    try:
        config = load_config(args.config)
    except (ConfigError, FileNotFoundError, yaml.YAMLError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    level = "DEBUG" if args.verbose else config.log_level
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    sys.setrecursionlimit(max(sys.getrecursionlimit(), config.recursion_limit))

    source_path, source = _read_source(args.file, config.source_encoding)
    if source is None:
        return 1

    logger.info("running %s", source_path)
    try:
        run_source(source, filename=source_path.name, config=config)
    except MinjError as e:
        e.diagnostic.source_line = e.diagnostic.source_line or _line_of(source, e)
        print(e.diagnostic.format(), file=sys.stderr)
        return 1
    except RecursionError:
        print("Error: maximum recursion depth exceeded", file=sys.stderr)
        return 1

    return 0


def _line_of(source: str, error) -> str:
    span = error.diagnostic.span
    if span is None:
        return None
    lines = source.splitlines()
    if 1 <= span.start.line <= len(lines):
        return lines[span.start.line - 1]
    return None


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog='python -m minj',
        description='MinJ interpreter',
    )

    subparsers = parser.add_subparsers(dest='action', required=True)

    # run command
    run_parser = subparsers.add_parser('run', help='Execute a MinJ program')
    run_parser.add_argument('file', help='MinJ source file')
    run_parser.add_argument('-c', '--config', metavar='FILE',
                            help='YAML configuration file')
    run_parser.add_argument('-v', '--verbose', action='store_true',
                            help='Log at DEBUG level')

    # check command
    check_parser = subparsers.add_parser('check', help='Check a MinJ file for syntax errors')
    check_parser.add_argument('file', help='MinJ source file')

    # ast command
    ast_parser = subparsers.add_parser('ast', help='Print the syntax tree of a MinJ file')
    ast_parser.add_argument('file', help='MinJ source file')

    args = parser.parse_args(argv)

    if args.action == 'run':
        return cmd_run(args)
    elif args.action == 'check':
        return cmd_check(args)
    elif args.action == 'ast':
        return cmd_ast(args)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
