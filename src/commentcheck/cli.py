"""
CLI entry point for commentcheck.

Usage:
    commentcheck lint [path]           Lint the .tf files in a directory (or one file)
    commentcheck parse <file>          Parse a file and show blocks and attribute ranges

Exit codes for lint: 0 no issues, 1 issues found, 2 the check could not run.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from commentcheck import __version__


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def cmd_lint(args):
    """Lint a directory or file."""
    from .config import load_config
    from .errors import CommentCheckError
    from .linter import Linter

    path = Path(args.path)
    search_dir = path if path.is_dir() else path.parent

    try:
        config = load_config(args.config, search_dir=search_dir)
        issues = Linter(config=config).lint_path(path, pattern=args.pattern)
    except CommentCheckError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.format == "json":
        print(json.dumps([issue.to_dict() for issue in issues], indent=2))
    else:
        for issue in issues:
            print(issue)
        if issues:
            print(f"\n{len(issues)} issue(s) found")

    return 1 if issues else 0


def cmd_parse(args):
    """Parse a file and show its blocks."""
    from .parser import LexerError, ParseError, parse_file

    try:
        file = parse_file(args.file)
    except (OSError, LexerError, ParseError) as e:
        print(f"Parse error: {e}", file=sys.stderr)
        return 2

    if args.json:
        print(json.dumps(file.body.to_dict(), indent=2))
        return 0

    print(f"Parsed: {args.file}")
    print(f"Top-level blocks: {len(file.body.blocks)}")
    for block in file.body.blocks:
        labels = " ".join(f'"{label}"' for label in block.labels)
        print(f"  - {block.type} {labels} ({block.range})")
        if args.verbose:
            for attribute in block.body.attributes.values():
                print(f"      {attribute.name}: {attribute.range}")
    return 0


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="commentcheck",
        description="Require documentation comments on configured HCL attributes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    commentcheck lint infra/
    commentcheck lint infra/ --config ci/.commentcheck.yaml --format json
    commentcheck parse infra/main.tf -v
"""
    )
    parser.add_argument('--version', action='version', version=f'commentcheck {__version__}')
    parser.add_argument('--loglevel', default='warning',
                        choices=['debug', 'info', 'warning', 'error'],
                        help='Log level for diagnostics on stderr')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # lint
    lint_p = subparsers.add_parser('lint', help='Lint HCL files')
    lint_p.add_argument('path', nargs='?', default='.', help='Directory or file to lint')
    lint_p.add_argument('-c', '--config', help='Config file (default: search the linted directory)')
    lint_p.add_argument('--pattern', default='*.tf', help='File pattern inside a directory')
    lint_p.add_argument('-f', '--format', choices=['text', 'json'], default='text')
    lint_p.set_defaults(func=cmd_lint)

    # parse
    parse_p = subparsers.add_parser('parse', help='Parse an HCL file')
    parse_p.add_argument('file', help='File to parse')
    parse_p.add_argument('-v', '--verbose', action='store_true')
    parse_p.add_argument('--json', action='store_true', help='Dump the parsed tree as JSON')
    parse_p.set_defaults(func=cmd_parse)

    args = parser.parse_args(argv)
    _configure_logging(args.loglevel)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
