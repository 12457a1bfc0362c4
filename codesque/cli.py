#!/usr/bin/env python3
"""
codesque command line.

    codesque tree Main#run.code            # debug tree of what was parsed
    codesque puml Main#run.code -o out.puml
    codesque render Main#run.code --format png
    codesque batch examples/               # every .code file, rendered in parallel
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from codesque.batch import convert_directory, convert_file, source_to_puml
from codesque.component_index import load_index
from codesque.config import check_format, load_settings
from codesque.errors import ParseError, RenderError
from codesque.log import setup_logging
from codesque.nodes import to_json
from codesque.parser import parse_text
from codesque.render import render_tree


def _read_source(path: str) -> str:
    source = Path(path)
    if not source.exists():
        raise FileNotFoundError(f"Input file not found: {source}")
    return source.read_text(encoding='utf-8')


def cmd_tree(args, settings) -> int:
    roots = parse_text(_read_source(args.file))
    if args.json:
        print(json.dumps(to_json(roots), indent=2))
    else:
        sys.stdout.write(render_tree(roots))
    return 0


def cmd_puml(args, settings) -> int:
    paths = load_index(args.index) if args.index else None
    puml = source_to_puml(Path(args.file), paths=paths)
    if args.output:
        Path(args.output).write_text(puml + "\n", encoding='utf-8')
        print(f"  PlantUML written to {args.output}", file=sys.stderr)
    else:
        print(puml)
    return 0


def cmd_render(args, settings) -> int:
    source = Path(args.file)
    if not source.exists():
        raise FileNotFoundError(f"Input file not found: {source}")
    paths = load_index(args.index) if args.index else None
    conversion = convert_file(
        source, settings, fmt=args.format,
        output=Path(args.output) if args.output else None, paths=paths,
    )
    print(f"  Image written to {conversion.image_path}", file=sys.stderr)
    return 0


def cmd_batch(args, settings) -> int:
    directory = Path(args.directory)
    if not directory.is_dir():
        raise FileNotFoundError(f"{directory} is not a directory")
    conversions = convert_directory(
        directory, settings, fmt=args.format, images=not args.no_image,
        index_path=Path(args.write_index) if args.write_index else None,
    )
    print(f"  Converted {len(conversions)} file(s) in {directory}", file=sys.stderr)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='codesque',
        description='Turn indented call notation into PlantUML sequence diagrams',
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    sub = parser.add_subparsers(dest='command')

    tree = sub.add_parser('tree', help='Print the parsed call tree')
    tree.add_argument('file', help='Call-notation source file')
    tree.add_argument('--json', action='store_true', help='Print the tree as JSON')
    tree.set_defaults(func=cmd_tree)

    puml = sub.add_parser('puml', help='Generate the PlantUML document')
    puml.add_argument('file', help='Call-notation source file')
    puml.add_argument('--output', '-o', help='Output .puml path (default: stdout)')
    puml.add_argument('--index', help='Component index JSON for participant links')
    puml.set_defaults(func=cmd_puml)

    render = sub.add_parser('render', help='Render a source file to an image')
    render.add_argument('file', help='Call-notation source file')
    render.add_argument('--output', '-o', help='Output image path (default: next to source)')
    render.add_argument('--format', '-f', type=check_format, help='Image format (default: svg)')
    render.add_argument('--index', help='Component index JSON for participant links')
    render.set_defaults(func=cmd_render)

    batch = sub.add_parser('batch', help='Convert every source file in a directory')
    batch.add_argument('directory', help='Directory of Group#method source files')
    batch.add_argument('--format', '-f', type=check_format, help='Image format (default: svg)')
    batch.add_argument('--no-image', action='store_true', help='Only write .puml files')
    batch.add_argument('--write-index', metavar='JSON',
                       help='Also save the component index used for participant links')
    batch.set_defaults(func=cmd_batch)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    try:
        settings = load_settings()
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    setup_logging('DEBUG' if args.verbose else settings.log_level)

    try:
        return args.func(args, settings)
    except (ParseError, RenderError, FileNotFoundError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
