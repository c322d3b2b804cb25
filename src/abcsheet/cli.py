#!/usr/bin/env python3
"""
Command line for ABC sheet music

Usage:
    abcsheet check tune.abc
    abcsheet export tune.abc -o tune.svg
    abcsheet export tune.abc --data-url
    abcsheet add tune.abc --host http://localhost:8765
    abcsheet serve --port 8000 --host http://localhost:8765
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .config import AppConfig, load_config
from .exporter import export_data_url, export_image, image_size
from .host import HostError, HttpDesignHost
from .measure import ContentMeasurer, make_measurer
from .messages import Messages
from .notation import extract_key, extract_meter, extract_title, normalize_abc_input, notation_lines, slugify
from .renderer import NotationRenderer, RenderError, VerovioRenderer
from .session import SheetMusicSession
from .svg import serialize_svg


def read_abc(path: str) -> str:
    if path == '-':
        return sys.stdin.read()
    return Path(path).read_text(encoding='utf-8')


def load_messages(config: AppConfig) -> Messages:
    if config.translations:
        return Messages.from_file(Path(config.translations), config.locale)
    return Messages(config.locale)


def cmd_check(args, config: AppConfig, renderer: NotationRenderer,
              measurer: ContentMeasurer, messages: Messages) -> int:
    abc = normalize_abc_input(read_abc(args.file))
    session = SheetMusicSession(None, renderer, without_preview(config), messages, abc)

    title = extract_title(abc) or '(untitled)'
    print(f"Title: {title}")
    print(f"Key:   {extract_key(abc) or '-'}")
    print(f"Meter: {extract_meter(abc) or '-'}")

    if not session.has_valid_notation:
        print(f"No notation: {messages.format('button.no_notation')}")
        return 1
    print(f"Notation lines: {len(notation_lines(abc))}")
    return 0


async def _export(abc: str, config: AppConfig, renderer: NotationRenderer,
                  measurer: ContentMeasurer):
    async with measurer:
        return await export_image(renderer, abc, config, measurer)


def cmd_export(args, config: AppConfig, renderer: NotationRenderer,
               measurer: ContentMeasurer, messages: Messages) -> int:
    abc = normalize_abc_input(read_abc(args.file))
    session = SheetMusicSession(None, renderer, without_preview(config), messages, abc)
    if not session.has_valid_notation:
        print(f"Error: {messages.format('button.no_notation')}", file=sys.stderr)
        return 1

    try:
        image = asyncio.run(_export(session.normalized, config, renderer, measurer))
    except RenderError as e:
        print(f"Error: {messages.format('error.no_sheet_music')} ({e})", file=sys.stderr)
        return 1

    if args.data_url:
        print(export_data_url(image))
        return 0

    output = Path(args.output) if args.output else Path(f"{slugify(extract_title(abc) or '')}.svg")
    output.write_text(serialize_svg(image), encoding='utf-8')
    box = image_size(image)
    print(f"Created: {output} ({box.width:.0f} x {box.height:.0f})")
    return 0


async def _add(abc: str, config: AppConfig, renderer: NotationRenderer,
               measurer: ContentMeasurer, messages: Messages) -> int:
    try:
        host = await HttpDesignHost.connect(config.host.base_url, token=config.host.token,
                                            timeout=config.host.timeout)
    except HostError as e:
        print(f"Error: could not reach design host: {e}", file=sys.stderr)
        return 1

    async with host, measurer:
        session = SheetMusicSession(host, renderer, without_preview(config), messages, abc,
                                    measurer=measurer)
        if not session.can_add_to_design:
            print(f"Error: {session.tooltip()}", file=sys.stderr)
            return 1
        if await session.add_to_design():
            print(f"Added '{extract_title(session.normalized) or 'sheet music'}' to design")
            return 0
        print(f"Error: {session.error}", file=sys.stderr)
        return 1


def cmd_add(args, config: AppConfig, renderer: NotationRenderer,
            measurer: ContentMeasurer, messages: Messages) -> int:
    if args.host:
        config.host.base_url = args.host
    if not config.host.base_url:
        print("Error: no design host URL (use --host or host.base_url in config)", file=sys.stderr)
        return 1
    return asyncio.run(_add(read_abc(args.file), config, renderer, measurer, messages))


def cmd_serve(args, config: AppConfig, renderer: NotationRenderer,
              measurer: ContentMeasurer, messages: Messages) -> int:
    from .panel import run_server

    if args.host:
        config.host.base_url = args.host
    if args.no_preview:
        config.live_preview = False

    loop = asyncio.new_event_loop()
    host = None
    try:
        if config.host.base_url:
            try:
                host = loop.run_until_complete(HttpDesignHost.connect(
                    config.host.base_url, token=config.host.token, timeout=config.host.timeout))
            except HostError as e:
                print(f"Warning: design host unavailable ({e}); adding is disabled", file=sys.stderr)

        session = SheetMusicSession(host, renderer, config, messages, measurer=measurer)
        run_server(session, loop, args.port)
    finally:
        if host is not None:
            loop.run_until_complete(host.aclose())
        loop.run_until_complete(measurer.aclose())
        loop.close()
    return 0


def without_preview(config: AppConfig) -> AppConfig:
    """Batch commands never need the preview render"""
    config.live_preview = False
    return config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='abcsheet', description='Turn ABC notation into sheet music images')
    parser.add_argument('--config', help='YAML config file (default: $ABCSHEET_CONFIG)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    sub = parser.add_subparsers(dest='command', required=True)

    p = sub.add_parser('check', help='Report whether a tune has notation to add')
    p.add_argument('file', help="ABC file ('-' for stdin)")
    p.set_defaults(func=cmd_check)

    p = sub.add_parser('export', help='Render a tune to a fitted SVG')
    p.add_argument('file', help="ABC file ('-' for stdin)")
    p.add_argument('-o', '--output', help='Output SVG (default: <title>.svg)')
    p.add_argument('--data-url', action='store_true', help='Print a data URL instead of writing a file')
    p.set_defaults(func=cmd_export)

    p = sub.add_parser('add', help='Upload a tune and insert it into the design')
    p.add_argument('file', help="ABC file ('-' for stdin)")
    p.add_argument('--host', help='Design host bridge URL')
    p.set_defaults(func=cmd_add)

    p = sub.add_parser('serve', help='Run the editing panel')
    p.add_argument('--port', type=int, default=8000, help='Port to run server on (default: 8000)')
    p.add_argument('--host', help='Design host bridge URL')
    p.add_argument('--no-preview', action='store_true', help='Disable the live preview')
    p.set_defaults(func=cmd_serve)

    return parser


def main(argv: Optional[List[str]] = None, renderer: Optional[NotationRenderer] = None,
         measurer: Optional[ContentMeasurer] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    try:
        config = load_config(Path(args.config) if args.config else None)
        messages = load_messages(config)
    except (OSError, ValueError) as e:
        print(f"Error: bad config: {e}", file=sys.stderr)
        return 1

    try:
        return args.func(args, config, renderer or VerovioRenderer(),
                         measurer or make_measurer(config), messages)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
