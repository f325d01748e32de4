#!/usr/bin/env python3
"""
Command-line interface for inkblog - pack a blog into static files or serve it live.
"""

import os
import sys
import time
import logging
import argparse
from typing import List, Optional

from . import __version__
from .errors import InkblogError
from .pack import Packer
from .serve import create_app, run_server
from .settings import InkblogSettings

LOG_LEVELS = {
    'off': logging.CRITICAL + 1,
    'error': logging.ERROR,
    'info': logging.INFO,
    'debug': logging.DEBUG,
}


def setup_logging(level: str = 'info', log_file: Optional[str] = None) -> logging.Logger:
    """Set up logging configuration."""
    logger = logging.getLogger('inkblog_pkg')
    logger.setLevel(LOG_LEVELS[level])

    if not logger.handlers:
        # Console handler
        console_handler = logging.StreamHandler()
        console_handler.setLevel(LOG_LEVELS[level])
        console_formatter = logging.Formatter('%(message)s')
        console_handler.setFormatter(console_formatter)
        logger.addHandler(console_handler)

        if log_file:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(logging.DEBUG)
            file_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
            file_handler.setFormatter(file_formatter)
            logger.addHandler(file_handler)

    return logger


def fatal(message) -> None:
    print(f"Application error: {message}", file=sys.stderr)
    sys.exit(1)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='inkblog', description='inkblog - Simple blog engine')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    subparsers = parser.add_subparsers(dest='command')
    subparsers.required = True

    pack_parser = subparsers.add_parser('pack', help='Generates a directory with the given blog contents.')
    pack_parser.add_argument('templates', nargs='?', help='Path to a directory containing the blog templates')
    pack_parser.add_argument('content', nargs='?', help='Path to a directory containing the blog contents')
    pack_parser.add_argument('output', nargs='?', help='Path to a directory for the generated content files')
    pack_parser.add_argument('--level', type=str, choices=list(LOG_LEVELS),
                             help='Log level: off, error, info, debug')

    serve_parser = subparsers.add_parser('serve', help='Dynamically serves the contents of the blog.')
    serve_parser.add_argument('templates', nargs='?', help='Path to a directory containing the blog templates')
    serve_parser.add_argument('content', nargs='?', help='Path to a directory containing the blog contents')
    serve_parser.add_argument('address', nargs='?', help='Address to listen to, for example: localhost:8080')
    serve_parser.add_argument('-l', '--level', type=str, choices=list(LOG_LEVELS),
                              help='Log level: off, error, info, debug')
    return parser


def run_pack(settings) -> None:
    logger = logging.getLogger('inkblog_pkg')
    start_time = time.time()
    packer = Packer(settings['templates'], settings['content'], settings['output'])
    try:
        report = packer.run()
    except InkblogError as e:
        fatal(e)
    logger.info(f"Blog packed in {time.time() - start_time:.6f} seconds.")
    logger.info(f"Total pages generated: {report.pages_written}")
    logger.info(f"Total post assets copied: {report.post_assets_copied}")


def run_serve(settings) -> None:
    try:
        app = create_app(settings['templates'], settings['content'])
    except InkblogError as e:
        fatal(f"invalid templates path: {e}")
    template_assets = os.path.join(settings['templates'], 'assets')
    if not os.path.isdir(template_assets):
        fatal(f"error reading the templates assets dir: {template_assets}")
    if not os.path.isdir(settings['content']):
        fatal(f"invalid content path: {settings['content']}")
    try:
        run_server(app, settings['address'])
    except (OSError, ValueError) as e:
        fatal(f"running server: {e}")
    except KeyboardInterrupt:
        pass


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    try:
        settings_loader = InkblogSettings()
        settings_loader.load_settings()
    except (ValueError, OSError) as e:
        fatal(e)

    # Convert argparse Namespace to dict, excluding None values for proper merging
    args_dict = {k: v for k, v in vars(args).items() if v is not None and k != 'command'}
    settings = settings_loader.merge_with_args(args_dict)

    if settings['level'] not in LOG_LEVELS:
        fatal(f"invalid log level: {settings['level']}")
    setup_logging(settings['level'], settings['log_file'])

    if args.command == 'pack':
        run_pack(settings)
    else:
        run_serve(settings)


if __name__ == '__main__':
    main()
