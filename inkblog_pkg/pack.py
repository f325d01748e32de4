"""
Pack mode: render a whole blog once into an output directory.
"""

import logging
import os
import shutil
from dataclasses import dataclass
from enum import Enum

from .content import load_blog
from .errors import ContentIOError, InkblogError
from .templates import PACK_ROOT_PAGE, BlogTemplates, home_to_model, post_to_model

ASSETS_DIR = 'assets'
POST_ASSETS_DIR = 'post_assets'
HOME_PAGE = 'index.html'

logger = logging.getLogger(__name__)


class PackState(Enum):
    START = 'start'
    ASSETS_COPIED = 'assets_copied'
    PAGES_WRITTEN = 'pages_written'
    POST_ASSETS_COPIED = 'post_assets_copied'
    DONE = 'done'
    FAILED = 'failed'


@dataclass
class PackReport:
    pages_written: int = 0
    post_assets_copied: int = 0


def ensure_dir_is_empty(path: str) -> None:
    """Delete a directory if it exists and create it again, empty."""
    try:
        if os.path.exists(path):
            shutil.rmtree(path)
        os.mkdir(path)
    except OSError as e:
        raise ContentIOError.from_os_error(e) from e


def copy_dir(src: str, dest: str) -> None:
    """Copy the files and subdirectories of ``src`` into the existing ``dest``."""
    try:
        shutil.copytree(src, dest, dirs_exist_ok=True)
    except shutil.Error as e:
        raise ContentIOError(f"error copying {src} to {dest}: {e}") from e
    except OSError as e:
        raise ContentIOError.from_os_error(e) from e


def write_page(path: str, html: str) -> None:
    try:
        with open(path, 'w', encoding='utf-8') as f:
            f.write(html)
    except OSError as e:
        raise ContentIOError.from_os_error(e) from e
    logger.debug(f"Generated HTML: {path}")


def copy_file(src: str, dest: str) -> None:
    try:
        shutil.copyfile(src, dest)
    except OSError as e:
        raise ContentIOError.from_os_error(e) from e


class Packer:
    """Generates the static files of a blog from its templates and content."""

    def __init__(self, templates_dir: str, content_dir: str, output_dir: str):
        self.templates_dir = templates_dir
        self.content_dir = content_dir
        self.output_dir = output_dir
        self.state = PackState.START
        self.report = PackReport()

    def run(self) -> PackReport:
        """
        Run every pack step in order.

        The first failure moves the packer to ``FAILED`` and is re-raised;
        files already written are left in place.
        """
        try:
            self.copy_template_assets()
            blog = self.write_pages()
            self.copy_post_assets(blog.assets)
        except InkblogError:
            self.state = PackState.FAILED
            raise
        self.state = PackState.DONE
        logger.info(
            f"Packed {self.report.pages_written} pages and "
            f"{self.report.post_assets_copied} post assets into {self.output_dir}"
        )
        return self.report

    def copy_template_assets(self) -> None:
        try:
            os.makedirs(self.output_dir, exist_ok=True)
        except OSError as e:
            raise ContentIOError.from_os_error(e) from e
        dest = os.path.join(self.output_dir, ASSETS_DIR)
        ensure_dir_is_empty(dest)
        copy_dir(os.path.join(self.templates_dir, ASSETS_DIR), dest)
        self.state = PackState.ASSETS_COPIED
        logger.info(f"Copied template assets into {dest}")

    def write_pages(self):
        templates = BlogTemplates(self.templates_dir)
        blog = load_blog(self.content_dir)

        post_models = [post_to_model(post, PACK_ROOT_PAGE) for post in blog.posts]
        home_model = home_to_model(blog.home, post_models)
        write_page(os.path.join(self.output_dir, HOME_PAGE), templates.render_home(home_model))
        self.report.pages_written += 1

        for post_model in post_models:
            path = os.path.join(self.output_dir, post_model.file_name)
            write_page(path, templates.render_post(post_model))
            self.report.pages_written += 1
        self.state = PackState.PAGES_WRITTEN
        return blog

    def copy_post_assets(self, assets) -> None:
        dest_dir = os.path.join(self.output_dir, POST_ASSETS_DIR)
        ensure_dir_is_empty(dest_dir)
        for asset in assets:
            # Post assets are flattened into a single directory.
            copy_file(asset, os.path.join(dest_dir, os.path.basename(asset)))
            self.report.post_assets_copied += 1
        self.state = PackState.POST_ASSETS_COPIED
