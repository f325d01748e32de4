"""
Content loading for inkblog.

Reads the home document and the posts directory of a content tree, splits
the YAML front matter from the Markdown body, validates the front matter
fields and converts bodies to HTML. Non-Markdown files found next to the
posts are collected as post assets.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Iterator, List, NewType, Optional, Tuple

import mistune
import yaml

from .errors import ContentIOError, FrontMatterError, NoFrontMatterError

HOME_FILE = 'home.md'
POSTS_SUBDIR = 'posts'
POST_ASSETS_SEGMENT = 'post_assets'
CONTENT_EXTENSION = '.md'
PAGE_EXTENSION = '.html'
FRONT_MATTER_DELIMITER = '---'
DATE_TIME_FORMAT = '%Y-%m-%d %H:%M'

DATE_TIME_RE = re.compile(r'^[0-9]{4}-[0-9]{2}-[0-9]{2} [0-9]{2}:[0-9]{2}$')

logger = logging.getLogger(__name__)

Tag = NewType('Tag', str)

_REQUIRED = object()


@dataclass(frozen=True)
class BlogHome:
    title: str
    author: str
    twitter: str
    year: int
    home_content: str = ''


@dataclass(frozen=True)
class Post:
    title: str
    date: datetime
    tags: Tuple[Tag, ...]
    summary: str
    author: str
    content: str = ''
    favorite: bool = False
    file_name: str = ''
    year: str = ''
    source_path: str = ''


@dataclass(frozen=True)
class PostMetadata:
    title: str
    date: datetime
    tags: Tuple[Tag, ...]
    summary: str
    author: str
    file_name: str = ''
    source_path: str = ''


@dataclass(frozen=True)
class BlogCollection:
    home: BlogHome
    posts: Tuple[Post, ...] = field(default_factory=tuple)
    assets: Tuple[str, ...] = field(default_factory=tuple)


class EntryKind(Enum):
    CONTENT = 'content'
    ASSET = 'asset'
    SKIPPED = 'skipped'


@dataclass(frozen=True)
class PostEntry:
    kind: EntryKind
    path: str


class PostRenderer(mistune.HTMLRenderer):
    """HTML renderer that passes every image source through a rewrite hook."""

    def __init__(self, image_rewrite: Optional[Callable[[str], str]] = None):
        super().__init__(escape=False)
        self.image_rewrite = image_rewrite

    def image(self, text, url, title=None):
        if self.image_rewrite is not None:
            url = self.image_rewrite(url)
        return super().image(text, url, title)


def rewrite_image_url(url: str) -> str:
    """Prefix an image source with the post assets route segment."""
    return f"{POST_ASSETS_SEGMENT}/{url}"


def create_markdown_parser(image_rewrite: Optional[Callable[[str], str]] = rewrite_image_url):
    """Create a Mistune markdown parser with strikethrough as the only plugin."""
    return mistune.create_markdown(
        renderer=PostRenderer(image_rewrite),
        plugins=['strikethrough']
    )


def convert_markdown(text: str, image_rewrite: Optional[Callable[[str], str]] = rewrite_image_url) -> str:
    """Convert markdown text to HTML, rewriting image sources on the way."""
    # A fresh parser per call keeps concurrent requests independent.
    parser = create_markdown_parser(image_rewrite)
    return parser(text)


def split_front_matter(text: str) -> Tuple[str, str]:
    """
    Split a raw document into its body and its front matter block.

    The front matter block keeps both delimiters. A document that does not
    start with the delimiter, or that never closes it, is returned whole as
    the body with an empty front matter.
    """
    delimiter = FRONT_MATTER_DELIMITER
    if not text.startswith(delimiter):
        return text, ''
    end = text.find(delimiter, len(delimiter))
    if end == -1:
        return text, ''
    end += len(delimiter)
    return text[end:], text[:end]


def parse_date_time(value: Any, path: str) -> datetime:
    """Parse a ``YYYY-MM-DD HH:MM`` timestamp as UTC."""
    if not isinstance(value, str) or not DATE_TIME_RE.match(value):
        raise FrontMatterError(path, f"invalid date `{value}`, expected format YYYY-MM-DD HH:MM")
    try:
        parsed = datetime.strptime(value, DATE_TIME_FORMAT)
    except ValueError as e:
        raise FrontMatterError(path, f"invalid date `{value}`: {e}") from e
    return parsed.replace(tzinfo=timezone.utc)


def _get_field(data: Dict[str, Any], name: str, kind: type, path: str, default: Any = _REQUIRED) -> Any:
    if name not in data:
        if default is _REQUIRED:
            raise FrontMatterError(path, f"missing field `{name}`")
        return default
    value = data[name]
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise FrontMatterError(
            path,
            f"invalid type for field `{name}`: expected {kind.__name__}, found {type(value).__name__}"
        )
    return value


def _get_tags(data: Dict[str, Any], path: str) -> Tuple[Tag, ...]:
    tags = _get_field(data, 'tags', list, path)
    for tag in tags:
        if not isinstance(tag, str):
            raise FrontMatterError(path, f"invalid tag `{tag}`, expected a string")
    return tuple(Tag(tag) for tag in tags)


def _get_date(data: Dict[str, Any], path: str) -> datetime:
    if 'date' not in data:
        raise FrontMatterError(path, "missing field `date`")
    return parse_date_time(data['date'], path)


def read_text_file(path: str) -> str:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return f.read()
    except OSError as e:
        raise ContentIOError.from_os_error(e) from e
    except UnicodeDecodeError as e:
        raise ContentIOError(f"{path}: {e}") from e


def load_document(path: str) -> Tuple[str, Dict[str, Any]]:
    """Read a document and return its markdown body and its front matter fields."""
    body, front_matter = split_front_matter(read_text_file(path))
    if not front_matter:
        raise NoFrontMatterError(path)
    delimiter_len = len(FRONT_MATTER_DELIMITER)
    try:
        data = yaml.safe_load(front_matter[delimiter_len:-delimiter_len])
    except yaml.YAMLError as e:
        raise FrontMatterError(path, str(e)) from e
    if not isinstance(data, dict):
        raise NoFrontMatterError(path)
    return body, data


def output_file_name(path: str) -> str:
    """Name of the generated page for a post source file."""
    stem = os.path.splitext(os.path.basename(path))[0]
    return stem + PAGE_EXTENSION


def read_post_file(path: str) -> Post:
    """Load a single post, converting its body to HTML."""
    body, data = load_document(path)
    date = _get_date(data, path)
    post = Post(
        title=_get_field(data, 'title', str, path),
        date=date,
        tags=_get_tags(data, path),
        summary=_get_field(data, 'summary', str, path),
        author=_get_field(data, 'author', str, path),
        content=convert_markdown(body),
        favorite=_get_field(data, 'favorite', bool, path, default=False),
        file_name=output_file_name(path),
        year=str(date.year),
        source_path=path,
    )
    logger.debug(f"Loaded post {path}")
    return post


def read_post_metadata(path: str) -> PostMetadata:
    """Load the front matter of a post without converting its body."""
    _, data = load_document(path)
    return PostMetadata(
        title=_get_field(data, 'title', str, path),
        date=_get_date(data, path),
        tags=_get_tags(data, path),
        summary=_get_field(data, 'summary', str, path),
        author=_get_field(data, 'author', str, path),
        file_name=os.path.basename(path),
        source_path=path,
    )


def read_home_file(content_dir: str) -> BlogHome:
    """Load the home document at the root of the content directory."""
    path = os.path.join(content_dir, HOME_FILE)
    body, data = load_document(path)
    year = _get_field(data, 'year', int, path)
    if not 0 <= year <= 65535:
        raise FrontMatterError(path, f"invalid value for field `year`: {year}")
    return BlogHome(
        title=_get_field(data, 'title', str, path),
        author=_get_field(data, 'author', str, path),
        twitter=_get_field(data, 'twitter', str, path),
        year=year,
        home_content=convert_markdown(body),
    )


def classify_entry(name: str, path: str, is_file: bool) -> PostEntry:
    """Classify a posts directory entry purely by its extension."""
    if not is_file:
        return PostEntry(EntryKind.SKIPPED, path)
    extension = os.path.splitext(name)[1]
    if not extension:
        return PostEntry(EntryKind.SKIPPED, path)
    if extension == CONTENT_EXTENSION:
        return PostEntry(EntryKind.CONTENT, path)
    return PostEntry(EntryKind.ASSET, path)


def scan_posts_dir(posts_dir: str) -> Iterator[PostEntry]:
    """
    Lazily classify the entries of a posts directory.

    The walk is not recursive: subdirectories are reported as skipped. Entries
    are visited in name order so repeated loads see the same sequence.
    """
    try:
        with os.scandir(posts_dir) as it:
            entries = sorted(it, key=lambda entry: entry.name)
    except OSError as e:
        raise ContentIOError.from_os_error(e) from e
    for entry in entries:
        try:
            is_file = entry.is_file()
        except OSError as e:
            raise ContentIOError.from_os_error(e) from e
        yield classify_entry(entry.name, entry.path, is_file)


def sort_newest_first(items: Iterable) -> List:
    """Sort posts or post metadata by date, newest first, keeping ties in order."""
    return sorted(items, key=lambda item: item.date, reverse=True)


def read_post_files(posts_dir: str) -> Tuple[List[Post], List[str]]:
    posts = []
    assets = []
    for entry in scan_posts_dir(posts_dir):
        if entry.kind is EntryKind.CONTENT:
            posts.append(read_post_file(entry.path))
        elif entry.kind is EntryKind.ASSET:
            assets.append(entry.path)
    return posts, assets


def read_posts_metadata(posts_dir: str) -> List[PostMetadata]:
    """Load the metadata of every post in a directory, newest first."""
    metadata = [
        read_post_metadata(entry.path)
        for entry in scan_posts_dir(posts_dir)
        if entry.kind is EntryKind.CONTENT
    ]
    return sort_newest_first(metadata)


def load_blog(content_dir: str) -> BlogCollection:
    """Load the home document, every post and every post asset of a content tree."""
    posts, assets = read_post_files(os.path.join(content_dir, POSTS_SUBDIR))
    home = read_home_file(content_dir)
    logger.info(f"Loaded {len(posts)} posts and {len(assets)} post assets from {content_dir}")
    return BlogCollection(
        home=home,
        posts=tuple(sort_newest_first(posts)),
        assets=tuple(assets),
    )
