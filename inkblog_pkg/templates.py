"""
Template models and rendering.

Domain records are mapped to flat template models by pure functions shared by
pack and serve modes; the only values that differ by mode are the link back to
the home page and the route prefix of listed posts.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Iterable, List, Tuple

from jinja2 import (
    Environment,
    FileSystemLoader,
    TemplateError,
    TemplateNotFound,
    TemplateSyntaxError,
    select_autoescape,
)

from .content import CONTENT_EXTENSION, DATE_TIME_FORMAT, BlogHome, Post, PostMetadata, Tag
from .errors import NoHomeTemplateError, NoPostTemplateError, TemplateLoadError, TemplateRenderError

HOME_TEMPLATE = 'index.html'
POST_TEMPLATE = 'post.html'

PACK_ROOT_PAGE = 'index.html'
SERVE_ROOT_PAGE = '/'

logger = logging.getLogger(__name__)


def format_date_time(value: datetime) -> str:
    return value.strftime(DATE_TIME_FORMAT)


class TemplateDateTime:
    """A timestamp that formats itself when a template prints it."""

    __slots__ = ('value',)

    def __init__(self, value: datetime):
        self.value = value

    def __str__(self):
        return format_date_time(self.value)

    def __eq__(self, other):
        return isinstance(other, TemplateDateTime) and other.value == self.value

    def __hash__(self):
        return hash(self.value)

    def __repr__(self):
        return f"TemplateDateTime({self.value!r})"

    def __deepcopy__(self, memo):
        return self


@dataclass(frozen=True)
class PostTemplateModel:
    title: str
    date: TemplateDateTime
    tags: Tuple[Tag, ...]
    summary: str
    root_page: str
    content: str
    favorite: bool
    file_name: str
    author: str
    year: str


@dataclass(frozen=True)
class HomeTemplateModel:
    title: str
    twitter: str
    home_content: str
    author: str
    year: int
    posts: List[PostTemplateModel] = field(default_factory=list)


def post_to_model(post: Post, root_page: str) -> PostTemplateModel:
    return PostTemplateModel(
        title=post.title,
        date=TemplateDateTime(post.date),
        tags=tuple(post.tags),
        summary=post.summary,
        root_page=root_page,
        content=post.content,
        favorite=post.favorite,
        file_name=post.file_name,
        author=post.author,
        year=post.year,
    )


def post_route(file_name: str, route_prefix: str) -> str:
    """Route of a post from its source file name, e.g. ``/posts/post-1``."""
    if file_name.endswith(CONTENT_EXTENSION):
        file_name = file_name[:-len(CONTENT_EXTENSION)]
    return f"{route_prefix}/{file_name}"


def metadata_to_model(metadata: PostMetadata, root_page: str, route_prefix: str) -> PostTemplateModel:
    """Listing model for a post whose body was not loaded."""
    return PostTemplateModel(
        title=metadata.title,
        date=TemplateDateTime(metadata.date),
        tags=tuple(metadata.tags),
        summary=metadata.summary,
        root_page=root_page,
        content='',
        favorite=False,
        file_name=post_route(metadata.file_name, route_prefix),
        author=metadata.author,
        year='',
    )


def home_to_model(home: BlogHome, posts: Iterable[PostTemplateModel]) -> HomeTemplateModel:
    return HomeTemplateModel(
        title=home.title,
        twitter=home.twitter,
        home_content=home.home_content,
        author=home.author,
        year=home.year,
        posts=list(posts),
    )


class BlogTemplates:
    """The home page and post page templates of a blog."""

    def __init__(self, templates_dir: str):
        self.templates_dir = templates_dir
        self.env = Environment(
            loader=FileSystemLoader(templates_dir),
            autoescape=select_autoescape(['html'])
        )
        self.home_template = self._load(HOME_TEMPLATE, NoHomeTemplateError)
        self.post_template = self._load(POST_TEMPLATE, NoPostTemplateError)
        logger.debug(f"Loaded templates from {templates_dir}")

    def _load(self, template_name, missing_error):
        try:
            return self.env.get_template(template_name)
        except TemplateNotFound as e:
            raise missing_error() from e
        except TemplateSyntaxError as e:
            raise TemplateLoadError(f"template error in {template_name}: {e}") from e

    def _render(self, template, model) -> str:
        try:
            return template.render(asdict(model))
        except TemplateError as e:
            raise TemplateRenderError(f"error rendering {template.name}: {e}") from e

    def render_home(self, model: HomeTemplateModel) -> str:
        return self._render(self.home_template, model)

    def render_post(self, model: PostTemplateModel) -> str:
        return self._render(self.post_template, model)
