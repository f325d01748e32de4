"""
Serve mode: render the blog on every request over HTTP.

Nothing is cached between requests. The only state shared by the request
threads is the loaded template set and the configured directories, which are
never modified after the application is created.
"""

import logging
import mimetypes
import os
import posixpath
import stat
from dataclasses import dataclass
from typing import Callable, Iterable, List, Tuple

from flask import Flask, Response, current_app, request, send_file
from werkzeug.serving import WSGIRequestHandler, make_server

from .content import POSTS_SUBDIR, read_home_file, read_post_file, read_posts_metadata
from .errors import InkblogError, StaticRequestError
from .templates import (
    SERVE_ROOT_PAGE,
    BlogTemplates,
    home_to_model,
    metadata_to_model,
    post_to_model,
)

ASSETS_SUBDIR = 'assets'
ASSETS_ROUTE = '/assets'
POSTS_ROUTE = '/posts'
POST_ASSETS_ROUTE = '/posts/post_assets'
EXCLUDED_EXTENSIONS = ('.md',)
DEFAULT_MIME_TYPE = 'application/octet-stream'
REQUEST_TIMEOUT = 5

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServeContext:
    """Read-only state shared by every request handler."""
    templates: BlogTemplates
    content_dir: str
    template_assets_dir: str

    @property
    def posts_dir(self) -> str:
        return os.path.join(self.content_dir, POSTS_SUBDIR)


def has_route_prefix(path: str, route: str) -> bool:
    """Whether ``path`` is ``route`` itself or lies below it, segment-wise."""
    route = route.rstrip('/')
    return path == route or path.startswith(route + '/')


def has_any_extension(path: str, extensions: Iterable[str]) -> bool:
    extension = posixpath.splitext(posixpath.basename(path))[1]
    if not extension:
        return False
    return extension in extensions


def resolve_static_path(route: str, base_dir: str, request_path: str,
                        exclude_extensions: Iterable[str] = ()) -> Tuple[str, int]:
    """
    Map a request path under ``route`` to a file inside ``base_dir``.

    Returns the resolved file path and its size. Raises ``StaticRequestError``
    with 400 when the path is not under the route, and with 404 for the route
    root itself, excluded extensions, paths escaping the base directory,
    directories and missing files. Any other stat failure is a 500.
    """
    if not has_route_prefix(request_path, route):
        raise StaticRequestError(400, f"{request_path} is not under {route}")
    relative = request_path[len(route.rstrip('/')):].lstrip('/')
    if not relative:
        raise StaticRequestError(404, f"refusing to serve the root of {route}")

    base = os.path.realpath(base_dir)
    path = os.path.realpath(os.path.join(base, relative))
    if os.path.commonpath([base, path]) != base:
        raise StaticRequestError(404, f"{request_path} resolves outside {base}")
    # Checked on the resolved name, after trailing `/`, `/.` and symlinks are collapsed
    if has_any_extension(os.path.basename(path), exclude_extensions):
        raise StaticRequestError(404, f"excluded extension: {request_path}")

    try:
        file_stat = os.stat(path)
    except (FileNotFoundError, NotADirectoryError) as e:
        raise StaticRequestError(404, f"not found: {path}") from e
    except OSError as e:
        raise StaticRequestError(500, f"error reading {path}: {e}") from e
    if stat.S_ISDIR(file_stat.st_mode):
        raise StaticRequestError(404, f"{path} is a directory")
    return path, file_stat.st_size


def guess_mime_type(path: str) -> str:
    return mimetypes.guess_type(path)[0] or DEFAULT_MIME_TYPE


def serve_static(route: str, base_dir: str, request_path: str,
                 exclude_extensions: Iterable[str] = EXCLUDED_EXTENSIONS) -> Response:
    logger.debug(f"serving static from base dir: {base_dir}")
    try:
        path, _ = resolve_static_path(route, base_dir, request_path, exclude_extensions)
        logger.debug(f"serving static resource from path: {path}")
        try:
            return send_file(path, mimetype=guess_mime_type(path))
        except FileNotFoundError as e:
            raise StaticRequestError(404, f"not found: {path}") from e
        except OSError as e:
            raise StaticRequestError(500, f"error opening {path}: {e}") from e
    except StaticRequestError as e:
        logger.debug(f"static request {request_path}: {e}")
        return Response(status=e.status)


def generate_post_content(context: ServeContext, post_file: str) -> str:
    path = os.path.join(context.posts_dir, post_file + '.md')
    logger.debug(f"generating post content from file: {path}")
    post = read_post_file(path)
    return context.templates.render_post(post_to_model(post, SERVE_ROOT_PAGE))


def generate_home_page_content(context: ServeContext) -> str:
    home = read_home_file(context.content_dir)
    posts = [
        metadata_to_model(metadata, SERVE_ROOT_PAGE, POSTS_ROUTE)
        for metadata in read_posts_metadata(context.posts_dir)
    ]
    return context.templates.render_home(home_to_model(home, posts))


def html_response(html: str) -> Response:
    return Response(html, status=200, mimetype='text/html')


def serve_home(context: ServeContext, request_path: str) -> Response:
    if request_path not in ('/', ''):
        return Response(status=404)
    try:
        html = generate_home_page_content(context)
    except InkblogError as e:
        logger.error(f"serving content error generating main page content: {e}")
        return Response(status=500)
    return html_response(html)


def serve_post(context: ServeContext, request_path: str) -> Response:
    normalized = posixpath.normpath(request_path).rstrip('/')
    if has_any_extension(normalized, EXCLUDED_EXTENSIONS):
        logger.debug(f"discarding request to .md file: {request_path}")
        return Response(status=404)
    if not has_route_prefix(normalized, POSTS_ROUTE):
        logger.debug(f"bad post request: {request_path}")
        return Response(status=400)
    post_file = posixpath.basename(normalized[len(POSTS_ROUTE):])
    if not post_file:
        return Response(status=404)
    try:
        html = generate_post_content(context, post_file)
    except InkblogError as e:
        logger.error(f"serving content error generating post content: {e}")
        return Response(status=500)
    return html_response(html)


def serve_template_asset(context: ServeContext, request_path: str) -> Response:
    return serve_static(ASSETS_ROUTE, context.template_assets_dir, request_path)


def serve_post_asset(context: ServeContext, request_path: str) -> Response:
    return serve_static(POST_ASSETS_ROUTE, context.posts_dir, request_path)


Handler = Callable[[ServeContext, str], Response]

# (route prefix, endpoint, handler); werkzeug prefers the longest static prefix.
ROUTES: List[Tuple[str, str, Handler]] = [
    ('/', 'home', serve_home),
    (ASSETS_ROUTE, 'assets', serve_template_asset),
    (POSTS_ROUTE, 'posts', serve_post),
    (POST_ASSETS_ROUTE, 'post_assets', serve_post_asset),
]


def _make_view(handler: Handler):
    def view(subpath=None):
        return handler(current_app.extensions['inkblog'], request.path)
    view.__name__ = handler.__name__
    return view


def create_app(templates_dir: str, content_dir: str) -> Flask:
    """Build the Flask application serving a blog from its templates and content."""
    templates = BlogTemplates(templates_dir)
    context = ServeContext(
        templates=templates,
        content_dir=os.path.realpath(content_dir),
        template_assets_dir=os.path.realpath(os.path.join(templates_dir, ASSETS_SUBDIR)),
    )
    logger.debug(f"serving template assets from dir: {context.template_assets_dir}")

    app = Flask(__name__, static_folder=None)
    app.config['INKBLOG_TEMPLATES_DIR'] = templates_dir
    app.config['INKBLOG_CONTENT_DIR'] = context.content_dir
    app.extensions['inkblog'] = context

    for prefix, endpoint, handler in ROUTES:
        view = _make_view(handler)
        app.add_url_rule(prefix, endpoint, view, methods=['GET'])
        if prefix != '/':
            app.add_url_rule(f"{prefix}/<path:subpath>", endpoint, view, methods=['GET'])

    @app.before_request
    def log_request():
        logger.debug(f"request {request.method} {request.path}")

    @app.after_request
    def log_response(response):
        logger.debug(f"response {request.method} {request.path} {response.status}")
        return response

    return app


class TimeoutRequestHandler(WSGIRequestHandler):
    """Request handler with fixed socket read and write timeouts."""
    timeout = REQUEST_TIMEOUT


def parse_address(address: str) -> Tuple[str, int]:
    """Split ``host:port``; an empty host binds every interface."""
    host, sep, port = address.rpartition(':')
    if not sep:
        raise ValueError(f"invalid address {address!r}, expected host:port")
    try:
        port_number = int(port)
    except ValueError:
        raise ValueError(f"invalid port in address {address!r}") from None
    if not 0 <= port_number <= 65535:
        raise ValueError(f"invalid port in address {address!r}")
    if host.startswith('[') and host.endswith(']'):
        host = host[1:-1]
    return host or '0.0.0.0', port_number


def run_server(app: Flask, address: str) -> None:
    """Serve ``app`` on ``address`` with one thread per connection until interrupted."""
    host, port = parse_address(address)
    server = make_server(host, port, app, threaded=True, request_handler=TimeoutRequestHandler)
    logger.info(f"listening on {host}:{server.port}")
    try:
        server.serve_forever()
    finally:
        server.server_close()
