"""Test configuration and fixtures for inkblog tests."""

import pytest
import tempfile
import shutil
import os
import sys
from pathlib import Path

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from inkblog_pkg.serve import create_app

PNG_DATA = b'\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x02\x00\x00\x00\x90wS\xde\x00\x00\x00\nIDATx\x9cc\xf8\x00\x00\x00\x01\x00\x01\x00\x00\x00\x00IEND\xaeB`\x82'

HOME_DOCUMENT = """---
title: Test Blog
author: Jane Doe
twitter: "@janedoe"
year: 2021
---
Welcome to **my** blog.
"""

INDEX_TEMPLATE = """<html>
<head><title>{{ title }}</title></head>
<body>
<h1>{{ title }}</h1>
<div class="home">{{ home_content|safe }}</div>
<ul>
{% for post in posts %}<li><a href="{{ post.file_name }}">{{ post.title }}</a> {{ post.date }}{% for tag in post.tags %} #{{ tag }}{% endfor %}</li>
{% endfor %}</ul>
<footer>{{ author }} {{ year }} {{ twitter }}</footer>
</body>
</html>"""

POST_TEMPLATE = """<html>
<head><title>{{ title }}</title></head>
<body>
<a href="{{ root_page }}">home</a>
<h1>{{ title }}</h1>
<p class="date">{{ date }}</p>
<p class="summary">{{ summary }}</p>
<ul>{% for tag in tags %}<li>{{ tag }}</li>{% endfor %}</ul>
{% if favorite %}<span class="favorite">favorite</span>{% endif %}
<article>{{ content|safe }}</article>
<footer>{{ author }} {{ year }} {{ file_name }}</footer>
</body>
</html>"""


def make_post(title, date, tags=('python',), summary='A summary', author='Jane Doe',
              body='Some content.', favorite=None):
    """Build the text of a post document."""
    lines = [
        '---',
        f'title: {title}',
        f'date: {date}',
        'tags: [' + ', '.join(tags) + ']',
        f'summary: {summary}',
        f'author: {author}',
    ]
    if favorite is not None:
        lines.append(f'favorite: {"true" if favorite else "false"}')
    lines.append('---')
    return '\n'.join(lines) + '\n' + body + '\n'


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def mock_content_dir(temp_dir):
    """Create a content directory with a home document, two posts and assets."""
    content_dir = Path(temp_dir) / 'content'
    posts_dir = content_dir / 'posts'
    posts_dir.mkdir(parents=True)

    (content_dir / 'home.md').write_text(HOME_DOCUMENT)
    (posts_dir / 'post-1.md').write_text(make_post(
        'Post One', '2020-01-01 10:00', tags=('rust', 'web'),
        body='![alt](pic.png)\n\nSee [the page](https://example.com/page.png) and ~~old~~ text.'
    ))
    (posts_dir / 'post-2.md').write_text(make_post(
        'Post Two', '2021-01-01 10:00', favorite=True, body='Second post.'
    ))
    (posts_dir / 'pic.png').write_bytes(PNG_DATA)
    # No extension: neither content nor asset.
    (posts_dir / 'NOTES').write_text('scratch')
    # Subdirectories are not descended.
    drafts_dir = posts_dir / 'drafts'
    drafts_dir.mkdir()
    (drafts_dir / 'draft.md').write_text('no front matter')

    return str(content_dir)


@pytest.fixture
def mock_templates_dir(temp_dir):
    """Create a templates directory with the home and post templates and assets."""
    templates_dir = Path(temp_dir) / 'templates'
    css_dir = templates_dir / 'assets' / 'css'
    css_dir.mkdir(parents=True)

    (templates_dir / 'index.html').write_text(INDEX_TEMPLATE)
    (templates_dir / 'post.html').write_text(POST_TEMPLATE)
    (css_dir / 'style.css').write_text('body { color: #333; }')
    (templates_dir / 'assets' / 'README.md').write_text('# Theme notes')
    (templates_dir / 'assets' / 'font.woff2x').write_bytes(b'\x00\x01binary')

    return str(templates_dir)


@pytest.fixture
def mock_output_dir(temp_dir):
    """Create an output directory."""
    output_dir = Path(temp_dir) / 'output'
    output_dir.mkdir()
    return str(output_dir)


@pytest.fixture
def app(mock_templates_dir, mock_content_dir):
    app = create_app(mock_templates_dir, mock_content_dir)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
