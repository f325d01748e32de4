"""
inkblog - A simple blog engine.

inkblog reads Markdown posts with YAML front matter and renders them through
Jinja2 templates, either once into a directory of static files (pack) or on
every request over HTTP (serve).
"""

__version__ = "0.1.0"

from .content import BlogCollection, BlogHome, Post, PostMetadata, load_blog
from .pack import Packer
from .serve import create_app
from .templates import BlogTemplates

__all__ = ['BlogCollection', 'BlogHome', 'Post', 'PostMetadata', 'load_blog',
           'Packer', 'create_app', 'BlogTemplates']
