#!/usr/bin/env python3
"""
Setup script for inkblog - simple blog engine.
"""

from setuptools import setup, find_packages

setup(
    name='inkblog',
    version='0.1.0',
    description='A simple blog engine that packs Markdown posts into static HTML or serves them live',
    packages=find_packages(exclude=['tests', 'tests.*']),
    install_requires=[
        'mistune>=3.0',
        'PyYAML>=5.4',
        'Jinja2>=3.0',
        'Flask>=2.2',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
            'pytest-cov>=4.0',
        ],
    },
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Internet :: WWW/HTTP :: Site Management',
        'Topic :: Text Processing :: Markup :: HTML',
    ],
    python_requires='>=3.8',
    entry_points={
        'console_scripts': [
            'inkblog=inkblog_pkg.cli:main',
        ],
    },
    keywords='blog, markdown, jinja2, static site, flask',
)
