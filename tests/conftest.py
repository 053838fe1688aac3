"""
Configuration file for pytest.

Adds the project root to the Python path so that tests can import the
'mdpipe' package without installing it, and provides helpers for laying
out post directories.
"""

import sys
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from mdpipe.config import SiteConfig  # noqa: E402


@pytest.fixture
def post_text():
    """Builds post source with a front-matter block."""

    def _make(title, date, body="hello", **fields):
        lines = ["---", f'title: "{title}"', f"date: {date}"]
        for key, value in fields.items():
            lines.append(f"{key}: {value}")
        lines.append("---")
        lines.append(body)
        return "\n".join(lines) + "\n"

    return _make


@pytest.fixture
def posts_dir(tmp_path):
    path = tmp_path / "posts"
    path.mkdir()
    return path


@pytest.fixture
def write_post(posts_dir):
    """Writes a post file below the posts directory and returns its path."""

    def _write(name, text):
        path = posts_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def site_config(tmp_path, posts_dir):
    return SiteConfig(input_dir=posts_dir, output_dir=tmp_path / "site")
