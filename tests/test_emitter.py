"""
Tests for writing the site to disk.
"""

from unittest.mock import patch

import pytest

from mdpipe.emitter import copy_static, emit_site, write_text
from mdpipe.errors import EmitError
from mdpipe.utils import clean_output_dir


def test_emit_site_creates_intermediate_directories(tmp_path):
    out = tmp_path / "site"

    written = emit_site({"tags/python.html": "<p>py</p>", "index.html": "home"}, out)

    assert written == [out / "index.html", out / "tags" / "python.html"]
    assert (out / "tags" / "python.html").read_text(encoding="utf-8") == "<p>py</p>"


def test_output_path_blocked_by_file_raises(tmp_path):
    blocker = tmp_path / "site"
    blocker.write_text("not a directory", encoding="utf-8")

    with pytest.raises(EmitError) as excinfo:
        emit_site({"index.html": "home"}, blocker)
    assert excinfo.value.path == blocker / "index.html"


@patch("pathlib.Path.open", side_effect=PermissionError(13, "Permission denied"))
def test_permission_denied_becomes_emit_error(mock_open, tmp_path):
    target = tmp_path / "index.html"

    with pytest.raises(EmitError) as excinfo:
        write_text(target, "home")
    assert str(excinfo.value) == f"{target.as_posix()}: write failed: Permission denied"


def test_emit_stops_at_first_failure(tmp_path):
    out = tmp_path / "site"
    out.mkdir()
    (out / "b").write_text("file in the way", encoding="utf-8")

    with pytest.raises(EmitError):
        emit_site({"a.html": "a", "b/c.html": "c", "d.html": "d"}, out)
    assert (out / "a.html").exists()
    assert not (out / "d.html").exists()


def test_copy_static(tmp_path):
    static = tmp_path / "static"
    (static / "css").mkdir(parents=True)
    (static / "css" / "style.css").write_text("body{}", encoding="utf-8")
    (static / "favicon.ico").write_bytes(b"\x00")
    out = tmp_path / "site"

    copied = copy_static(static, out)

    assert copied == [out / "css", out / "favicon.ico"]
    assert (out / "css" / "style.css").read_text(encoding="utf-8") == "body{}"


def test_clean_output_dir_guards(tmp_path):
    project = tmp_path / "project"
    out = project / "dist"
    (out / "posts").mkdir(parents=True)

    with pytest.raises(EmitError):
        clean_output_dir(project, project)
    with pytest.raises(EmitError):
        clean_output_dir(project, out)

    clean_output_dir(out, project)
    assert not out.exists()
