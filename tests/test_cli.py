"""
Tests for the command-line entry point.
"""

import pytest

from mdpipe.cli import main


@pytest.fixture
def run(tmp_path, posts_dir):
    """Runs the CLI against the test posts directory with no config file."""
    out = tmp_path / "site"

    def _run(*extra):
        argv = ["--config", str(tmp_path / "missing.toml"), "--input", str(posts_dir), "--output", str(out)]
        return main(argv + list(extra))

    _run.output = out
    return _run


def test_success_exit_code(run, write_post, post_text, capsys):
    write_post("test.md", post_text("Test", "2020-01-01", tags="a b"))

    assert run() == 0
    assert (run.output / "tags" / "a.html").exists()
    assert "Built 1 of 1 posts" in capsys.readouterr().out


def test_empty_input_exits_zero(run):
    assert run() == 0
    assert (run.output / "index.html").exists()


def test_document_errors_exit_nonzero_and_name_the_file(run, write_post, post_text, capsys):
    write_post("good.md", post_text("Good", "2020-01-01"))
    write_post("bad.md", "---\ntitle: Bad\n")

    assert run() == 1
    err = capsys.readouterr().err
    assert "bad.md: front-matter opened with '---' but never closed" in err
    assert (run.output / "posts" / "good.html").exists()


def test_emit_failure_exits_nonzero(tmp_path, posts_dir, write_post, post_text, capsys):
    write_post("test.md", post_text("Test", "2020-01-01"))
    blocker = tmp_path / "site"
    blocker.write_text("in the way", encoding="utf-8")

    code = main(["--config", str(tmp_path / "missing.toml"), "--input", str(posts_dir), "--output", str(blocker)])

    assert code == 1
    assert "write failed" in capsys.readouterr().err


def test_missing_input_directory(tmp_path, capsys):
    code = main(["--config", str(tmp_path / "missing.toml"), "--input", str(tmp_path / "nope")])

    assert code == 1
    assert "input directory not found" in capsys.readouterr().err


@pytest.mark.parametrize(
    "name, text",
    [
        ("site.toml", 'site_name = "Bit Notes"\n'),
        ("site.yaml", "site_name: Bit Notes\n"),
        ("site.json", '{"site_name": "Bit Notes"}'),
    ],
)
def test_config_file_supplies_defaults(tmp_path, posts_dir, name, text):
    config_path = tmp_path / name
    config_path.write_text(text, encoding="utf-8")
    out = tmp_path / "site"

    assert main(["--config", str(config_path), "--input", str(posts_dir), "--output", str(out)]) == 0
    assert "Bit Notes" in (out / "index.html").read_text(encoding="utf-8")


def test_command_line_overrides_config(tmp_path, posts_dir):
    config_path = tmp_path / "site.toml"
    config_path.write_text('site_name = "From Config"\n', encoding="utf-8")
    out = tmp_path / "site"

    main(["--config", str(config_path), "--input", str(posts_dir), "--output", str(out), "--site-name", "From Flag"])

    html = (out / "index.html").read_text(encoding="utf-8")
    assert "From Flag" in html and "From Config" not in html


def test_invalid_config_file(tmp_path, capsys):
    config_path = tmp_path / "site.toml"
    config_path.write_text("site_name = \n", encoding="utf-8")

    assert main(["--config", str(config_path)]) == 1
    assert "invalid TOML" in capsys.readouterr().err


def test_unreadable_template_exits_nonzero(run, tmp_path, capsys):
    template = tmp_path / "base.html"
    template.write_bytes(b"\xff{{content}}")

    assert run("--template", str(template)) == 1
    assert "template is not valid UTF-8" in capsys.readouterr().err
