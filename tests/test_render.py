"""
Tests for the content renderer.
"""

import datetime as dt
from pathlib import Path

import pytest

from mdpipe.config import SiteConfig
from mdpipe.errors import RenderError
from mdpipe.loader import Document
from mdpipe.render import (
    check_structure,
    placeholder_page,
    render_document,
    render_template,
)


@pytest.fixture
def make_document():
    def _make(body, **fields):
        return Document(
            path=Path("posts/sample.md"),
            title="Sample",
            date=dt.datetime(2020, 1, 1),
            body=body,
            slug="sample",
            **fields,
        )

    return _make


def test_renders_plain_body(make_document):
    page = render_document(make_document("hello"))
    assert "<p>hello</p>" in page.html
    assert page.summary == "hello"
    assert page.words == 1
    assert page.failed is False


def test_code_blocks_pass_through_verbatim(make_document):
    body = "Reduce it:\n\n```python\ntotal = a_b_c * 2 * d_e\n```\n"
    page = render_document(make_document(body))
    assert "total = a_b_c * 2 * d_e" in page.html
    assert "<em>" not in page.html


def test_inline_math_is_not_treated_as_markdown(make_document):
    page = render_document(make_document("Mask is $m_i \\cdot x_i$ per lane."))
    assert '<span class="math inline">$m_i \\cdot x_i$</span>' in page.html
    assert "<em>" not in page.html


def test_display_math_block_is_kept(make_document):
    body = "Before\n\n$$\n\\sum_{i=0}^{n} x_i < y_i\n$$\n\nAfter"
    page = render_document(make_document(body))
    assert '<div class="math display">$$\n\\sum_{i=0}^{n} x_i &lt; y_i\n$$</div>' in page.html
    assert "<p>After</p>" in page.html


def test_dollar_amounts_and_code_spans_are_not_math(make_document):
    page = render_document(make_document("It costs $5 and $10. Run `echo $HOME $PATH`."))
    assert "math" not in page.html
    assert "<code>echo $HOME $PATH</code>" in page.html


def test_unterminated_code_fence_raises(make_document):
    with pytest.raises(RenderError) as excinfo:
        render_document(make_document("text\n\n```c\nint x;\n"))
    assert excinfo.value.path == Path("posts/sample.md")
    assert "line 3" in str(excinfo.value)


def test_unterminated_display_math_raises():
    with pytest.raises(RenderError):
        check_structure("$$\nx + y\n")


def test_single_line_display_and_bracket_text(make_document):
    page = render_document(make_document("$$e^{i\\pi} + 1 = 0$$\n\n\\[citation needed]"))
    assert '<div class="math display">$$e^{i\\pi} + 1 = 0$$</div>' in page.html
    assert "citation needed" in page.html


def test_fence_markers_must_match_to_close():
    check_structure("~~~\n```\n~~~\n")
    with pytest.raises(RenderError):
        check_structure("````\n```\n")


def test_inline_triple_backticks_are_not_a_fence(make_document):
    check_structure("```x``` text")
    page = render_document(make_document("```x``` is inline code.\n"))
    assert "<code>x</code> is inline code." in page.html


def test_indented_code_keeps_shift_operators(make_document):
    page = render_document(make_document("Read it:\n\n    std::cin\n    >> value;\n"))
    assert "std::cin\n&gt;&gt; value;" in page.html
    assert "<blockquote>" not in page.html


def test_list_marker_inside_display_math_stays_in_block(make_document):
    page = render_document(make_document("$$\na\n- b\n$$\n"))
    assert '<div class="math display">$$\na\n- b\n$$</div>' in page.html


def test_summary_prefers_front_matter(make_document):
    page = render_document(make_document("long body text", summary="Short."))
    assert page.summary == "Short."


def test_summary_is_truncated(make_document):
    page = render_document(make_document("word " * 100))
    assert page.summary.endswith("...")
    assert len(page.summary) == 203


def test_relative_images_point_at_site_root(make_document):
    page = render_document(make_document("![chart](img/chart.png)"))
    assert 'src="../img/chart.png"' in page.html


def test_highlight_uses_pygments(make_document):
    body = "```python\nprint('hi')\n```\n"
    page = render_document(make_document(body), SiteConfig(highlight=True))
    assert 'class="codehilite"' in page.html


def test_placeholder_page(make_document):
    document = make_document("```")
    page = placeholder_page(document)
    assert page.failed is True
    assert page.document is document
    assert "could not be rendered" in page.html


def test_render_template_substitutes_content_last():
    template = "<title>{{title}}</title>{{content}}"
    output = render_template(template, title="T", content="{{title}} stays")
    assert output == "<title>T</title>{{title}} stays"
