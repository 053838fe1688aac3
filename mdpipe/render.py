from __future__ import annotations

import html
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import markdown

from .config import SiteConfig
from .content import FENCE_RE, count_words, find_display_open, normalize_list_spacing
from .errors import RenderError
from .loader import Document
from .mathblocks import MathExtension

IMG_SRC_RE = re.compile(r'<img([^>]*?)src="([^"]+)"', re.IGNORECASE)
TAG_RE = re.compile(r"<[^>]+>")
SUMMARY_LENGTH = 200
PLACEHOLDER_HTML = '<p class="render-error">This post could not be rendered.</p>'


@dataclass(frozen=True)
class RenderedPage:
    document: Document
    html: str
    toc: str = ""
    summary: str = ""
    words: int = 0
    failed: bool = False


def check_structure(body: str, path: Optional[Path] = None) -> None:
    """Raise RenderError for code fences or display math left open."""
    fence_marker = ""
    fence_line = 0
    display = None
    display_line = 0
    for number, line in enumerate(body.splitlines(), start=1):
        if fence_marker:
            if line.strip() == fence_marker:
                fence_marker = ""
            continue
        if display is not None:
            if line.rstrip().endswith(display[1]):
                display = None
            continue
        fence_match = FENCE_RE.match(line)
        if fence_match:
            fence_marker = fence_match.group("marker")
            fence_line = number
            continue
        opened = find_display_open(line)
        if opened is not None and not opened[2]:
            display = opened
            display_line = number
    if fence_marker:
        raise RenderError(path, f"unterminated code fence {fence_marker!r} opened on line {fence_line}")
    if display is not None:
        raise RenderError(path, f"unterminated display math {display[0]!r} opened on line {display_line}")


def fix_relative_img_src(html_text: str, root: str) -> str:
    def repl(match: re.Match) -> str:
        attrs = match.group(1)
        src = match.group(2)
        if src.startswith(("http://", "https://", "data:", "#", "/", "./", "../")):
            return match.group(0)
        return f'<img{attrs}src="{root}/{src}"'

    return IMG_SRC_RE.sub(repl, html_text)


def strip_tags(html_text: str) -> str:
    return TAG_RE.sub("", html_text)


def make_summary(html_text: str) -> str:
    summary = " ".join(html.unescape(strip_tags(html_text)).split())
    if len(summary) > SUMMARY_LENGTH:
        return summary[:SUMMARY_LENGTH] + "..."
    return summary


def build_markdown(toc_depth: str = "2-4", highlight: bool = False) -> markdown.Markdown:
    extensions = ["fenced_code", "tables", "toc", MathExtension()]
    extension_configs = {"toc": {"toc_depth": toc_depth}}
    if highlight:
        extensions.append("codehilite")
        extension_configs["codehilite"] = {"css_class": "codehilite", "guess_lang": False}
    return markdown.Markdown(extensions=extensions, extension_configs=extension_configs)


def render_document(document: Document, config: Optional[SiteConfig] = None) -> RenderedPage:
    config = config or SiteConfig()
    check_structure(document.body, document.path)
    md = build_markdown(config.toc_depth, config.highlight)
    html_content = md.convert(normalize_list_spacing(document.body))
    toc_html = md.toc
    html_content = fix_relative_img_src(html_content, "..")
    summary = document.summary or make_summary(html_content)
    return RenderedPage(
        document=document,
        html=html_content,
        toc=toc_html,
        summary=summary,
        words=count_words(strip_tags(html_content)),
    )


def placeholder_page(document: Document) -> RenderedPage:
    return RenderedPage(
        document=document,
        html=PLACEHOLDER_HTML,
        summary=document.summary,
        failed=True,
    )


def render_template(template: str, **context: str) -> str:
    output = template
    late_keys = {"content", "sidebar"}
    for key, value in context.items():
        if key in late_keys:
            continue
        output = output.replace(f"{{{{{key}}}}}", value)
    for key in late_keys:
        if key in context:
            output = output.replace(f"{{{{{key}}}}}", context[key])
    return output


def read_template(path: Path) -> str:
    return path.read_text(encoding="utf-8")
