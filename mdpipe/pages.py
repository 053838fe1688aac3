from __future__ import annotations

import datetime as dt
import html
import json
from typing import Mapping, Optional

from pygments.formatters import HtmlFormatter

from .config import SiteConfig
from .indexer import SiteIndex
from .loader import Document
from .render import RenderedPage, render_template
from .utils import iso_date, join_url, rfc822_date

DATE_FMT = "%Y-%m-%d"
DATETIME_FMT = "%Y-%m-%d %H:%M"

Pages = Mapping[str, RenderedPage]


def format_date(value: dt.datetime) -> str:
    if value.time() == dt.time():
        return value.strftime(DATE_FMT)
    return value.strftime(DATETIME_FMT)


def post_url(document: Document, root: str) -> str:
    return f"{root}/posts/{document.slug}.html"


def build_tag_list(index: SiteIndex, root: str) -> str:
    items = []
    for name, docs in sorted(index.tags.items(), key=lambda x: (-len(x[1]), x[0].lower(), x[0])):
        items.append(
            f'<li><a href="{index.tag_url(name, root)}">{html.escape(name)}</a>'
            f'<span class="count">{len(docs)}</span></li>'
        )
    return "\n".join(items) if items else "<li>No tags yet.</li>"


def build_sidebar(index: SiteIndex, root: str, config: SiteConfig, toc_html: str = "") -> str:
    panels = [
        '<div class="panel">'
        "<h3>About</h3>"
        f"<p>{html.escape(config.site_description)}</p>"
        "</div>"
    ]
    if toc_html and "<li" in toc_html:
        panels.append(
            '<div class="panel">'
            "<h3>Contents</h3>"
            f"{toc_html}"
            "</div>"
        )
    panels.append(
        '<div class="panel">'
        "<h3>Tags</h3>"
        f'<ul class="tag-list">{build_tag_list(index, root)}</ul>'
        "</div>"
    )
    return "".join(panels)


def build_tag_chips(document: Document, index: SiteIndex, root: str) -> str:
    chips = []
    for tag in document.tags:
        if tag in index.tag_slugs:
            chips.append(f'<a class="chip" href="{index.tag_url(tag, root)}">{html.escape(tag)}</a>')
        else:
            chips.append(f'<span class="chip">{html.escape(tag)}</span>')
    return " ".join(chips)


def build_post_cards(documents: tuple[Document, ...], pages: Pages, index: SiteIndex, root: str) -> str:
    if not documents:
        return '<p class="empty">No posts yet.</p>'
    cards = []
    for document in documents:
        page = pages.get(document.path.as_posix())
        summary = page.summary if page else document.summary
        words = page.words if page else 0
        url = post_url(document, root)
        cards.append(
            '<article class="post-card">'
            '<div class="post-meta"><div class="post-meta-left">'
            f'<span class="post-date">{format_date(document.date)}</span>'
            f'<span class="post-words">{words} words</span>'
            "</div>"
            f'<div class="post-tags">{build_tag_chips(document, index, root)}</div></div>'
            f'<h2 class="post-title"><a href="{url}">{html.escape(document.title)}</a></h2>'
            f'<p class="post-summary">{html.escape(summary)}</p>'
            f'<a class="post-more" href="{url}">Read more</a>'
            "</article>"
        )
    return "\n".join(cards)


def footer_text(index: SiteIndex, config: SiteConfig) -> str:
    name = html.escape(config.site_name)
    if not index.chronological:
        return name
    return f"&copy; {index.chronological[0].date.year} {name}"


def wrap_page(
    template: str,
    title: str,
    root: str,
    content: str,
    sidebar: str,
    index: SiteIndex,
    config: SiteConfig,
    extra_head: str = "",
) -> str:
    if config.highlight:
        extra_head = f'<link rel="stylesheet" href="{root}/css/pygments.css">{extra_head}'
    return render_template(
        template,
        title=html.escape(title),
        root=root,
        content=content,
        sidebar=sidebar,
        site_name=html.escape(config.site_name),
        site_description=html.escape(config.site_description),
        footer=footer_text(index, config),
        extra_head=extra_head,
    )


def build_post_page(template: str, page: RenderedPage, index: SiteIndex, config: SiteConfig) -> str:
    root = ".."
    document = page.document
    draft_html = "" if document.published else '<div class="draft-notice">Unpublished draft.</div>'
    content = (
        f'<article class="post layout-{html.escape(document.layout)}">'
        '<div class="post-meta"><div class="post-meta-left">'
        f'<span class="post-date">{format_date(document.date)}</span>'
        f'<span class="post-words">{page.words} words</span>'
        "</div>"
        f'<div class="post-tags">{build_tag_chips(document, index, root)}</div></div>'
        f'<h1 class="post-title">{html.escape(document.title)}</h1>'
        f"{draft_html}"
        f'<div class="post-body">{page.html}</div>'
        f'<div class="post-footer"><a href="{root}/index.html">Back to home</a></div>'
        "</article>"
    )
    return wrap_page(
        template,
        f"{document.title} | {config.site_name}",
        root,
        content,
        build_sidebar(index, root, config, page.toc),
        index,
        config,
    )


def build_index_page(template: str, pages: Pages, index: SiteIndex, config: SiteConfig) -> str:
    root = "."
    content = (
        '<div class="section-head">'
        "<h2>Latest posts</h2>"
        "</div>"
        f'<div class="post-grid">{build_post_cards(index.chronological, pages, index, root)}</div>'
    )
    return wrap_page(
        template,
        f"{config.site_name} | Home",
        root,
        content,
        build_sidebar(index, root, config),
        index,
        config,
    )


def build_tag_pages(template: str, pages: Pages, index: SiteIndex, config: SiteConfig) -> dict[str, str]:
    root = ".."
    sidebar = build_sidebar(index, root, config)
    out = {}
    for tag, documents in index.tags.items():
        content = (
            '<div class="section-head">'
            f"<h2>{html.escape(tag)}</h2>"
            f"<p>{len(documents)} posts tagged with this topic.</p>"
            "</div>"
            f'<div class="post-grid">{build_post_cards(documents, pages, index, root)}</div>'
        )
        out[f"tags/{index.tag_slugs[tag]}.html"] = wrap_page(
            template, f"{tag} | {config.site_name}", root, content, sidebar, index, config
        )
    return out


def build_archive(template: str, index: SiteIndex, config: SiteConfig) -> str:
    root = "."
    sections = []
    for month, documents in index.by_month.items():
        rows = "".join(
            f'<li><span class="archive-date">{format_date(doc.date)}</span>'
            f'<a href="{post_url(doc, root)}">{html.escape(doc.title)}</a></li>'
            for doc in documents
        )
        sections.append(
            f'<section class="archive-group"><h3>{month}</h3>'
            f'<ul class="archive-list">{rows}</ul></section>'
        )
    if not sections:
        sections.append('<p class="archive-empty">No posts yet.</p>')
    content = (
        '<div class="section-head">'
        "<h2>Archive</h2>"
        f"<p>{len(index.chronological)} posts by date.</p>"
        "</div>"
        f'{"".join(sections)}'
    )
    return wrap_page(
        template,
        f"Archive | {config.site_name}",
        root,
        content,
        build_sidebar(index, root, config),
        index,
        config,
    )


def build_search_index(pages: Pages, index: SiteIndex) -> str:
    entries = []
    for document in index.chronological:
        page = pages.get(document.path.as_posix())
        entries.append(
            {
                "title": document.title,
                "url": f"posts/{document.slug}.html",
                "summary": page.summary if page else document.summary,
                "date": format_date(document.date),
                "tags": [{"name": tag, "slug": index.tag_slugs[tag]} for tag in document.tags],
            }
        )
    return json.dumps(entries, indent=2, ensure_ascii=True)


def build_rss(pages: Pages, index: SiteIndex, config: SiteConfig) -> Optional[str]:
    if not config.site_url:
        return None
    items = []
    for document in index.chronological[: config.feed_limit]:
        link = join_url(config.site_url, f"posts/{document.slug}.html")
        page = pages.get(document.path.as_posix())
        summary = page.summary if page else document.summary
        items.append(
            "\n".join(
                [
                    "<item>",
                    f"<title>{html.escape(document.title)}</title>",
                    f"<link>{link}</link>",
                    f"<guid>{link}</guid>",
                    f"<pubDate>{rfc822_date(document.date)}</pubDate>",
                    f"<description>{html.escape(summary)}</description>",
                    "</item>",
                ]
            )
        )
    header = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<rss version="2.0">',
        "<channel>",
        f"<title>{html.escape(config.site_name)}</title>",
        f"<link>{config.site_url}/</link>",
        f"<description>{html.escape(config.site_description)}</description>",
    ]
    if index.chronological:
        header.append(f"<lastBuildDate>{rfc822_date(index.chronological[0].date)}</lastBuildDate>")
    return "\n".join(header + items + ["</channel>", "</rss>"])


def build_atom(pages: Pages, index: SiteIndex, config: SiteConfig) -> Optional[str]:
    if not config.site_url:
        return None
    site_url = config.site_url
    if index.chronological:
        updated = iso_date(index.chronological[0].date)
    else:
        updated = iso_date(dt.datetime(1970, 1, 1))
    entries = []
    for document in index.chronological[: config.feed_limit]:
        link = join_url(site_url, f"posts/{document.slug}.html")
        page = pages.get(document.path.as_posix())
        summary = page.summary if page else document.summary
        entries.append(
            "\n".join(
                [
                    "<entry>",
                    f"<title>{html.escape(document.title)}</title>",
                    f'<link href="{link}" />',
                    f"<id>{link}</id>",
                    f"<updated>{iso_date(document.date)}</updated>",
                    f"<summary>{html.escape(summary)}</summary>",
                    "</entry>",
                ]
            )
        )
    return "\n".join(
        [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<feed xmlns="http://www.w3.org/2005/Atom">',
            f"<title>{html.escape(config.site_name)}</title>",
            f"<id>{site_url}/</id>",
            f"<updated>{updated}</updated>",
            f'<link href="{site_url}/atom.xml" rel="self" />',
            f'<link href="{site_url}/" />',
        ]
        + entries
        + ["</feed>"]
    )


def build_sitemap(index: SiteIndex, config: SiteConfig) -> Optional[str]:
    if not config.site_url:
        return None
    site_url = config.site_url
    urls = [
        (site_url + "/", None),
        (join_url(site_url, "archive.html"), None),
    ]
    for document in index.chronological:
        urls.append((join_url(site_url, f"posts/{document.slug}.html"), document.date))
    for tag in index.tags:
        urls.append((join_url(site_url, f"tags/{index.tag_slugs[tag]}.html"), None))
    items = []
    for url, lastmod in urls:
        lines = ["<url>", f"<loc>{url}</loc>"]
        if lastmod:
            lines.append(f"<lastmod>{lastmod.date().isoformat()}</lastmod>")
        lines.append("</url>")
        items.append("\n".join(lines))
    return "\n".join(
        [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
            "\n".join(items),
            "</urlset>",
        ]
    )


def build_pygments_css() -> str:
    return HtmlFormatter(cssclass="codehilite").get_style_defs(".codehilite")


def build_site_pages(template: str, pages: Pages, index: SiteIndex, config: SiteConfig) -> dict[str, str]:
    """Every output file of the site, keyed by path relative to the output root.

    ``pages`` maps a document's POSIX source path to its rendered page and
    holds unpublished documents too; they get a post page but no listing.
    """
    out: dict[str, str] = {}
    for page in pages.values():
        out[f"posts/{page.document.slug}.html"] = build_post_page(template, page, index, config)
    out["index.html"] = build_index_page(template, pages, index, config)
    out.update(build_tag_pages(template, pages, index, config))
    out["archive.html"] = build_archive(template, index, config)
    out["search-index.json"] = build_search_index(pages, index)
    if config.enable_feeds:
        for name, text in (("rss.xml", build_rss(pages, index, config)), ("atom.xml", build_atom(pages, index, config))):
            if text is not None:
                out[name] = text
    if config.enable_sitemap:
        sitemap = build_sitemap(index, config)
        if sitemap is not None:
            out["sitemap.xml"] = sitemap
    if config.highlight:
        out["css/pygments.css"] = build_pygments_css()
    return out
