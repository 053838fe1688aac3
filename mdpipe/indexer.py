from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .content import slugify
from .loader import Document
from .utils import unique_slug

TagIndex = dict[str, tuple[Document, ...]]


@dataclass(frozen=True)
class SiteIndex:
    chronological: tuple[Document, ...] = ()
    tags: TagIndex = field(default_factory=dict)
    by_month: dict[str, tuple[Document, ...]] = field(default_factory=dict)
    tag_slugs: dict[str, str] = field(default_factory=dict)

    def tag_url(self, tag: str, root: str) -> str:
        return f"{root}/tags/{self.tag_slugs[tag]}.html"


def sort_by_date(documents: Iterable[Document]) -> tuple[Document, ...]:
    # sorted() is stable with reverse=True: equal dates keep discovery order.
    return tuple(sorted(documents, key=lambda doc: doc.date, reverse=True))


def build_indices(documents: Iterable[Document]) -> SiteIndex:
    """Group published documents by tag and by month, newest first.

    ``documents`` must be in discovery order; unpublished ones are dropped.
    """
    chronological = sort_by_date(doc for doc in documents if doc.published)

    grouped: dict[str, list[Document]] = {}
    months: dict[str, list[Document]] = {}
    for doc in chronological:
        for tag in doc.tags:
            grouped.setdefault(tag, []).append(doc)
        months.setdefault(doc.date.strftime("%Y-%m"), []).append(doc)

    tags: TagIndex = {}
    tag_slugs: dict[str, str] = {}
    used: set = set()
    for tag in sorted(grouped, key=lambda name: (name.lower(), name)):
        tags[tag] = tuple(grouped[tag])
        slug = unique_slug(slugify(tag, fallback="tag"), tag, used)
        used.add(slug)
        tag_slugs[tag] = slug

    by_month = {key: tuple(months[key]) for key in sorted(months, reverse=True)}
    return SiteIndex(chronological=chronological, tags=tags, by_month=by_month, tag_slugs=tag_slugs)
