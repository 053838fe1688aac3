from __future__ import annotations

import datetime as dt
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Union

from .content import get_tags, parse_date, parse_front_matter, slugify
from .errors import LoadError, MalformedFrontMatterError
from .utils import list_files, parse_bool, unique_slug

DEFAULT_EXTENSIONS = (".md", ".markdown")


@dataclass(frozen=True)
class Document:
    path: Path
    title: str
    date: dt.datetime
    body: str
    tags: tuple[str, ...] = ()
    published: bool = True
    summary: str = ""
    layout: str = "post"
    slug: str = ""
    meta: Mapping[str, object] = field(default_factory=dict, compare=False, repr=False)


@dataclass
class LoadResult:
    """Documents in discovery order plus the files that were rejected."""

    documents: list[Document] = field(default_factory=list)
    errors: list[LoadError] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)

    def get(self, path: Union[str, Path]) -> Optional[Document]:
        wanted = Path(path)
        for document in self.documents:
            if document.path == wanted:
                return document
        return None

    @property
    def published(self) -> list[Document]:
        return [document for document in self.documents if document.published]


def discover_documents(input_dir: Path, extensions: Iterable[str] = DEFAULT_EXTENSIONS) -> list[Path]:
    return list_files(input_dir, extensions)


def load_document(path: Path) -> Optional[Document]:
    """Load one file. Returns None when the file carries no front-matter."""
    try:
        raw_text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedFrontMatterError(path, f"file is not valid UTF-8: {exc.reason}") from exc
    except OSError as exc:
        raise LoadError(path, f"could not read file: {exc.strerror or exc}") from exc

    parsed = parse_front_matter(raw_text, path)
    if parsed is None:
        return None
    meta, body = parsed

    title = (meta.get("title") or "").strip()
    if not title:
        raise MalformedFrontMatterError(path, "missing required field 'title'")
    date = parse_date(meta, path)

    published = parse_bool(meta.get("published"), default=True)
    if parse_bool(meta.get("draft")):
        published = False
    summary = meta.get("summary") or meta.get("description") or ""

    return Document(
        path=path,
        title=title,
        date=date,
        body=body,
        tags=get_tags(meta),
        published=published,
        summary=summary.strip(),
        layout=(meta.get("layout") or "post").strip(),
        slug=(meta.get("slug") or "").strip(),
        meta=MappingProxyType(meta),
    )


def _load_isolated(path: Path) -> tuple[Optional[Document], Optional[LoadError]]:
    try:
        return load_document(path), None
    except LoadError as exc:
        return None, exc


def assign_slugs(documents: list[Document], input_dir: Path) -> list[Document]:
    used: set = set()
    assigned = []
    for document in documents:
        try:
            rel = document.path.relative_to(input_dir).as_posix()
        except ValueError:
            rel = document.path.as_posix()
        candidate = slugify(document.slug or document.path.stem)
        slug = unique_slug(candidate, rel, used)
        used.add(slug)
        assigned.append(replace(document, slug=slug))
    return assigned


def load_documents(
    input_dir: Path,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    workers: int = 1,
) -> LoadResult:
    paths = discover_documents(input_dir, extensions)
    workers = max(1, min(workers, len(paths))) if paths else 1
    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            outcomes = list(executor.map(_load_isolated, paths))
    else:
        outcomes = [_load_isolated(path) for path in paths]

    result = LoadResult()
    loaded = []
    for path, (document, error) in zip(paths, outcomes):
        if error is not None:
            result.errors.append(error)
        elif document is None:
            result.skipped.append(path)
        else:
            loaded.append(document)
    result.documents = assign_slugs(loaded, input_dir)
    return result
