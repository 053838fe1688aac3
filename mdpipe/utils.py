from __future__ import annotations

import datetime as dt
import hashlib
import shutil
from pathlib import Path
from typing import Iterable

from .errors import EmitError


def parse_bool(value: object, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return default
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        value = value.strip().lower()
        if not value:
            return default
        return value in {"1", "true", "yes", "y", "on"}
    return default


def parse_int(value: object, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def hash_text(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def unique_slug(candidate: str, key: str, used: set) -> str:
    """Pick a slug not in ``used``, suffixing a hash of ``key`` on collision."""
    if candidate not in used:
        return candidate
    digest = hash_text(key)
    for length in (8, 10, 12, 16):
        slug = f"{candidate}-{digest[:length]}"
        if slug not in used:
            return slug
    counter = 2
    while True:
        slug = f"{candidate}-{counter}"
        if slug not in used:
            return slug
        counter += 1


def join_url(base: str, path: str) -> str:
    base = base.rstrip("/")
    path = path.lstrip("/")
    if not path:
        return base
    return f"{base}/{path}"


def rfc822_date(value: dt.datetime) -> str:
    value = value.replace(tzinfo=dt.timezone.utc)
    return value.strftime("%a, %d %b %Y %H:%M:%S %z")


def iso_date(value: dt.datetime) -> str:
    value = value.replace(tzinfo=dt.timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


def list_files(root: Path, suffixes: Iterable[str]) -> list[Path]:
    if not root.exists():
        return []
    wanted = {suffix.lower() for suffix in suffixes}
    files = [path for path in root.rglob("*") if path.is_file() and path.suffix.lower() in wanted]
    return sorted(files, key=lambda p: p.relative_to(root).as_posix())


def clean_output_dir(output_dir: Path, project_root: Path) -> None:
    if not output_dir.exists():
        return
    output_resolved = output_dir.resolve()
    root_resolved = project_root.resolve()
    if output_resolved == root_resolved:
        raise EmitError(output_dir, "refusing to clean project root")
    if not output_resolved.is_relative_to(root_resolved):
        raise EmitError(output_dir, "refusing to clean output directory outside project root")
    try:
        shutil.rmtree(output_dir)
    except OSError as exc:
        raise EmitError(output_dir, f"could not clean output directory: {exc.strerror or exc}") from exc
