from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from .errors import ConfigError

try:
    import tomllib as toml
except ImportError:
    import tomli as toml

DEFAULT_TEMPLATE = Path(__file__).parent / "templates" / "base.html"
FEED_LIMIT = 20


@dataclass(frozen=True)
class SiteConfig:
    """Everything one build needs. Created once per invocation."""

    input_dir: Path = Path("posts")
    output_dir: Path = Path("dist")
    static_dir: Optional[Path] = None
    template_path: Path = DEFAULT_TEMPLATE
    site_name: str = "mdpipe"
    site_description: str = "Notes rendered from Markdown."
    site_url: str = ""
    extensions: tuple[str, ...] = (".md", ".markdown")
    build_workers: int = 1
    toc_depth: str = "2-4"
    highlight: bool = False
    feed_limit: int = FEED_LIMIT
    clean: bool = False
    enable_feeds: bool = True
    enable_sitemap: bool = True
    verbose: bool = False

    @classmethod
    def from_args(cls, args: object) -> "SiteConfig":
        static_value = (getattr(args, "static", "") or "").strip()
        template_value = (getattr(args, "template", "") or "").strip()
        extensions = tuple(
            ext if ext.startswith(".") else f".{ext}"
            for ext in (item.strip().lower() for item in str(getattr(args, "extensions", "")).split(","))
            if ext
        )
        return cls(
            input_dir=Path(args.input),
            output_dir=Path(args.output),
            static_dir=Path(static_value) if static_value else None,
            template_path=Path(template_value) if template_value else DEFAULT_TEMPLATE,
            site_name=args.site_name,
            site_description=args.site_description,
            site_url=(args.site_url or "").strip().rstrip("/"),
            extensions=extensions or cls.extensions,
            build_workers=max(1, min(int(args.build_workers or 1), 32)),
            toc_depth=args.toc_depth,
            highlight=bool(args.highlight),
            feed_limit=max(1, int(args.feed_limit)),
            clean=bool(args.clean),
            enable_feeds=bool(args.enable_feeds),
            enable_sitemap=bool(args.enable_sitemap),
            verbose=bool(getattr(args, "verbose", False)),
        )


def load_config(path: Path) -> dict:
    if not path.exists():
        return {}
    suffix = path.suffix.lower()
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(path, f"could not read config file: {exc}") from exc
    if suffix == ".toml":
        try:
            data = toml.loads(text)
        except toml.TOMLDecodeError as exc:
            raise ConfigError(path, f"invalid TOML: {exc}") from exc
    elif suffix in {".yml", ".yaml"}:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(path, f"invalid YAML: {exc}") from exc
        if data is None:
            return {}
    else:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(path, f"invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(path, "config must be a mapping")
    return data
