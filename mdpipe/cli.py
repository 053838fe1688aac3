from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path
from typing import Optional, Sequence

from .config import FEED_LIMIT, SiteConfig, load_config
from .errors import ConfigError, EmitError
from .pipeline import build_site
from .utils import parse_bool, parse_int


def build_parser(config: dict, config_path: str) -> argparse.ArgumentParser:
    def cfg_value(key: str, default: object) -> object:
        value = config.get(key)
        return default if value is None else value

    def cfg_str(key: str, default: str) -> str:
        return str(cfg_value(key, default))

    def cfg_bool(key: str, default: bool) -> bool:
        return parse_bool(cfg_value(key, default), default)

    def cfg_int(key: str, default: int) -> int:
        return parse_int(cfg_value(key, default), default)

    parser = argparse.ArgumentParser(prog="mdpipe", description="Render a folder of Markdown posts into a static site.")
    parser.add_argument("--config", default=config_path, help="Path to site config file (TOML/YAML/JSON).")
    parser.add_argument("--input", default=cfg_str("input", "posts"), help="Directory containing Markdown posts.")
    parser.add_argument("--output", default=cfg_str("output", "dist"), help="Output directory for the site.")
    parser.add_argument("--static", default=cfg_str("static", ""), help="Directory of static assets to copy.")
    parser.add_argument("--template", default=cfg_str("template", ""), help="Base HTML template (default: built-in).")
    parser.add_argument("--site-name", default=cfg_str("site_name", "mdpipe"), help="Site title.")
    parser.add_argument(
        "--site-description",
        default=cfg_str("site_description", "Notes rendered from Markdown."),
        help="Site description.",
    )
    parser.add_argument(
        "--site-url",
        default=cfg_str("site_url", ""),
        help="Public site URL used for feeds and sitemap.",
    )
    parser.add_argument(
        "--extensions",
        default=cfg_str("extensions", ".md,.markdown"),
        help="Comma-separated file suffixes treated as posts.",
    )
    parser.add_argument(
        "--build-workers",
        default=cfg_int("build_workers", 1),
        type=int,
        help="Worker threads for loading and rendering.",
    )
    parser.add_argument(
        "--toc-depth",
        default=cfg_str("toc_depth", "2-4"),
        help="Heading depth range for TOC (e.g. 2-4).",
    )
    parser.add_argument(
        "--highlight",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("highlight", False),
        help="Syntax-highlight code blocks with Pygments.",
    )
    parser.add_argument(
        "--feed-limit",
        default=cfg_int("feed_limit", FEED_LIMIT),
        type=int,
        help="Maximum number of posts in RSS/Atom feeds.",
    )
    parser.add_argument(
        "--clean",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("clean", False),
        help="Remove the output directory before writing.",
    )
    parser.add_argument(
        "--enable-feeds",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("enable_feeds", True),
        help="Generate rss.xml and atom.xml (needs --site-url).",
    )
    parser.add_argument(
        "--enable-sitemap",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("enable_sitemap", True),
        help="Generate sitemap.xml (needs --site-url).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Report skipped files.")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument("--config", default="site.toml")
    pre_args, _ = pre_parser.parse_known_args(argv)
    try:
        config = load_config(Path(pre_args.config))
    except ConfigError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    args = build_parser(config, pre_args.config).parse_args(argv)
    site_config = SiteConfig.from_args(args)

    start = time.perf_counter()
    try:
        report = build_site(site_config)
    except (ConfigError, EmitError) as exc:
        print(str(exc), file=sys.stderr)
        return 1
    elapsed = time.perf_counter() - start

    print(
        f"Built {report.rendered} of {report.loaded} posts into {site_config.output_dir} "
        f"in {elapsed:.2f}s ({len(report.errors)} errors, {len(report.skipped)} skipped)."
    )
    return report.exit_code
