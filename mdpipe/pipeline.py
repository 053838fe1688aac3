from __future__ import annotations

import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .config import SiteConfig
from .emitter import copy_static, emit_site
from .errors import ConfigError, PipelineError, RenderError
from .indexer import SiteIndex, build_indices
from .loader import Document, load_documents
from .pages import build_site_pages
from .render import RenderedPage, placeholder_page, read_template, render_document
from .utils import clean_output_dir


@dataclass
class BuildReport:
    loaded: int = 0
    rendered: int = 0
    skipped: list[Path] = field(default_factory=list)
    errors: list[PipelineError] = field(default_factory=list)
    written: list[Path] = field(default_factory=list)
    index: Optional[SiteIndex] = None

    @property
    def exit_code(self) -> int:
        return 1 if self.errors else 0


def report_error(report: BuildReport, error: PipelineError) -> None:
    report.errors.append(error)
    print(str(error), file=sys.stderr)


def render_all(documents: list[Document], config: SiteConfig, report: BuildReport) -> dict[str, RenderedPage]:
    def render_isolated(document: Document):
        try:
            return render_document(document, config), None
        except RenderError as exc:
            return placeholder_page(document), exc

    workers = min(config.build_workers, len(documents)) if documents else 1
    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            outcomes = list(executor.map(render_isolated, documents))
    else:
        outcomes = [render_isolated(document) for document in documents]

    pages = {}
    for page, error in outcomes:
        if error is not None:
            report_error(report, error)
        else:
            report.rendered += 1
        pages[page.document.path.as_posix()] = page
    return pages


def build_site(config: SiteConfig) -> BuildReport:
    """Load, render, index and emit the whole site in one pass.

    Front-matter and render failures are reported and skipped; an EmitError
    is raised to the caller and ends the run.
    """
    if not config.input_dir.is_dir():
        raise ConfigError(config.input_dir, "input directory not found")
    try:
        template = read_template(config.template_path)
    except OSError as exc:
        raise ConfigError(config.template_path, f"could not read template: {exc.strerror or exc}") from exc
    except UnicodeDecodeError as exc:
        raise ConfigError(config.template_path, "template is not valid UTF-8") from exc

    report = BuildReport()
    loaded = load_documents(config.input_dir, config.extensions, config.build_workers)
    for error in loaded.errors:
        report_error(report, error)
    report.loaded = len(loaded.documents)
    report.skipped = list(loaded.skipped)
    if config.verbose:
        for path in loaded.skipped:
            print(f"{path.as_posix()}: no front-matter, skipped", file=sys.stderr)

    pages = render_all(loaded.documents, config, report)
    index = build_indices(loaded.documents)
    report.index = index
    outputs = build_site_pages(template, pages, index, config)

    if config.clean:
        clean_output_dir(config.output_dir, Path.cwd())
    if config.static_dir is not None and config.static_dir.is_dir():
        report.written.extend(copy_static(config.static_dir, config.output_dir))
    report.written.extend(emit_site(outputs, config.output_dir))
    return report
