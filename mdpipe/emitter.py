from __future__ import annotations

import shutil
from pathlib import Path
from typing import Mapping

from .errors import EmitError


def write_text(path: Path, text: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        # newline="\n" keeps output identical across platforms.
        with path.open("w", encoding="utf-8", newline="\n") as handle:
            handle.write(text)
    except OSError as exc:
        raise EmitError(path, f"write failed: {exc.strerror or exc}") from exc


def copy_static(static_dir: Path, output_dir: Path) -> list[Path]:
    copied = []
    for item in sorted(static_dir.iterdir(), key=lambda p: p.name):
        dest = output_dir / item.name
        try:
            if item.is_dir():
                if dest.exists():
                    shutil.rmtree(dest)
                shutil.copytree(item, dest)
            else:
                output_dir.mkdir(parents=True, exist_ok=True)
                shutil.copy2(item, dest)
        except OSError as exc:
            raise EmitError(dest, f"copy failed: {exc.strerror or exc}") from exc
        copied.append(dest)
    return copied


def emit_site(outputs: Mapping[str, str], output_dir: Path) -> list[Path]:
    """Write each ``relative path -> text`` entry below ``output_dir``.

    The first failure raises EmitError; files already written stay in place.
    """
    written = []
    for rel in sorted(outputs):
        path = output_dir / rel
        write_text(path, outputs[rel])
        written.append(path)
    return written
