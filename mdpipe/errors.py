from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class PipelineError(Exception):
    """Base error for a failure tied to one file of the build."""

    def __init__(self, path: Optional[Union[str, Path]], message: str):
        super().__init__(message)
        self.path = Path(path) if path is not None else None
        self.message = message

    def __str__(self) -> str:
        if self.path is None:
            return self.message
        return f"{self.path.as_posix()}: {self.message}"


class LoadError(PipelineError):
    """A source file could not be read."""


class MalformedFrontMatterError(LoadError):
    """Unterminated metadata block or a required field is missing."""


class RenderError(PipelineError):
    """Body markup is structurally broken (e.g. an unclosed code fence)."""


class EmitError(PipelineError):
    """Writing to the output location failed. Always fatal."""


class ConfigError(PipelineError):
    """Configuration file, input directory or page template is unusable. Always fatal."""
