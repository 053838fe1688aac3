from __future__ import annotations

import html
import re

from markdown.extensions import Extension
from markdown.preprocessors import Preprocessor

from .content import FENCE_RE, find_display_open, is_indented_code

INLINE_MATH_RE = re.compile(
    r"(?<![\\$])\$(?=\S)[^$\n]+?(?<=\S)\$(?![$\d])"
    r"|\\\(.+?\\\)"
)
CODE_SPAN_RE = re.compile(r"(`+).+?\1")


class MathPreprocessor(Preprocessor):
    """Stash TeX math so Markdown never sees underscores or backslashes in it.

    Display math (``$$ ... $$`` or ``\\[ ... \\]``) becomes a
    ``<div class="math display">``, inline math (``$...$`` or ``\\(...\\)``)
    a ``<span class="math inline">``. The TeX source, delimiters included,
    is kept verbatim apart from HTML escaping.
    """

    def run(self, lines):
        out = []
        fence_marker = ""
        display = None
        display_lines: list[str] = []
        for line in lines:
            if display is not None:
                display_lines.append(line)
                if line.rstrip().endswith(display[1]):
                    out.extend(self.stash_display(display_lines))
                    display = None
                    display_lines = []
                continue

            fence_match = FENCE_RE.match(line)
            if fence_marker:
                if line.strip() == fence_marker:
                    fence_marker = ""
                out.append(line)
                continue
            if fence_match:
                fence_marker = fence_match.group("marker")
                out.append(line)
                continue
            if is_indented_code(line, out[-1] if out else ""):
                out.append(line)
                continue

            opened = find_display_open(line)
            if opened is not None:
                if opened[2]:
                    out.extend(self.stash_display([line]))
                else:
                    display = opened
                    display_lines = [line]
                continue
            out.append(self.stash_inline(line))

        if display is not None:
            # Left unterminated: hand the lines back untouched.
            out.extend(display_lines)
        return out

    def stash_display(self, lines: list[str]) -> list[str]:
        source = "\n".join(lines).strip()
        placeholder = self.md.htmlStash.store(
            f'<div class="math display">{html.escape(source, quote=False)}</div>'
        )
        return ["", placeholder, ""]

    def stash_inline(self, line: str) -> str:
        parts = []
        last = 0
        for code in CODE_SPAN_RE.finditer(line):
            parts.append(self.replace_inline(line[last : code.start()]))
            parts.append(code.group(0))
            last = code.end()
        parts.append(self.replace_inline(line[last:]))
        return "".join(parts)

    def replace_inline(self, text: str) -> str:
        def repl(match: re.Match) -> str:
            return self.md.htmlStash.store(
                f'<span class="math inline">{html.escape(match.group(0), quote=False)}</span>'
            )

        return INLINE_MATH_RE.sub(repl, text)


class MathExtension(Extension):
    def extendMarkdown(self, md):
        # After whitespace normalization (30), before fenced code (25).
        md.preprocessors.register(MathPreprocessor(md), "math_passthrough", 27)
