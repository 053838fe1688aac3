from __future__ import annotations

import datetime as dt
import html as html_lib
import re
from pathlib import Path
from typing import Optional

from .errors import MalformedFrontMatterError

FRONT_MATTER_DELIMITER = "---"
LIST_KEYS = {"tags", "categories"}
LIST_MARKER_RE = re.compile(r"^(?P<indent>[ \t]*)(?:[-+*]|\d+[.)])\s+")
# A backtick fence may not carry a backtick in its info string: "```x```" is inline code.
FENCE_RE = re.compile(r"^(?P<indent>[ \t]*)(?P<marker>`{3,}(?=[^`]*$)|~{3,})")
DOUBLE_QUOTE_RE = re.compile(r"^(?P<indent>[ \t]*)>>(?!>)(?P<rest>.*)$")
YAML_ITEM_RE = re.compile(r"^\s*-\s+(?P<item>.+)$")
CJK_RE = re.compile(r"[\u3040-\u30ff\u3400-\u4dbf\u4e00-\u9fff\uac00-\ud7af]")
WORD_RE = re.compile(r"[A-Za-z0-9]+(?:'[A-Za-z0-9]+)?")
DISPLAY_DELIMITERS = {"$$": "$$", "\\[": "\\]"}
JEKYLL_DATE_FORMATS = ("%Y-%m-%d %H:%M:%S %z", "%Y-%m-%d %H:%M %z")


def slugify(text: str, fallback: str = "post") -> str:
    text = text.lower()
    text = re.sub(r"[^\w]+", "-", text, flags=re.UNICODE)
    text = text.strip("-_").replace("_", "-")
    return text or fallback


def unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        return value[1:-1]
    return value


def parse_list(value: str) -> list[str]:
    """Split a tag-style value: ``[a, b]``, ``a, b`` or ``a b``."""
    value = value.strip()
    if value.startswith("[") and value.endswith("]"):
        items = [unquote(item) for item in value[1:-1].split(",")]
    elif "," in value:
        items = [unquote(item) for item in value.split(",")]
    else:
        items = [unquote(item) for item in value.split()]
    return [item.strip() for item in items if item.strip()]


def split_front_matter(text: str, path: Optional[Path] = None) -> Optional[tuple[list[str], str]]:
    """Return ``(metadata_lines, body)`` or None when there is no front-matter.

    Raises MalformedFrontMatterError when the opening ``---`` has no match.
    """
    clean_text = text.lstrip("\ufeff")
    lines = clean_text.splitlines()
    if not lines or lines[0].strip() != FRONT_MATTER_DELIMITER:
        return None

    for i in range(1, len(lines)):
        if lines[i].strip() == FRONT_MATTER_DELIMITER:
            return lines[1:i], "\n".join(lines[i + 1 :])
    raise MalformedFrontMatterError(path, "front-matter opened with '---' but never closed")


def parse_meta_lines(lines: list[str]) -> dict:
    meta: dict = {}
    list_key = None
    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        item_match = YAML_ITEM_RE.match(raw)
        if item_match and list_key is not None:
            meta[list_key].extend(parse_list(item_match.group("item")))
            continue
        if ":" not in line:
            continue
        key, value = line.split(":", 1)
        key = key.strip().lower()
        value = value.strip()
        if key in LIST_KEYS:
            meta[key] = parse_list(value)
            list_key = key
        else:
            meta[key] = unquote(value)
            list_key = None
    return meta


def parse_front_matter(text: str, path: Optional[Path] = None) -> Optional[tuple[dict, str]]:
    split = split_front_matter(text, path)
    if split is None:
        return None
    meta_lines, body = split
    return parse_meta_lines(meta_lines), body


def parse_date(meta: dict, path: Optional[Path] = None) -> dt.datetime:
    """Parse ``date`` (and optional ``time``) into a naive UTC datetime."""
    date_value = (meta.get("date") or "").strip()
    time_value = (meta.get("time") or "").strip()
    if not date_value:
        raise MalformedFrontMatterError(path, "missing required field 'date'")

    parsed = None
    iso_value = date_value[:-1] + "+00:00" if date_value.endswith("Z") else date_value
    try:
        parsed = dt.datetime.fromisoformat(iso_value)
    except ValueError:
        for fmt in JEKYLL_DATE_FORMATS:
            try:
                parsed = dt.datetime.strptime(date_value, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        raise MalformedFrontMatterError(path, f"invalid date {date_value!r}")

    if time_value and not (parsed.hour or parsed.minute or parsed.second):
        try:
            parsed = dt.datetime.combine(parsed.date(), dt.time.fromisoformat(time_value), parsed.tzinfo)
        except ValueError as exc:
            raise MalformedFrontMatterError(path, f"invalid time {time_value!r}") from exc

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(dt.timezone.utc).replace(tzinfo=None)
    return parsed


def get_tags(meta: dict) -> tuple[str, ...]:
    tags: list[str] = []
    for key in ("tags", "categories"):
        value = meta.get(key) or []
        if isinstance(value, str):
            value = parse_list(value)
        for tag in value:
            if tag not in tags:
                tags.append(tag)
    return tuple(tags)


def find_display_open(line: str):
    """Return ``(opener, closer, single_line)`` when ``line`` starts display math."""
    if line.startswith(("    ", "\t")):
        return None
    stripped = line.strip()
    for opener, closer in DISPLAY_DELIMITERS.items():
        if not stripped.startswith(opener):
            continue
        rest = stripped[len(opener) :]
        if not rest:
            return opener, closer, False
        if rest.endswith(closer):
            return opener, closer, True
        # "$$x = y" may continue on the next lines; "\[note]" is just text.
        if opener == "$$" and closer not in rest:
            return opener, closer, False
    return None


def is_indented_code(line: str, previous: str) -> bool:
    """An indented line after a blank line or after another indented line."""
    indents = ("    ", "\t")
    return line.startswith(indents) and (not previous.strip() or previous.startswith(indents))


def normalize_list_spacing(text: str) -> str:
    lines = text.splitlines()
    out: list[str] = []
    fence_marker = ""
    display = None
    for line in lines:
        if fence_marker:
            if line.strip() == fence_marker:
                fence_marker = ""
            out.append(line)
            continue
        if display is not None:
            if line.rstrip().endswith(display[1]):
                display = None
            out.append(line)
            continue
        fence_match = FENCE_RE.match(line)
        if fence_match:
            fence_marker = fence_match.group("marker")
            out.append(line)
            continue
        if is_indented_code(line, out[-1] if out else ""):
            out.append(line)
            continue
        opened = find_display_open(line)
        if opened is not None:
            if not opened[2]:
                display = opened
            out.append(line)
            continue
        quote_match = DOUBLE_QUOTE_RE.match(line)
        if quote_match:
            rest = quote_match.group("rest").lstrip()
            if rest:
                line = f'{quote_match.group("indent")}> {rest}'
            else:
                line = f'{quote_match.group("indent")}>'
        list_match = LIST_MARKER_RE.match(line)
        if list_match:
            if not list_match.group("indent"):
                if out and out[-1].strip() and not LIST_MARKER_RE.match(out[-1]):
                    out.append("")
        out.append(line)
    return "\n".join(out)


def count_words(text: str) -> int:
    text = html_lib.unescape(text)
    cjk_count = len(CJK_RE.findall(text))
    text = CJK_RE.sub(" ", text)
    word_count = len(WORD_RE.findall(text))
    return cjk_count + word_count
