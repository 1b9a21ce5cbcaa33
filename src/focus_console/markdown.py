from __future__ import annotations

import re

_SECTION_BREAK = re.compile(r"\n{2,}")
_BULLET = re.compile(r"^[-*]\s")
_NUMBERED = re.compile(r"^\d+\.\s")
_PARTIAL_BULLET = re.compile(r"^[-*]\s*")


def _is_list_item(line: str) -> bool:
    return bool(_BULLET.match(line) or _NUMBERED.match(line))


def _format_section(section: str) -> str:
    lines = [line.strip() for line in section.split("\n") if line.strip()]
    if not lines:
        return ""

    if len(lines) == 1:
        line = lines[0]
        if _is_list_item(line):
            return line
        if ":" in line:
            label, *rest = line.split(":")
            return f"**{label.strip()}**: {':'.join(rest).strip()}"
        return line

    return "\n".join(
        line if _is_list_item(line) else f"- {_PARTIAL_BULLET.sub('', line)}" for line in lines
    )


def normalize_to_markdown(text: str) -> str:
    """Turn loosely structured ruleset notes into markdown.

    The first block becomes a top-level heading unless it already is one,
    single-line ``label: value`` blocks get a bold label, and multi-line
    blocks become bullet lists.

    Args:
        text: Raw ruleset text.

    Returns:
        Markdown with blocks separated by a blank line; ``""`` for blank input.
    """
    trimmed = text.strip()
    if not trimmed:
        return ""

    sections = [section.strip() for section in _SECTION_BREAK.split(trimmed) if section.strip()]
    formatted: list[str] = []
    for index, section in enumerate(sections):
        if index == 0 and not section.startswith("#"):
            formatted.append(f"# {section}")
        else:
            formatted.append(_format_section(section))
    return "\n\n".join(formatted)
