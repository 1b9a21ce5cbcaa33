from __future__ import annotations

import re
from collections.abc import Iterable

from .schema import ClassificationResult, Task

URGENT_KEYWORDS = [
    "urgent",
    "asap",
    "today",
    "now",
    "immediately",
    "deadline",
    "due",
    "tonight",
    "priority",
    "this hour",
    "first thing",
    "hurry",
    "escalated",
]

IMPORTANT_KEYWORDS = [
    "important",
    "critical",
    "vital",
    "strategic",
    "key",
    "goal",
    "milestone",
    "essential",
    "impact",
    "launch",
    "client",
    "review",
    "planning",
]

DELEGATE_KEYWORDS = ["delegate", "handoff", "assign", "assist", "support"]

ELIMINATE_KEYWORDS = ["later", "someday", "optional", "nice to", "maybe", "whenever"]

RELATIVE_TIME_PATTERN = re.compile(r"\b(in|within)\s+\d+\s*(minutes?|hours?|days?)\b", re.ASCII)
NEAR_TERM_DATE_PATTERN = re.compile(r"\b(mon|tue|wed|thu|fri|sat|sun|tomorrow|tonight|today)\b", re.ASCII)
HIGH_VALUE_PATTERN = re.compile(r"\b(report|presentation|research|analysis|strategy|roadmap)\b", re.ASCII)

RATIONALE_SEPARATOR = " · "
DEFAULT_RATIONALE = "Default review classification"

QUADRANT_TITLES: dict[tuple[bool, bool], str] = {
    (True, True): "Do First",
    (True, False): "Delegate",
    (False, True): "Schedule",
    (False, False): "Eliminate",
}


def _matched(content: str, keywords: list[str]) -> list[str]:
    # Plain substring checks: "now" also fires inside "know".
    return [keyword for keyword in keywords if keyword in content]


def classify_task(text: str) -> ClassificationResult:
    """Assign urgency, importance and a rationale to a task description.

    Keyword and pattern cues set the two axes; delegate cues then clear
    importance and eliminate cues clear both axes.

    Args:
        text: Task description, already trimmed by the caller.

    Returns:
        `ClassificationResult` with the rationale fragments joined by `` · ``.
    """
    content = text.lower()

    matched_urgent = _matched(content, URGENT_KEYWORDS)
    matched_important = _matched(content, IMPORTANT_KEYWORDS)
    matched_delegate = _matched(content, DELEGATE_KEYWORDS)
    matched_eliminate = _matched(content, ELIMINATE_KEYWORDS)

    soon_match = RELATIVE_TIME_PATTERN.search(content)
    date_match = NEAR_TERM_DATE_PATTERN.search(content)

    urgent = bool(matched_urgent) or soon_match is not None or date_match is not None
    important = bool(matched_important)

    if not important and HIGH_VALUE_PATTERN.search(content):
        important = True

    if matched_delegate:
        important = False

    if matched_eliminate:
        urgent = False
        important = False

    rationale_parts: list[str] = []

    if matched_urgent:
        rationale_parts.append(f"Flagged urgent via {', '.join(matched_urgent)}")
    elif soon_match:
        rationale_parts.append(f'Time-bound phrase "{soon_match.group(0)}"')
    elif date_match:
        rationale_parts.append(f'Near-term schedule reference "{date_match.group(0)}"')

    if matched_important:
        rationale_parts.append(f"High-impact cues: {', '.join(matched_important)}")

    if matched_delegate:
        rationale_parts.append(f"Delegation hint: {', '.join(matched_delegate)}")

    if matched_eliminate:
        rationale_parts.append(f"Low-priority phrasing: {', '.join(matched_eliminate)}")

    if not rationale_parts:
        rationale_parts.append(DEFAULT_RATIONALE)

    return ClassificationResult(
        urgent=urgent,
        important=important,
        rationale=RATIONALE_SEPARATOR.join(rationale_parts),
    )


def quadrant_for(item: ClassificationResult | Task) -> tuple[bool, bool]:
    return (item.urgent, item.important)


def group_by_quadrant(tasks: Iterable[Task]) -> dict[tuple[bool, bool], list[Task]]:
    """Bucket tasks into the four quadrants, oldest first within each bucket.

    Every quadrant key is present in the result even when its bucket is empty.
    """
    groups: dict[tuple[bool, bool], list[Task]] = {key: [] for key in QUADRANT_TITLES}
    for task in sorted(tasks, key=lambda task: task.created_at):
        groups[quadrant_for(task)].append(task)
    return groups
