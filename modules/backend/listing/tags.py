"""
Category Tags.

The closed set of category tags an opportunity may carry. Anything outside
this list is dropped on normalization.
"""

from collections.abc import Iterable

PREDEFINED_TAGS: tuple[str, ...] = (
    "Bootcamp",
    "Grant",
    "Student Benefit",
    "AI",
    "Accelerator",
    "Startup Benefits",
    "Other",
)


def is_valid_tag(tag: str) -> bool:
    """Check whether a tag belongs to the predefined list."""
    return tag in PREDEFINED_TAGS


def normalize_tags(tags: Iterable[str] | None) -> list[str]:
    """
    Keep only predefined tags, de-duplicated in first-seen order.

    Non-string entries are ignored so that malformed snapshot data
    degrades to "no tag" instead of failing.
    """
    seen: list[str] = []
    for tag in tags or ():
        if isinstance(tag, str) and is_valid_tag(tag) and tag not in seen:
            seen.append(tag)
    return seen
