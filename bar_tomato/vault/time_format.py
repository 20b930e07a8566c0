"""
Conversion between minute counts and the `HhrMM` text used in daily notes.

Parsing is lenient because the notes are edited by hand; formatting always
produces the canonical shape (hours unpadded, minutes two digits).
"""

import re

TIME_PATTERN = re.compile(r"(\d+)hr(\d+)")
TIME_TOKEN = re.compile(r"\d+hr\d+")


def format_time(total_minutes: int) -> str:
    """Format minutes as `Xhr##`, e.g. 118 -> "1hr58"."""
    if total_minutes < 0:
        raise ValueError(f"minutes must be non-negative, got {total_minutes}")
    hours, minutes = divmod(int(total_minutes), 60)
    return f"{hours}hr{minutes:02d}"


def parse_time(text: str) -> int:
    """Parse the first `Xhr##` found in text; anything unparseable counts as 0."""
    match = TIME_PATTERN.search(text or "")
    if not match:
        return 0
    return int(match.group(1)) * 60 + int(match.group(2))


def is_time_token(text: str) -> bool:
    """True when text (ignoring surrounding whitespace) is a single duration token."""
    return TIME_TOKEN.fullmatch(text.strip()) is not None


def time_add(existing: str, added_minutes: int) -> str:
    """Add minutes to a duration string and return the formatted sum."""
    return format_time(parse_time(existing) + added_minutes)
