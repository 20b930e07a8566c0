"""
Daily note integration.

Adds session time to the "## 项目列表" section of the day's note and ticks
the pomodoro habit checkbox. The note is edited by a person in Obsidian, so
updates re-check the file stamp before writing and retry when it moved.

The section merge works on plain line lists:
    split_section -> merge_project_time -> splice back
so it can be tested without touching the filesystem.
"""

import logging
import os
import re
import time
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import List, Optional, Tuple

from bar_tomato.utils.constants import (
    DAILY_DIR,
    HABIT_LABEL,
    NOTE_RETRY_DELAY,
    NOTE_UPDATE_ATTEMPTS,
    PERIODIC_NOTES_DIR,
    PROJECT_SECTION_HEADING,
)
from bar_tomato.utils.errors import DailyNoteConflictError, NoteEncodingError, SectionNotFoundError
from bar_tomato.vault.time_format import format_time, is_time_token, parse_time, time_add

logger = logging.getLogger(__name__)

SECTION_END = re.compile(r"^#{1,2}\s")
ORDINAL = re.compile(r"^\s*(\d+)\.")
ENTRY_TIME = re.compile(r"\]\]\s+(\d+hr\d+)")
HABIT_UNCHECKED = re.compile(r"([-*])\s+\[ \]\s+" + re.escape(HABIT_LABEL))


def daily_note_path(vault_root: Path, day: date) -> Path:
    """<vault>/0. 周期笔记/<YYYY>/Daily/<MM>/<YYYY-MM-DD>.md"""
    return (
        Path(vault_root)
        / PERIODIC_NOTES_DIR
        / f"{day.year:04d}"
        / DAILY_DIR
        / f"{day.month:02d}"
        / f"{day.isoformat()}.md"
    )


def project_short_name(project_path: str) -> str:
    """
    "1. 项目/科学研究-DualBasic/DualBasic.README.md" -> "DualBasic"
    """
    name = project_path.rsplit('/', 1)[-1]
    if not name.endswith('.md'):
        return ""
    name = name[:-len('.md')]
    if not name.endswith('.README'):
        return ""
    return name[:-len('.README')]


@dataclass
class _Document:
    """Note text split into lines, remembering how to join it back."""
    lines: List[str]
    newline: str = "\n"
    trailing_newline: bool = False

    @classmethod
    def parse(cls, content: str) -> '_Document':
        newline = "\r\n" if "\r\n" in content else "\n"
        if not content:
            return cls(lines=[], newline=newline)
        lines = content.split(newline)
        trailing = content.endswith(newline)
        if trailing:
            lines.pop()
        return cls(lines=lines, newline=newline, trailing_newline=trailing)

    def render(self, lines: List[str]) -> str:
        text = self.newline.join(lines)
        if self.trailing_newline:
            text += self.newline
        return text


def split_section(lines: List[str], heading: str = PROJECT_SECTION_HEADING) -> Tuple[int, int]:
    """
    Find the section bounds.

    Returns:
        (heading_index, end_index) where end_index is the next level 1/2
        heading or len(lines)

    Raises:
        SectionNotFoundError: If no line matches the heading
    """
    for start, line in enumerate(lines):
        if line.strip() == heading:
            break
    else:
        raise SectionNotFoundError(f"Could not find '{heading}' section")

    for end in range(start + 1, len(lines)):
        if SECTION_END.match(lines[end]):
            return start, end
    return start, len(lines)


def _is_total_line(line: str) -> bool:
    trimmed = line.strip()
    return (
        bool(trimmed)
        and is_time_token(trimmed)
        and not trimmed.startswith(('[', '#'))
        and '[[' not in trimmed
    )


def _last_content_index(lines: List[str]) -> int:
    """Index just past the last non-blank line."""
    end = len(lines)
    while end > 0 and not lines[end - 1].strip():
        end -= 1
    return end


def merge_project_time(
    section: List[str],
    project_path: str,
    display_name: str,
    added_minutes: int,
) -> List[str]:
    """
    Add minutes for one project to the lines of a project list section.

    Args:
        section: Lines strictly between the heading and the section end
        project_path: Vault-relative path of the project's README
        display_name: Link alias shown in the note
        added_minutes: Minutes to add

    Returns:
        New section lines with the project entry and the total updated
    """
    short_name = project_short_name(project_path)
    short_entry = re.compile(
        r"^(\d+)\.\s+\[\[{}\.README\|{}\]\]$".format(re.escape(short_name), re.escape(display_name))
    )
    time_entry = re.compile(
        r"^(\d+)\.\s+\[\[{}[|]{}\]\]\s+(\d+hr\d+)".format(re.escape(project_path), re.escape(display_name))
    )

    result: List[str] = []
    found = False
    total_idx: Optional[int] = None
    max_ordinal = 0

    for line in section:
        ordinal = ORDINAL.match(line)
        if ordinal:
            max_ordinal = max(max_ordinal, int(ordinal.group(1)))

        timed = time_entry.match(line)
        if timed:
            new_time = time_add(timed.group(2), added_minutes)
            result.append(line[:timed.start(2)] + new_time + line[timed.end(2):])
            found = True
            continue

        short = short_entry.match(line) if short_name else None
        if short:
            result.append(f"{short.group(1)}. [[{project_path}|{display_name}]] {format_time(added_minutes)}")
            found = True
            continue

        if _is_total_line(line):
            total_idx = len(result)
        result.append(line)

    if not found:
        entry = f"{max_ordinal + 1}. [[{project_path}|{display_name}]] {format_time(added_minutes)}"
        if total_idx is not None:
            insert_at = total_idx
            while insert_at > 0 and not result[insert_at - 1].strip():
                insert_at -= 1
            result.insert(insert_at, entry)
            total_idx += 1
        else:
            result.insert(_last_content_index(result), entry)

    total_minutes = 0
    for line in result:
        match = ENTRY_TIME.search(line)
        if match:
            total_minutes += parse_time(match.group(1))
    total_text = format_time(total_minutes)

    if total_idx is not None:
        result[total_idx] = total_text
    else:
        end = _last_content_index(result)
        result[end:end] = ["", total_text]

    return result


def update_project_section(
    content: str,
    project_path: str,
    display_name: str,
    added_minutes: int,
) -> str:
    """Apply merge_project_time to the project list section of a whole note."""
    document = _Document.parse(content)
    lines = document.lines
    start, end = split_section(lines)
    section = merge_project_time(lines[start + 1:end], project_path, display_name, added_minutes)
    return document.render(lines[:start + 1] + section + lines[end:])


def _file_stamp(path: Path) -> Tuple[int, int]:
    stat = os.stat(path)
    return stat.st_mtime_ns, stat.st_size


def _read_note(path: Path) -> str:
    # newline='' keeps CRLF notes intact
    try:
        with open(path, 'r', encoding='utf-8', newline='') as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise NoteEncodingError(f"Daily note {path} is not valid UTF-8: {e}") from e


def _write_note(path: Path, content: str) -> None:
    with open(path, 'w', encoding='utf-8', newline='') as f:
        f.write(content)


def update_project_time(
    vault_root: Path,
    day: date,
    project_path: str,
    display_name: str,
    added_minutes: int,
    attempts: int = NOTE_UPDATE_ATTEMPTS,
    retry_delay: float = NOTE_RETRY_DELAY,
) -> bool:
    """
    Add session minutes for a project to the day's note.

    Returns:
        True if the note was rewritten, False if there is no note for the day

    Raises:
        SectionNotFoundError: If the note has no project list section
        DailyNoteConflictError: If the note changed during every attempt
        NoteEncodingError: If the note is not valid UTF-8
        OSError: On read/write failure
    """
    path = daily_note_path(vault_root, day)
    if not path.exists():
        logger.info("No daily note at %s, skipping project time", path)
        return False

    for attempt in range(1, attempts + 1):
        stamp_before = _file_stamp(path)
        content = _read_note(path)
        updated = update_project_section(content, project_path, display_name, added_minutes)

        if _file_stamp(path) != stamp_before:
            logger.warning("Daily note %s changed while updating (attempt %d/%d)", path.name, attempt, attempts)
            if attempt < attempts:
                time.sleep(retry_delay)
            continue

        _write_note(path, updated)
        logger.info("Added %d min for %s to %s", added_minutes, display_name, path.name)
        return True

    raise DailyNoteConflictError(path, attempts)


def check_habit(vault_root: Path, day: date) -> bool:
    """
    Tick the "使用番茄钟" habit in the day's note.

    Returns:
        True if a box was ticked, False if it was already ticked, missing,
        or there is no note

    Raises:
        NoteEncodingError: If the note is not valid UTF-8
    """
    path = daily_note_path(vault_root, day)
    if not path.exists():
        return False

    content = _read_note(path)
    match = HABIT_UNCHECKED.search(content)
    if not match:
        return False

    marker = match.group(1)
    replacement = f"{marker} [x] {HABIT_LABEL} ✅ {day.isoformat()}"
    _write_note(path, content[:match.start()] + replacement + content[match.end():])
    logger.info("Checked pomodoro habit in %s", path.name)
    return True
