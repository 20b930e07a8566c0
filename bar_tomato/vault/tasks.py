"""
Open checklist items scattered across the vault.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from bar_tomato.utils.constants import AREAS_DIR, PERIODIC_NOTES_DIR, PROJECTS_DIR, TEMPLATES_MARKER

logger = logging.getLogger(__name__)

# "- [ ] task" or "* [/] task" (in progress counts as open)
TASK_PATTERN = re.compile(r"^\s*[-*]\s+\[([ /])\]\s+(.+)$")
# "#领域/项目名"
PROJECT_TAG_PATTERN = re.compile(r"#([^/\s]+/\S+)")

SCAN_DIRS = (PROJECTS_DIR, PERIODIC_NOTES_DIR, AREAS_DIR)


@dataclass
class VaultTask:
    text: str
    file_path: str
    line_number: int  # 1-based
    project_tag: Optional[str] = None
    project_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'text': self.text,
            'filePath': self.file_path,
            'lineNumber': self.line_number,
            'projectTag': self.project_tag,
            'projectName': self.project_name,
        }


def parse_tasks(content: str, file_path: str) -> List[VaultTask]:
    """Extract open tasks from one markdown document."""
    tasks = []
    # only \n ends a line
    for line_number, line in enumerate(content.split('\n'), start=1):
        line = line.rstrip('\r')
        match = TASK_PATTERN.match(line)
        if not match:
            continue

        text = match.group(2)
        tag_match = PROJECT_TAG_PATTERN.search(text)
        tag = tag_match.group(1) if tag_match else None
        tasks.append(VaultTask(
            text=text,
            file_path=file_path,
            line_number=line_number,
            project_tag=tag,
            project_name=tag.rsplit('/', 1)[-1] if tag else None,
        ))
    return tasks


def scan_tasks(vault_root: Path) -> List[VaultTask]:
    """
    Collect open tasks from the projects, periodic notes and areas folders.
    Template files and unreadable files are skipped.
    """
    vault_root = Path(vault_root)
    tasks: List[VaultTask] = []

    for dir_name in SCAN_DIRS:
        scan_dir = vault_root / dir_name
        if not scan_dir.is_dir():
            continue

        for path in sorted(scan_dir.rglob("*.md")):
            relative = path.relative_to(vault_root).as_posix()
            if TEMPLATES_MARKER in relative or not path.is_file():
                continue
            try:
                content = path.read_text(encoding='utf-8')
            except (OSError, UnicodeDecodeError) as e:
                logger.debug("Skipping unreadable %s: %s", relative, e)
                continue
            tasks.extend(parse_tasks(content, relative))

    return tasks
