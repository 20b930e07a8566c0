"""
Project folders under "1. 项目".
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List

from bar_tomato.utils.constants import PROJECTS_DIR

README_SUFFIX = ".README.md"


@dataclass
class Project:
    """A project folder and its README descriptor (paths vault-relative)."""
    name: str
    display_name: str
    path: str
    readme_path: str

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'displayName': self.display_name,
            'path': self.path,
            'readmePath': self.readme_path,
        }


def _find_readme(folder: Path) -> str:
    """File name of the folder's README, or "" if there is none."""
    # "科学研究-DualBasic" -> "DualBasic.README.md"
    short_name = folder.name.rsplit('-', 1)[-1]
    preferred = folder / f"{short_name}{README_SUFFIX}"
    if preferred.is_file():
        return preferred.name

    for candidate in sorted(folder.iterdir()):
        if candidate.is_file() and candidate.name.endswith(README_SUFFIX):
            return candidate.name
    return ""


def scan_projects(vault_root: Path) -> List[Project]:
    """
    List project folders, sorted by name.

    Hidden folders are skipped. A project without a README gets its folder
    path with a trailing slash as readme_path.
    """
    projects_dir = Path(vault_root) / PROJECTS_DIR
    if not projects_dir.is_dir():
        return []

    projects = []
    for folder in projects_dir.iterdir():
        if not folder.is_dir() or folder.name.startswith('.'):
            continue

        relative = f"{PROJECTS_DIR}/{folder.name}"
        readme = _find_readme(folder)
        projects.append(Project(
            name=folder.name,
            display_name=folder.name,
            path=relative,
            readme_path=f"{relative}/{readme}",
        ))

    projects.sort(key=lambda p: p.name)
    return projects
