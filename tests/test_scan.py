"""Tests for project and task discovery."""

from bar_tomato.vault.projects import scan_projects
from bar_tomato.vault.tasks import parse_tasks, scan_tasks


def write(path, content=""):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


class TestScanProjects:
    def test_no_projects_folder(self, vault):
        assert scan_projects(vault) == []

    def test_lists_folders_sorted(self, vault):
        projects_dir = vault / "1. 项目"
        write(projects_dir / "科学研究-DualBasic" / "DualBasic.README.md")
        write(projects_dir / "A-Alpha" / "notes.md")
        (projects_dir / ".hidden").mkdir()
        write(projects_dir / "stray.md")

        projects = scan_projects(vault)

        assert [p.name for p in projects] == ["A-Alpha", "科学研究-DualBasic"]
        dual = projects[1]
        assert dual.display_name == "科学研究-DualBasic"
        assert dual.path == "1. 项目/科学研究-DualBasic"
        assert dual.readme_path == "1. 项目/科学研究-DualBasic/DualBasic.README.md"
        assert projects[0].readme_path == "1. 项目/A-Alpha/"

    def test_falls_back_to_any_readme(self, vault):
        write(vault / "1. 项目" / "Work-Site" / "Other.README.md")
        assert scan_projects(vault)[0].readme_path == "1. 项目/Work-Site/Other.README.md"

    def test_to_dict(self, vault):
        write(vault / "1. 项目" / "P" / "P.README.md")
        assert scan_projects(vault)[0].to_dict() == {
            "name": "P",
            "displayName": "P",
            "path": "1. 项目/P",
            "readmePath": "1. 项目/P/P.README.md",
        }


class TestParseTasks:
    def test_open_and_in_progress_only(self):
        content = "- [ ] open\n- [x] done\n* [/] doing\n  - [ ] nested\ntext - [ ] not a task\n"
        tasks = parse_tasks(content, "a.md")
        assert [(t.text, t.line_number) for t in tasks] == [("open", 1), ("doing", 3), ("nested", 4)]

    def test_line_numbers_count_newlines_only(self):
        content = "page one\x0cpage two\n- [ ] split\u2028here\r\n\x1c\n- [/] last\r\n"
        tasks = parse_tasks(content, "a.md")
        assert [(t.text, t.line_number) for t in tasks] == [("split\u2028here", 2), ("last", 4)]

    def test_project_tag(self):
        task = parse_tasks("- [ ] review draft #科学研究/DualBasic today", "a.md")[0]
        assert task.project_tag == "科学研究/DualBasic"
        assert task.project_name == "DualBasic"

    def test_plain_tag_is_not_a_project(self):
        task = parse_tasks("- [ ] call #urgent", "a.md")[0]
        assert task.project_tag is None
        assert task.project_name is None


class TestScanTasks:
    def test_scans_known_folders_only(self, vault):
        write(vault / "1. 项目" / "P" / "todo.md", "- [ ] project task\n")
        write(vault / "0. 周期笔记" / "2026" / "Daily" / "03" / "2026-03-14.md", "- [ ] daily task\n")
        write(vault / "2. 领域" / "Health.md", "- [ ] area task\n")
        write(vault / "3. 资源" / "ref.md", "- [ ] ignored\n")
        write(vault / "1. 项目" / "P" / "notes.txt", "- [ ] not markdown\n")

        tasks = scan_tasks(vault)

        assert sorted(t.text for t in tasks) == ["area task", "daily task", "project task"]
        project_task = next(t for t in tasks if t.text == "project task")
        assert project_task.file_path == "1. 项目/P/todo.md"

    def test_templates_skipped(self, vault):
        write(vault / "0. 周期笔记" / "Templates" / "daily.md", "- [ ] template task\n")
        assert scan_tasks(vault) == []

    def test_unreadable_file_skipped(self, vault):
        write(vault / "2. 领域" / "good.md", "- [ ] fine\n")
        bad = vault / "2. 领域" / "bad.md"
        bad.write_bytes(b"- [ ] \xff\xfe broken\n")
        assert [t.text for t in scan_tasks(vault)] == ["fine"]
