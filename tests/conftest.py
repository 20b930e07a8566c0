"""Shared fixtures: controllable clocks and a throwaway vault."""

import json
from datetime import date

import pytest

from bar_tomato.core.timer import TimerEngine
from bar_tomato.utils.constants import PROJECT_SECTION_HEADING
from bar_tomato.vault.config import plugin_dir
from bar_tomato.vault.daily_note import daily_note_path

TODAY = date(2026, 3, 14)


class FakeClock:
    """Monotonic and wall clock that only move when told to."""

    def __init__(self, start: float = 1000.0, wall_start: float = 1_773_000_000.0):
        self.now = start
        self.wall = wall_start

    def __call__(self) -> float:
        return self.now

    def wall_clock(self) -> float:
        return self.wall

    def advance(self, seconds: float) -> None:
        self.now += seconds
        self.wall += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine(clock):
    return TimerEngine(clock=clock, wall_clock=clock.wall_clock)


@pytest.fixture
def vault(tmp_path):
    """An empty vault with the lifeos-pro plugin folder."""
    root = tmp_path / "MyVault"
    plugin_dir(root).mkdir(parents=True)
    return root


def write_plugin_config(vault_root, data) -> None:
    path = plugin_dir(vault_root) / "data.json"
    path.write_text(data if isinstance(data, str) else json.dumps(data), encoding="utf-8")


def write_daily_note(vault_root, content: str, day: date = TODAY, newline: str = "\n"):
    path = daily_note_path(vault_root, day)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content.replace("\n", newline))
    return path


def write_latin1_note(vault_root, day: date = TODAY):
    """A note saved by an editor in a legacy encoding."""
    path = write_daily_note(vault_root, "", day)
    path.write_bytes(SAMPLE_NOTE.encode("utf-8") + b"caf\xe9\n")
    return path


def read_daily_note(vault_root, day: date = TODAY) -> str:
    with open(daily_note_path(vault_root, day), "r", encoding="utf-8", newline="") as f:
        return f.read()


SAMPLE_NOTE = f"""# 2026-03-14

## 习惯打卡
- [ ] 使用番茄钟

{PROJECT_SECTION_HEADING}
1. [[1. 项目/科学研究-DualBasic/DualBasic.README.md|科学研究-DualBasic]] 0hr30

0hr30

## 日记
Nothing yet.
"""
