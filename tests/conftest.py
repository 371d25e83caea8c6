"""Shared fakes for the mount monitor tests."""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Set

import pytest

from nofus.actions import CommandOutcome
from nofus.config import MonitorConfig


class FakeMountTable:
    """Writes a /proc/mounts style file listing the currently mounted paths."""

    def __init__(self, path: Path):
        self.path = path
        self._mounted: Set[str] = set()
        self._write()

    def mount(self, *paths: str) -> None:
        self._mounted.update(paths)
        self._write()

    def unmount(self, *paths: str) -> None:
        self._mounted.difference_update(paths)
        self._write()

    def _write(self) -> None:
        lines = ["proc /proc proc rw,nosuid,nodev,noexec,relatime 0 0"]
        for index, dest in enumerate(sorted(self._mounted)):
            escaped = dest.replace("\\", "\\134").replace(" ", "\\040")
            lines.append(f"server:/export{index} {escaped} nfs4 rw,relatime 0 0")
        self.path.write_text("\n".join(lines) + "\n")


class FakeWatchSource:
    """In-memory stand-in for the inotify notification channel."""

    def __init__(self):
        self.added: List[str] = []
        self.failing: Set[str] = set()
        self.pending: List[int] = []
        self._next_handle = 1

    def add_watch(self, path) -> int:
        self.added.append(str(path))
        if str(path) in self.failing:
            raise OSError(2, "No such file or directory")
        handle = self._next_handle
        self._next_handle += 1
        return handle

    def read_invalidated(self, timeout: float = 0.0) -> List[int]:
        pending, self.pending = self.pending, []
        return pending

    def invalidate(self, *handles: int) -> None:
        self.pending.extend(handles)


class RecordingRunner:
    """Command runner that records commands instead of spawning processes."""

    def __init__(self):
        self.calls: List[CommandOutcome] = []

    def execute(self, command: str, dry_run: bool) -> CommandOutcome:
        outcome = CommandOutcome(command=command, dry_run=dry_run, returncode=None if dry_run else 0)
        self.calls.append(outcome)
        return outcome

    @property
    def commands(self) -> List[str]:
        return [call.command for call in self.calls]


@pytest.fixture
def mount_dirs(tmp_path: Path) -> Dict[str, str]:
    dirs = {}
    for name in ("a", "b"):
        directory = tmp_path / "mnt" / name
        directory.mkdir(parents=True)
        dirs[name] = str(directory)
    return dirs


@pytest.fixture
def mount_table(tmp_path: Path) -> FakeMountTable:
    return FakeMountTable(tmp_path / "mounts")


@pytest.fixture
def watch_source() -> FakeWatchSource:
    return FakeWatchSource()


@pytest.fixture
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture
def make_config():
    def _make(mount_points: Iterable[str], delay_seconds: int = 0) -> MonitorConfig:
        return MonitorConfig(
            mount_points=list(mount_points),
            delay_seconds=delay_seconds,
            all_mounted_cmd="echo all-mounted",
            any_unmounted_cmd="echo any-unmounted",
        )

    return _make
