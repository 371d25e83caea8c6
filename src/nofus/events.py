"""State models shared across monitor components."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable


class AggregateState(str, Enum):
    """Two-valued summary of every monitored mount point."""

    ALL_MOUNTED = "all_mounted"
    NOT_ALL_MOUNTED = "not_all_mounted"

    @classmethod
    def from_statuses(cls, statuses: Iterable[bool]) -> "AggregateState":
        if all(statuses):
            return cls.ALL_MOUNTED
        return cls.NOT_ALL_MOUNTED


@dataclass(frozen=True)
class MountStatus:
    """Result of probing a single monitored path during one cycle."""

    path: str
    mounted: bool
