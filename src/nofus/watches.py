"""Change-notification watches on monitored mount points."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Hashable, Iterator, List, Optional, Tuple, Union

from inotify_simple import INotify, flags, masks

from .errors import NotificationChannelError

logger = logging.getLogger(__name__)

WatchHandle = Hashable


class InotifyWatchSource:
    """Notification channel backed by a single inotify instance.

    Only invalidation notifications (``IN_IGNORED``) are surfaced; every other
    event is drained and discarded.
    """

    def __init__(self, inotify: Optional[INotify] = None):
        self._inotify = inotify if inotify is not None else INotify(nonblocking=True)

    def add_watch(self, path: Union[str, Path]) -> WatchHandle:
        """Install a watch on ``path``. Raises OSError if the kernel refuses it."""

        return self._inotify.add_watch(str(path), masks.ALL_EVENTS)

    def read_invalidated(self, timeout: float = 0.0) -> List[WatchHandle]:
        """Drain pending events and return the handles that became invalid.

        Waits at most ``timeout`` seconds. An empty list means nothing was
        pending; any other read failure raises NotificationChannelError.
        """

        try:
            events = self._inotify.read(timeout=int(timeout * 1000))
        except BlockingIOError:
            return []
        except OSError as exc:
            raise NotificationChannelError(f"Error while reading watch notifications: {exc}") from exc

        invalidated: List[WatchHandle] = []
        for event in events:
            if event.mask & flags.Q_OVERFLOW:
                logger.warning("Watch notification queue overflowed; invalidations may have been lost")
            if event.mask & flags.IGNORED:
                invalidated.append(event.wd)
        return invalidated

    def close(self) -> None:
        self._inotify.close()

    def __enter__(self) -> "InotifyWatchSource":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class WatchRegistry:
    """Maps each monitored path to its live watch handle.

    A missing entry means the path has no active watch, which is recovered by
    the next ``ensure_watch`` call. Entries are removed only through
    ``invalidate``.
    """

    def __init__(self, source):
        self._source = source
        self._watches: Dict[str, WatchHandle] = {}

    def __len__(self) -> int:
        return len(self._watches)

    def __iter__(self) -> Iterator[Tuple[str, WatchHandle]]:
        return iter(list(self._watches.items()))

    def has_watch(self, path: str) -> bool:
        return path in self._watches

    def get(self, path: str) -> Optional[WatchHandle]:
        return self._watches.get(path)

    def ensure_watch(self, path: str) -> bool:
        """Install a watch for ``path`` unless one is already registered.

        Returns True when the path ends up with a handle. Failures leave the
        path without one.
        """

        if path in self._watches:
            return True
        try:
            handle = self._source.add_watch(path)
        except OSError as exc:
            logger.debug("Could not add watch for %s: %s", path, exc)
            return False
        self._watches[path] = handle
        logger.debug("Watching %s (handle=%s)", path, handle)
        return True

    def invalidate(self, handle: WatchHandle) -> List[str]:
        """Forget every path registered under ``handle`` and return those paths."""

        removed = [path for path, existing in self._watches.items() if existing == handle]
        for path in removed:
            del self._watches[path]
            logger.debug("Watch for %s invalidated (handle=%s)", path, handle)
        return removed
