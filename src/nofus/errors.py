"""Exception hierarchy shared by the mount monitor components."""
from __future__ import annotations

from typing import Optional


class NofusError(Exception):
    """Base class for all errors raised by the mount monitor."""


class ConfigError(NofusError):
    """Raised when the configuration file is missing or invalid."""


class ProbeError(NofusError):
    """Raised when the mount table cannot be read."""


class NotificationChannelError(NofusError):
    """Raised when pending watch notifications cannot be read."""


class DispatchError(NofusError):
    """Raised when a transition command fails to spawn or exits non-zero."""

    def __init__(self, command: str, message: str, returncode: Optional[int] = None):
        super().__init__(message)
        self.command = command
        self.returncode = returncode
