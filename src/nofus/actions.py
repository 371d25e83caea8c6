"""Transition command execution and dispatch helpers."""
from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import Dict, Optional

from .config import MonitorConfig
from .errors import DispatchError
from .events import AggregateState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandOutcome:
    """Result of handing a command to a runner."""

    command: str
    dry_run: bool
    returncode: Optional[int] = None

    @property
    def executed(self) -> bool:
        return not self.dry_run


class ShellCommandRunner:
    """Runs command strings through ``/bin/sh -c`` and waits for them."""

    def execute(self, command: str, dry_run: bool) -> CommandOutcome:
        if dry_run:
            logger.info("Dry run enabled, no commands will be executed. Would run: %s", command)
            return CommandOutcome(command=command, dry_run=True)

        logger.debug("Running command: %s", command)
        try:
            completed = subprocess.run(command, shell=True, check=False)
        except OSError as exc:
            raise DispatchError(command, f"Failed to execute command {command!r}: {exc}") from exc

        if completed.returncode != 0:
            raise DispatchError(
                command,
                f"Command failed with status {completed.returncode}: {command}",
                returncode=completed.returncode,
            )
        return CommandOutcome(command=command, dry_run=False, returncode=completed.returncode)


class CommandDispatcher:
    """Announces aggregate state changes and runs the matching command.

    Command failures raise DispatchError for both states; the caller decides
    whether to keep going.
    """

    def __init__(self, config: MonitorConfig, *, dry_run: bool = False, runner=None):
        self._commands: Dict[AggregateState, str] = {
            AggregateState.ALL_MOUNTED: config.all_mounted_cmd,
            AggregateState.NOT_ALL_MOUNTED: config.any_unmounted_cmd,
        }
        self._dry_run = dry_run
        self._runner = runner if runner is not None else ShellCommandRunner()

    @property
    def dry_run(self) -> bool:
        return self._dry_run

    def command_for(self, state: AggregateState) -> str:
        return self._commands[state]

    def dispatch(self, state: AggregateState) -> CommandOutcome:
        if state is AggregateState.ALL_MOUNTED:
            logger.info("All mounts are available")
        else:
            logger.error("One or more mounts are disconnected")
        return self._runner.execute(self.command_for(state), self._dry_run)
