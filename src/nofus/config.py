"""Configuration loading utilities for the mount monitor."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Mapping, Optional

import yaml # type: ignore

from .errors import ConfigError

logger = logging.getLogger(__name__)

USER_CONFIG_PATH = Path(".config") / "nofus" / "config.yml"
SYSTEM_CONFIG_PATH = Path("/etc/nofus/config.yml")

DEFAULT_CONFIG_TEMPLATE = """\
# nofus configuration
#
# Every path listed under mount_points must be mounted for the monitor to
# consider the system healthy.
mount_points:
  - /mnt/nfs/share

# Seconds to wait between checks.
delay_seconds: 5

# Shell command run whenever every mount point becomes available.
all_mounted_cmd: "echo 'All mounts are available'"

# Shell command run whenever any mount point becomes unavailable.
any_unmounted_cmd: "echo 'One or more mounts are disconnected'"
"""


@dataclass
class MonitorConfig:
    """Options describing which mounts to watch and what to run on transitions."""

    mount_points: List[str]
    delay_seconds: int
    all_mounted_cmd: str
    any_unmounted_cmd: str


def default_config_path(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Return the per-user config path, or the system one when HOME is unset."""

    env = os.environ if environ is None else environ
    home = env.get("HOME")
    if home:
        return Path(home) / USER_CONFIG_PATH
    return SYSTEM_CONFIG_PATH


def write_default_config(path: Path) -> None:
    """Create ``path`` (and its parent directory) from the bundled template."""

    try:
        if not path.parent.exists():
            logger.debug("Creating config directory %s", path.parent)
            path.parent.mkdir(parents=True)
        path.write_text(DEFAULT_CONFIG_TEMPLATE)
    except OSError as exc:
        raise ConfigError(f"Unable to create default configuration at {path}: {exc}") from exc


def load_config(path: Path) -> MonitorConfig:
    """Load and validate the YAML configuration file."""

    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text())
    except yaml.YAMLError as exc:  # pragma: no cover - logging helper
        raise ConfigError(f"Failed to parse YAML configuration: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Unable to read configuration {path}: {exc}") from exc

    return parse_config(data)


def parse_config(data: Any) -> MonitorConfig:
    """Validate an already deserialized configuration mapping."""

    if not isinstance(data, dict):
        raise ConfigError("Configuration root must be a mapping")

    mount_points = _parse_mount_points(data.get("mount_points"))
    delay_seconds = _parse_delay(data.get("delay_seconds"))
    all_mounted_cmd = _ensure_str(data.get("all_mounted_cmd"), "all_mounted_cmd")
    any_unmounted_cmd = _ensure_str(data.get("any_unmounted_cmd"), "any_unmounted_cmd")

    return MonitorConfig(
        mount_points=mount_points,
        delay_seconds=delay_seconds,
        all_mounted_cmd=all_mounted_cmd,
        any_unmounted_cmd=any_unmounted_cmd,
    )


def _parse_mount_points(raw: Any) -> List[str]:
    if raw is None:
        raise ConfigError("mount_points is required")
    if isinstance(raw, str):
        raw = [raw]
    if not isinstance(raw, list):
        raise ConfigError("mount_points must be a list of strings")

    mount_points: List[str] = []
    for index, elem in enumerate(raw):
        if not isinstance(elem, str) or not elem.strip():
            raise ConfigError(f"mount_points[{index}] must be a non-empty string")
        if not os.path.isabs(elem):
            raise ConfigError(f"mount_points[{index}] must be an absolute path: {elem}")
        normalized = os.path.normpath(elem)
        if normalized in mount_points:
            logger.warning("Ignoring duplicate mount point %s", elem)
            continue
        mount_points.append(normalized)

    if not mount_points:
        raise ConfigError("mount_points must list at least one path")
    return mount_points


def _parse_delay(raw: Any) -> int:
    if raw is None:
        raise ConfigError("delay_seconds is required")
    # bool is an int subclass
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ConfigError("delay_seconds must be an integer")
    if raw < 0:
        raise ConfigError("delay_seconds must not be negative")
    return raw


def _ensure_str(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ConfigError(f"{field_name} must be a string")
    return value
