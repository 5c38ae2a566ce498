"""
settings.py - User preferences stored in a small properties file

The file is plain `key=value` lines (Java properties style, which is what
older releases wrote):

    preferences.opacity=230
    preference.update.interval=STARTUP
    preferences.readonly=false

Loading never fails: a missing or broken file just means defaults.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from db import DATA_DIR
from errors import ConfigLoadError

logger = logging.getLogger(__name__)

PROPERTIES_PATH = DATA_DIR / "timekeeper.properties"
LEGACY_PROPERTIES_PATH = DATA_DIR / "timesheetinator.properties"

KEY_OPACITY = "preferences.opacity"
KEY_UPDATE_INTERVAL = "preference.update.interval"
KEY_READ_ONLY = "preferences.readonly"

MIN_OPACITY = 20
MAX_OPACITY = 255


class UpdateInterval(Enum):
    """How often the user wants to be told about new releases."""

    STARTUP = "STARTUP"
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    NEVER = "NEVER"

    @classmethod
    def parse(cls, value: Optional[str]) -> 'UpdateInterval':
        """Unknown or missing values fall back to STARTUP."""
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.STARTUP


def clamp_opacity(value: int) -> int:
    return max(MIN_OPACITY, min(MAX_OPACITY, int(value)))


def _parse_bool(value: Optional[str]) -> bool:
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def read_properties(path: Path) -> dict[str, str]:
    """
    Parse a properties file into a dict.

    Blank lines and lines starting with '#' or '!' are ignored. Both '='
    and ':' separate key and value.

    Raises:
        ConfigLoadError: If the file can't be read or a line has no key
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigLoadError(f"Cannot read {path}: {e}") from e

    properties = {}
    for number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line[0] in "#!":
            continue
        separators = [i for i in (line.find("="), line.find(":")) if i >= 0]
        if not separators:
            raise ConfigLoadError(f"{path}:{number}: expected key=value, got {raw!r}")
        split_at = min(separators)
        key = line[:split_at].strip()
        if not key:
            raise ConfigLoadError(f"{path}:{number}: missing key")
        properties[key] = line[split_at + 1:].strip()
    return properties


def write_properties(path: Path, properties: dict[str, str]):
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = ["# Timekeeper preferences"]
    lines += [f"{key}={value}" for key, value in sorted(properties.items())]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def migrate_legacy_file(path: Path = PROPERTIES_PATH,
                        legacy_path: Path = LEGACY_PROPERTIES_PATH):
    """Rename the pre-rename properties file once; errors are only logged."""
    if not legacy_path.exists() or path.exists():
        return
    try:
        legacy_path.rename(path)
        logger.info("Renamed %s to %s", legacy_path, path)
    except OSError as e:
        logger.warning("Could not rename %s: %s", legacy_path, e)


@dataclass
class Settings:
    """Preferences edited in the settings dialog."""

    opacity: int = MAX_OPACITY
    update_interval: UpdateInterval = UpdateInterval.STARTUP
    read_only: bool = False

    def __post_init__(self):
        self.opacity = clamp_opacity(self.opacity)

    @classmethod
    def from_properties(cls, properties: dict[str, str]) -> 'Settings':
        try:
            opacity = int(properties.get(KEY_OPACITY, MAX_OPACITY))
        except ValueError:
            logger.warning("Ignoring invalid opacity %r", properties.get(KEY_OPACITY))
            opacity = MAX_OPACITY
        return cls(
            opacity=opacity,
            update_interval=UpdateInterval.parse(properties.get(KEY_UPDATE_INTERVAL)),
            read_only=_parse_bool(properties.get(KEY_READ_ONLY, "false")),
        )

    def to_properties(self) -> dict[str, str]:
        return {
            KEY_OPACITY: str(self.opacity),
            KEY_UPDATE_INTERVAL: self.update_interval.value,
            KEY_READ_ONLY: "true" if self.read_only else "false",
        }

    @classmethod
    def load(cls, path: Path = PROPERTIES_PATH) -> 'Settings':
        """Read preferences, falling back to defaults on any problem."""
        if not path.exists():
            logger.debug("No properties file at %s, using defaults", path)
            return cls()
        try:
            return cls.from_properties(read_properties(path))
        except ConfigLoadError as e:
            logger.warning("%s; using default settings", e)
            return cls()

    def store(self, path: Path = PROPERTIES_PATH):
        """Write preferences, keeping unknown keys already in the file."""
        properties = {}
        if path.exists():
            try:
                properties = read_properties(path)
            except ConfigLoadError as e:
                logger.warning("Overwriting unreadable %s: %s", path, e)
        properties.update(self.to_properties())
        write_properties(path, properties)
