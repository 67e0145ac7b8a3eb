"""INI-backed key/value settings file."""

from __future__ import annotations

import configparser
import os
from pathlib import Path
from typing import Any

_GENERAL = "General"


def _split_key(key: str) -> tuple[str, str]:
    section, sep, option = key.partition("/")
    if not sep or not section or not option:
        return _GENERAL, key
    return section, option


def _to_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class ConfigFile:
    """Settings stored in an INI file; keys may be ``"group/name"``.

    Keys without a group live in the ``[General]`` section. Every change is
    written straight back to the file.
    """

    def __init__(self, filename: str | os.PathLike[str]) -> None:
        self._path = Path(filename)
        self._parser = configparser.ConfigParser(interpolation=None)
        self._parser.optionxform = str  # keep key case
        self._ok = True
        if self._path.exists():
            try:
                text = self._path.read_text(encoding="utf-8")
                self._parser.read_string(f"[{_GENERAL}]\n{text}")
            except (OSError, UnicodeDecodeError, configparser.Error):
                self._ok = False
                self._parser = configparser.ConfigParser(interpolation=None)
                self._parser.optionxform = str

    def is_open(self) -> bool:
        """Whether the file could be read without errors."""
        return self._ok

    def set_value(self, key: str, value: Any) -> None:
        section, option = _split_key(key)
        if not self._parser.has_section(section):
            self._parser.add_section(section)
        self._parser.set(section, option, _to_text(value))
        self._write()

    def value(self, key: str, default: Any = None) -> Any:
        section, option = _split_key(key)
        return self._parser.get(section, option, fallback=default)

    def remove_value(self, key: str) -> None:
        section, option = _split_key(key)
        if self._parser.has_section(section) and self._parser.remove_option(section, option):
            self._write()

    def _write(self) -> None:
        if not self._ok:
            return
        with self._path.open("w", encoding="utf-8") as handle:
            self._parser.write(handle)