"""Holds the session token and remembers it in the settings file."""

from __future__ import annotations

import os

from smarthome.config import ConfigFile


class TokenManager:
    """Current session token; saving it also stores it under ``"token"``."""

    def __init__(self, config_path: str | os.PathLike[str] = "config.ini") -> None:
        self._config_path = config_path
        self._token = ""

    @property
    def token(self) -> str:
        return self._token

    def save_token(self, token: str) -> None:
        self._token = token
        ConfigFile(self._config_path).set_value("token", token)