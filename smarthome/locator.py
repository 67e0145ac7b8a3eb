"""Process-wide access to the client's network service."""

from __future__ import annotations

import threading
from typing import Any

_lock = threading.Lock()
_current: dict[str, Any] = {}


def set_network_service(service: Any) -> None:
    """Register ``service``; ``None`` is ignored and keeps the current one."""
    if service is None:
        return
    with _lock:
        _current["service"] = service


def network_service() -> Any:
    """The registered network service, or ``None`` if none was set."""
    with _lock:
        return _current.get("service")