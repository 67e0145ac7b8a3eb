"""Wire format for JSON text messages and length-prefixed binary packets.

A binary payload is laid out as::

    total_size:int32 | (packet_size:int32 | header_size:int32 | header | data)*

All integers are signed 32-bit big-endian. ``header`` is compact JSON of the
form ``{"params": {...}, "type": "..."}``. The length of ``data`` is taken
from ``params["size"]``.
"""

from __future__ import annotations

import json
import struct
from dataclasses import dataclass, field
from typing import Any, Mapping

_INT32 = struct.Struct(">i")


@dataclass
class ParsedPacket:
    """One packet decoded from a binary payload."""

    type: str = ""
    params: dict[str, Any] = field(default_factory=dict)
    data: bytes = b""


def _compact_json(obj: Mapping[str, Any]) -> str:
    return json.dumps(obj, separators=(",", ":"), sort_keys=True, ensure_ascii=False)


def text_packet(packet_type: str, params: Mapping[str, Any], token: str) -> str:
    """Build a compact JSON text message carrying ``params`` plus the token."""
    body = dict(params)
    body["token"] = token
    return _compact_json({"type": packet_type, "params": body})


def binary_packet(
    packet_type: str,
    params: Mapping[str, Any],
    data: bytes,
    *,
    token: str | None = None,
    with_size: bool = True,
) -> bytes:
    """Build one packet: header length, JSON header, then the raw data.

    With ``with_size`` the header records ``len(data)`` under ``"size"``
    (values in ``params`` take precedence). When ``token`` is given it is
    stored under ``"token"``, overriding any such key in ``params``.
    """
    data = bytes(data)
    header_params: dict[str, Any] = {}
    if with_size:
        header_params["size"] = len(data)
    header_params.update(params)
    if token is not None:
        header_params["token"] = token
    header = _compact_json({"type": packet_type, "params": header_params}).encode("utf-8")
    return length_prefix(len(header)) + header + data


def length_prefix(size: int) -> bytes:
    """Encode ``size`` as a signed 32-bit big-endian integer."""
    try:
        return _INT32.pack(size)
    except struct.error as exc:
        raise ValueError(f"size {size} does not fit in a signed 32-bit integer") from exc


def frame_packet(packet: bytes) -> bytes:
    """Return ``packet`` preceded by its own length, ready to be concatenated."""
    packet = bytes(packet)
    return length_prefix(len(packet)) + packet


def all_binary_packet(payload: bytes) -> bytes:
    """Prefix a run of framed packets with the total size (prefix included)."""
    payload = bytes(payload)
    return length_prefix(_INT32.size + len(payload)) + payload


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return 0


def _load_header(header: bytes) -> dict[str, Any] | None:
    try:
        document = json.loads(header.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    if isinstance(document, dict):
        return document
    if isinstance(document, list):
        return {}
    return None


def parse_data_packets(data: bytes) -> list[ParsedPacket]:
    """Decode every complete packet in ``data``.

    Parsing stops quietly at the first incomplete or malformed packet; the
    packets decoded before it are returned.
    """
    data = bytes(data)
    packets: list[ParsedPacket] = []
    end = len(data)
    if end < _INT32.size:
        return packets
    pos = _INT32.size  # the leading total size is informational only

    while pos < end:
        if end - pos < _INT32.size:
            return packets
        (packet_size,) = _INT32.unpack_from(data, pos)
        pos += _INT32.size
        if end - pos < packet_size or end - pos < _INT32.size:
            return packets
        (header_size,) = _INT32.unpack_from(data, pos)
        pos += _INT32.size
        header = data[pos : pos + max(header_size, 0)]
        pos += len(header)

        document = _load_header(header)
        if document is None:
            return packets
        packet_type = document.get("type")
        params = document.get("params")
        if not isinstance(packet_type, str):
            packet_type = ""
        if not isinstance(params, dict):
            params = {}

        size = _as_int(params.get("size"))
        payload = data[pos : pos + max(size, 0)]
        pos += len(payload)
        packets.append(ParsedPacket(type=packet_type, params=params, data=payload))
    return packets