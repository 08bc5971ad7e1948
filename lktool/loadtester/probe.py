"""Probe samples carrying a marker and a timestamp, for measuring loss and delay."""

from __future__ import annotations

import struct
import time
from datetime import timedelta

_MARKER = b"\xfa\xfa\xfa\xfa"
_TIMESTAMP = struct.Struct("<Q")
_ONE_MINUTE_NS = 60 * 1_000_000_000


class LoadTestProvider:
    """Produces fixed-size samples: marker, zero padding, then a nanosecond timestamp."""

    def __init__(self, bitrate: int) -> None:
        bytes_per_sample = bitrate // 8 // 30
        if bytes_per_sample < 8:
            raise ValueError("bitrate lower than minimum of 1920")
        self.bytes_per_sample = bytes_per_sample
        self.sample_duration = timedelta(seconds=1) / 30

    def next_sample(self) -> tuple[bytes, timedelta]:
        """Return the next sample's data and its duration."""
        padding = bytes(self.bytes_per_sample - 12)
        data = _MARKER + padding + _TIMESTAMP.pack(time.time_ns())
        return data, self.sample_duration


class LoadTestDepacketizer:
    """Recognises the boundaries of samples made by LoadTestProvider."""

    def unmarshal(self, packet: bytes) -> bytes:
        return packet

    def is_partition_head(self, payload: bytes) -> bool:
        return len(payload) >= 4 and payload[:4] == _MARKER

    def is_partition_tail(self, marker: bool, payload: bytes) -> bool:
        if len(payload) < 10:
            return False
        if payload[-10] != 0 or payload[-9] != 0:
            return False
        (ts,) = _TIMESTAMP.unpack(payload[-8:])
        now = time.time_ns()
        return now - _ONE_MINUTE_NS < ts < now