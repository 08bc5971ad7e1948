import struct
import time
from datetime import timedelta

import pytest

from lktool.loadtester.probe import LoadTestDepacketizer, LoadTestProvider


def ts_bytes(ns):
    return struct.pack("<Q", ns)


def test_bitrate_below_minimum_rejected():
    with pytest.raises(ValueError, match="1920"):
        LoadTestProvider(1919)


def test_minimum_bitrate_accepted():
    provider = LoadTestProvider(1920)
    assert provider.bytes_per_sample >= 8


@pytest.mark.parametrize("bitrate", [24_000, 100_000, 1_000_000])
def test_bytes_per_sample_matches_bitrate(bitrate):
    provider = LoadTestProvider(bitrate)
    assert provider.bytes_per_sample * 8 * 30 <= bitrate
    assert (provider.bytes_per_sample + 1) * 8 * 30 > bitrate


def test_sample_shape():
    provider = LoadTestProvider(100_000)
    data, duration = provider.next_sample()
    assert len(data) == provider.bytes_per_sample
    assert data[:4] == b"\xfa\xfa\xfa\xfa"
    assert data[4:-8] == bytes(provider.bytes_per_sample - 12)
    assert abs(duration * 30 - timedelta(seconds=1)) < timedelta(milliseconds=1)


def test_sample_round_trip_through_depacketizer():
    provider = LoadTestProvider(100_000)
    depacketizer = LoadTestDepacketizer()
    data, _ = provider.next_sample()
    time.sleep(0.01)
    assert depacketizer.is_partition_head(data)
    assert depacketizer.is_partition_tail(True, data)


def test_unmarshal_is_identity():
    packet = b"\x01\x02\x03"
    assert LoadTestDepacketizer().unmarshal(packet) == packet


@pytest.mark.parametrize(
    "payload, expected",
    [
        (b"\xfa\xfa\xfa\xfa", True),
        (b"\xfa\xfa\xfa\xfa\x00\x01", True),
        (b"\xfa\xfa\xfa", False),
        (b"\xfa\xfa\xfa\x00", False),
        (b"", False),
    ],
)
def test_is_partition_head(payload, expected):
    assert LoadTestDepacketizer().is_partition_head(payload) is expected


def test_tail_recent_timestamp():
    payload = b"\x00\x00" + ts_bytes(time.time_ns() - 1_000_000_000)
    assert LoadTestDepacketizer().is_partition_tail(False, payload) is True


def test_tail_requires_zero_prefix():
    payload = b"\x00\x01" + ts_bytes(time.time_ns() - 1_000_000_000)
    assert LoadTestDepacketizer().is_partition_tail(False, payload) is False


def test_tail_too_short():
    assert LoadTestDepacketizer().is_partition_tail(False, bytes(9)) is False


def test_tail_rejects_old_timestamp():
    payload = b"\x00\x00" + ts_bytes(time.time_ns() - 120 * 1_000_000_000)
    assert LoadTestDepacketizer().is_partition_tail(False, payload) is False


def test_tail_rejects_future_timestamp():
    payload = b"\x00\x00" + ts_bytes(time.time_ns() + 60 * 1_000_000_000)
    assert LoadTestDepacketizer().is_partition_tail(False, payload) is False