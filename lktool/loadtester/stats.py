"""Per-track statistics of a load test and their summaries."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class TrackStats:
    """Counters for one subscribed track."""

    track_id: str
    kind: str = ""
    started_at: datetime | None = None
    packets: int = 0
    bytes: int = 0
    dropped: int = 0

    def _elapsed(self, now: datetime) -> timedelta:
        if self.started_at is None:
            return timedelta(0)
        return now - self.started_at


@dataclass
class TesterStats:
    """Statistics gathered by one tester."""

    expected_tracks: int = 0
    track_stats: dict[str, TrackStats] = field(default_factory=dict)
    err: BaseException | None = None


@dataclass
class Summary:
    """Totals for one tester, or for the whole test."""

    tracks: int = 0
    expected: int = 0
    packets: int = 0
    bytes: int = 0
    dropped: int = 0
    elapsed: timedelta = timedelta(0)
    err_string: str = ""
    err_count: int = 0


def tester_summary(stats: TesterStats) -> Summary:
    """Sum up a tester's tracks; elapsed is that of the longest-running track."""
    now = _now()
    summary = Summary(expected=stats.expected_tracks)
    for track in stats.track_stats.values():
        summary.tracks += 1
        summary.packets += track.packets
        summary.bytes += track.bytes
        summary.dropped += track.dropped
        summary.elapsed = max(summary.elapsed, track._elapsed(now))
    if stats.err is None:
        summary.err_string = "-"
    else:
        summary.err_string = str(stats.err)
        summary.err_count = 1
    return summary


def test_summary(summaries: Mapping[str, Summary] | Iterable[Summary]) -> Summary:
    """Combine tester summaries into one for the whole test."""
    values = summaries.values() if isinstance(summaries, Mapping) else summaries
    total = Summary()
    for s in values:
        total.tracks += s.tracks
        total.expected += s.expected
        total.packets += s.packets
        total.bytes += s.bytes
        total.dropped += s.dropped
        total.elapsed = max(total.elapsed, s.elapsed)
        total.err_count += s.err_count
    return total