"""Subscription layouts and the video quality each subscribed track should get."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping
from enum import StrEnum

from lktool.provider.specs import VideoQuality

HIGH_DIMENSIONS = (1280, 720)
MEDIUM_DIMENSIONS = (640, 360)
LOW_DIMENSIONS = (320, 180)


class Layout(StrEnum):
    """How a subscriber arranges the videos it receives."""

    # one user at 1280x720, five at 356x200
    SPEAKER = "speaker"
    # nine participants at 400x225
    GRID_3X3 = "3x3"
    # sixteen participants at 320x180
    GRID_4X4 = "4x4"
    # twenty-five participants at 256x144
    GRID_5X5 = "5x5"


_SUBSCRIPTIONS = {
    Layout.SPEAKER: 6,
    Layout.GRID_3X3: 9,
    Layout.GRID_4X4: 16,
    Layout.GRID_5X5: 25,
}

_DIMENSIONS = {
    VideoQuality.HIGH: HIGH_DIMENSIONS,
    VideoQuality.MEDIUM: MEDIUM_DIMENSIONS,
    VideoQuality.LOW: LOW_DIMENSIONS,
}


def layout_from_string(text: str) -> Layout:
    """Return the grid layout named by ``text``; anything else means the speaker layout."""
    for layout in (Layout.GRID_3X3, Layout.GRID_4X4, Layout.GRID_5X5):
        if text == layout.value:
            return layout
    return Layout.SPEAKER


def num_to_subscribe(layout: Layout | str, subscribe: bool) -> int:
    """Return how many participants a tester subscribes to; 0 if it does not subscribe."""
    if not subscribe:
        return 0
    try:
        return _SUBSCRIPTIONS[Layout(layout)]
    except ValueError:
        return 1


def target_quality(
    layout: Layout | str,
    quality_counts: Mapping[VideoQuality, int] | Iterable[VideoQuality],
) -> VideoQuality:
    """Pick the quality for a newly subscribed video track.

    ``quality_counts`` gives how many tracks already have each quality, either
    as a mapping or as the qualities themselves. OFF means the track should be
    disabled because the layout is full.
    """
    if isinstance(quality_counts, Mapping):
        counts: Mapping[VideoQuality, int] = quality_counts
    else:
        counts = Counter(VideoQuality(q) for q in quality_counts)

    def count(quality: VideoQuality) -> int:
        return counts.get(quality, 0)

    try:
        layout = Layout(layout)
    except ValueError:
        return VideoQuality.OFF

    if layout is Layout.SPEAKER:
        if count(VideoQuality.HIGH) == 0:
            return VideoQuality.HIGH
        if count(VideoQuality.LOW) < 5:
            return VideoQuality.LOW
    elif layout is Layout.GRID_3X3:
        if count(VideoQuality.MEDIUM) < 9:
            return VideoQuality.MEDIUM
    elif layout is Layout.GRID_4X4:
        if count(VideoQuality.LOW) < 16:
            return VideoQuality.LOW
    elif layout is Layout.GRID_5X5:
        if count(VideoQuality.LOW) < 25:
            return VideoQuality.LOW
    return VideoQuality.OFF


def dimensions_for(quality: VideoQuality | int) -> tuple[int, int] | None:
    """Return the (width, height) to request for a quality, or None to disable the track."""
    return _DIMENSIONS.get(VideoQuality(quality))