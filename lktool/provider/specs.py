"""Video and audio sample specifications and the catalogue that rotates through them."""

from __future__ import annotations

import threading
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import IntEnum

H264_CODEC = "h264"
VP8_CODEC = "vp8"

_VIDEO_FPS = (15, 20, 30)
_LAYERS_TO_KEEP = {"medium": 2, "low": 1}

DEFAULT_AUDIO_NAMES = (
    "change-amelia",
    "change-benjamin",
    "change-elena",
    "change-clint",
    "change-emma",
    "change-ken",
    "change-sophie",
)


class VideoQuality(IntEnum):
    LOW = 0
    MEDIUM = 1
    HIGH = 2
    OFF = 3


@dataclass(frozen=True)
class VideoLayer:
    """One simulcast layer as announced to the server."""

    quality: VideoQuality
    width: int
    height: int
    bitrate: int


@dataclass(frozen=True)
class VideoSpec:
    """A looped video resource: its codec, dimensions, bitrate and frame rate."""

    codec: str
    prefix: str
    height: int
    width: int
    kbps: int
    fps: int

    def name(self) -> str:
        """Return the resource path of the video file."""
        ext = "ivf" if self.codec == VP8_CODEC else "h264"
        size = f"p{self.width}" if self.height > self.width else str(self.height)
        return f"resources/{self.prefix}_{size}_{self.kbps}.{ext}"

    def bitrate(self) -> int:
        """Return the bitrate in bits per second."""
        return self.kbps * 1000

    def to_video_layer(self, quality: VideoQuality | int) -> VideoLayer:
        return VideoLayer(
            quality=VideoQuality(quality),
            width=self.width,
            height=self.height,
            bitrate=self.bitrate(),
        )


def circles_spec(width: int, kbps: int, fps: int) -> VideoSpec:
    """Return a spec for the portrait 'circles' clip of the given width."""
    return VideoSpec(
        codec=H264_CODEC,
        prefix="circles",
        height=width * 4 // 3,
        width=width,
        kbps=kbps,
        fps=fps,
    )


def create_specs(prefix: str, codec: str, *args: int) -> list[VideoSpec]:
    """Return 16:9 specs for the given bitrates, each layer twice the size of the last."""
    if len(args) > len(_VIDEO_FPS):
        raise ValueError(f"at most {len(_VIDEO_FPS)} bitrates are supported")
    specs = []
    for i, kbps in enumerate(args):
        multiple = 2**i
        specs.append(
            VideoSpec(
                codec=codec,
                prefix=prefix,
                height=180 * multiple,
                width=180 * multiple * 16 // 9,
                kbps=kbps,
                fps=_VIDEO_FPS[i],
            )
        )
    return specs


def _default_video_specs() -> list[list[VideoSpec]]:
    return [
        create_specs("butterfly", H264_CODEC, 150, 400, 2000),
        create_specs("cartoon", H264_CODEC, 120, 400, 1500),
        create_specs("crescent", VP8_CODEC, 150, 600, 2000),
        create_specs("neon", VP8_CODEC, 150, 600, 2000),
        create_specs("tunnel", VP8_CODEC, 150, 600, 2000),
        [
            circles_spec(180, 200, 15),
            circles_spec(360, 700, 20),
            circles_spec(540, 2000, 30),
        ],
    ]


class VideoCatalog:
    """The available clips; successive requests rotate through them."""

    def __init__(
        self,
        video_specs: Iterable[Sequence[VideoSpec]] | None = None,
        audio_names: Iterable[str] | None = None,
    ) -> None:
        groups = video_specs if video_specs is not None else _default_video_specs()
        self.video_specs = [list(group) for group in groups]
        self.audio_names = list(audio_names if audio_names is not None else DEFAULT_AUDIO_NAMES)
        self._video_index = 0
        self._audio_index = 0
        self._lock = threading.Lock()

    def specs_for_codec(self, codec: str | None = "") -> list[VideoSpec]:
        """Return the next group of specs, restricted to ``codec`` unless it is empty."""
        filtered = [g for g in self.video_specs if g and (not codec or g[0].codec == codec)]
        if not filtered:
            raise ValueError(f"no video specs for codec {codec!r}")
        with self._lock:
            self._video_index += 1
            index = self._video_index
        return list(filtered[index % len(filtered)])

    def layers(
        self, resolution: str = "high", codec: str | None = "", simulcast: bool = True
    ) -> list[VideoSpec]:
        """Return the specs to publish for a resolution ('low', 'medium' or 'high').

        With simulcast every layer up to the resolution is returned, otherwise
        only the top one.
        """
        specs = self.specs_for_codec(codec)
        keep = _LAYERS_TO_KEEP.get(resolution, 3)
        specs = specs[:keep]
        if not simulcast:
            specs = specs[keep - 1 :]
        return specs

    def next_audio_name(self) -> str:
        """Return the next audio clip name, cycling through the list."""
        if not self.audio_names:
            raise ValueError("no audio clips available")
        with self._lock:
            name = self.audio_names[self._audio_index % len(self.audio_names)]
            self._audio_index += 1
        return name