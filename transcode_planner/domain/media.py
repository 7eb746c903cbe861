"""
Core media types for the Transcode Planner.

This module holds the enumerations and value objects that every other layer
shares: which encoder family and container are targeted, which CM variant an
output belongs to, and the video stream properties the encoder arguments are
derived from.

Color tags are kept as the numeric `AVCOL_*` codes used by ffmpeg, since that
is what a decoder reports. `probe_video_format` can fill a `VideoFormat` from
`ffprobe` output when the caller has no decoder report at hand; the planner
itself never looks at media files.
"""
import re
from dataclasses import dataclass
from enum import Enum, IntEnum
from fractions import Fraction
from pathlib import Path
from typing import Iterable, List, Optional

import ffmpeg
from loguru import logger

from .exceptions import ConfigException, MediaFileException


class EncoderFamily(Enum):
    X264 = "x264"
    X265 = "x265"
    QSVENC = "qsvenc"
    NVENC = "nvenc"

    @property
    def display_name(self) -> str:
        return {
            EncoderFamily.X264: "x264",
            EncoderFamily.X265: "x265",
            EncoderFamily.QSVENC: "QSVEnc",
            EncoderFamily.NVENC: "NVEnc",
        }[self]

    @property
    def supports_zones(self) -> bool:
        """Hardware encoders have no per-zone bitrate override."""
        return self in (EncoderFamily.X264, EncoderFamily.X265)


class ContainerFormat(Enum):
    MP4 = "mp4"
    MKV = "mkv"

    @property
    def extension(self) -> str:
        return self.value

    @property
    def display_name(self) -> str:
        return "MP4" if self is ContainerFormat.MP4 else "Matroska"


class VideoStreamFormat(Enum):
    MPEG2 = "mpeg2"
    H264 = "h264"
    H265 = "h265"
    UNKNOWN = "unknown"


class DecoderType(Enum):
    DEFAULT = "default"
    QSV = "qsv"
    CUVID = "cuvid"

    @property
    def display_name(self) -> str:
        return {
            DecoderType.DEFAULT: "default",
            DecoderType.QSV: "QSV",
            DecoderType.CUVID: "CUVID",
        }[self]


class CMType(IntEnum):
    """Which rendered variant an output belongs to. The value is its bit in the output mask."""

    BOTH = 0
    NONCM = 1
    CM = 2

    @property
    def suffix(self) -> str:
        if self is CMType.CM:
            return "-cm"
        if self is CMType.NONCM:
            return "-main"
        return ""

    @property
    def mask_bit(self) -> int:
        return 1 << self.value


def parse_enum(enum_cls, value, field_name: str):
    """
    Converts a configuration value into a member of `enum_cls`.

    Accepts an existing member, its value (case-insensitive for strings) or its
    member name.

    Raises:
        ConfigException: If the value matches no member.
    """
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        for member in enum_cls:
            if str(member.value).lower() == lowered or member.name.lower() == lowered:
                return member
    else:
        try:
            return enum_cls(value)
        except ValueError:
            pass
    choices = ", ".join(str(m.value) for m in enum_cls)
    raise ConfigException(f"Unknown {field_name} '{value}'. Expected one of: {choices}")


# --- ffmpeg AVCOL_* codes ---
# The same code (2) means "unspecified" for primaries, transfer and matrix.
AVCOL_UNSPECIFIED = 2
# Code returned for a tag name that ffmpeg would not know either.
AVCOL_RESERVED = 3

AVCOL_PRI_BT709 = 1
AVCOL_PRI_BT2020 = 9

AVCOL_TRC_BT709 = 1
AVCOL_TRC_IEC61966_2_4 = 11
AVCOL_TRC_BT2020_10 = 14
AVCOL_TRC_SMPTEST2084 = 16
AVCOL_TRC_ARIB_STD_B67 = 18

AVCOL_SPC_BT709 = 1
AVCOL_SPC_BT2020_NCL = 9

# ffprobe tag names -> AVCOL_* codes.
_FFPROBE_PRIMARIES = {
    "bt709": 1, "unknown": 2, "bt470m": 4, "bt470bg": 5, "smpte170m": 6,
    "smpte240m": 7, "film": 8, "bt2020": 9, "smpte428": 10, "smpte431": 11,
    "smpte432": 12, "jedec-p22": 22, "ebu3213": 22,
}
_FFPROBE_TRANSFER = {
    "bt709": 1, "unknown": 2, "bt470m": 4, "bt470bg": 5, "smpte170m": 6,
    "smpte240m": 7, "linear": 8, "log100": 9, "log316": 10,
    "iec61966-2-4": 11, "bt1361e": 12, "iec61966-2-1": 13, "bt2020-10": 14,
    "bt2020-12": 15, "smpte2084": 16, "smpte428": 17, "arib-std-b67": 18,
}
_FFPROBE_COLOR_SPACE = {
    "gbr": 0, "bt709": 1, "unknown": 2, "fcc": 4, "bt470bg": 5,
    "smpte170m": 6, "smpte240m": 7, "ycgco": 8, "bt2020nc": 9, "bt2020c": 10,
    "smpte2085": 11, "chroma-derived-nc": 12, "chroma-derived-c": 13,
    "ictcp": 14,
}


@dataclass(frozen=True)
class VideoFormat:
    frame_rate_num: int
    frame_rate_den: int
    fixed_frame_rate: bool = True
    progressive: bool = True
    color_primaries: int = AVCOL_UNSPECIFIED
    transfer_characteristics: int = AVCOL_UNSPECIFIED
    color_space: int = AVCOL_UNSPECIFIED
    width: Optional[int] = None
    height: Optional[int] = None

    @property
    def frame_rate(self) -> Fraction:
        return Fraction(self.frame_rate_num, self.frame_rate_den)


@dataclass(frozen=True)
class EncoderZone:
    """A half-open frame range encoded with a different bitrate scale."""

    start_frame: int
    end_frame: int


def validate_zones(zones: Iterable[EncoderZone]) -> List[EncoderZone]:
    """
    Checks that zones are ordered by start frame and do not overlap.

    Returns:
        The zones as a list.

    Raises:
        ConfigException: For an empty, reversed, unordered or overlapping zone.
    """
    checked: List[EncoderZone] = []
    for zone in zones:
        if zone.start_frame < 0 or zone.end_frame <= zone.start_frame:
            raise ConfigException(f"Invalid encoder zone {zone.start_frame}-{zone.end_frame}")
        if checked and zone.start_frame < checked[-1].end_frame:
            prev = checked[-1]
            raise ConfigException(
                f"Encoder zone {zone.start_frame}-{zone.end_frame} overlaps or precedes "
                f"{prev.start_frame}-{prev.end_frame}"
            )
        checked.append(zone)
    return checked


def _color_code(table: dict, name: Optional[str]) -> int:
    if not name:
        return AVCOL_UNSPECIFIED
    return table.get(name.lower(), AVCOL_RESERVED)


def _parse_rate(rate: Optional[str]) -> Optional[Fraction]:
    if not rate or not re.fullmatch(r"\d+/\d+", rate):
        return None
    num, den = (int(x) for x in rate.split("/"))
    if den == 0 or num == 0:
        return None
    return Fraction(num, den)


def video_format_from_stream(stream: dict) -> VideoFormat:
    """
    Builds a `VideoFormat` from one `ffprobe` video stream dictionary.

    The frame rate is taken from `r_frame_rate`. The stream is treated as fixed
    frame rate when `avg_frame_rate` agrees with it or is missing. A `field_order`
    such as `tt` or `bb` marks the stream as interlaced.

    Raises:
        MediaFileException: If the stream has no usable frame rate.
    """
    rate = _parse_rate(stream.get("r_frame_rate"))
    if rate is None:
        raise MediaFileException(f"Video stream has no frame rate: {stream.get('r_frame_rate')!r}")
    avg_rate = _parse_rate(stream.get("avg_frame_rate"))
    field_order = stream.get("field_order")

    return VideoFormat(
        frame_rate_num=rate.numerator,
        frame_rate_den=rate.denominator,
        fixed_frame_rate=avg_rate is None or avg_rate == rate,
        progressive=field_order in (None, "progressive", "unknown"),
        color_primaries=_color_code(_FFPROBE_PRIMARIES, stream.get("color_primaries")),
        transfer_characteristics=_color_code(_FFPROBE_TRANSFER, stream.get("color_transfer")),
        color_space=_color_code(_FFPROBE_COLOR_SPACE, stream.get("color_space")),
        width=stream.get("width"),
        height=stream.get("height"),
    )


def probe_video_format(path: Path) -> VideoFormat:
    """
    Probes the first video stream of `path` with ffprobe.

    Raises:
        MediaFileException: If ffprobe fails or the file has no video stream.
    """
    try:
        probe = ffmpeg.probe(str(path))
    except ffmpeg.Error as e:
        stderr = e.stderr.decode("utf-8", errors="replace") if e.stderr else str(e)
        raise MediaFileException(f"ffprobe failed for {path}: {stderr.strip()}") from e

    video_streams = [s for s in probe.get("streams", []) if s.get("codec_type") == "video"]
    if not video_streams:
        raise MediaFileException(f"No video stream found in {path}")

    video_format = video_format_from_stream(video_streams[0])
    logger.debug(f"Probed video format of {path.name}: {video_format}")
    return video_format
