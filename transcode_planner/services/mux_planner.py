"""
Plans the muxer invocations that turn encoded streams into the output container.

Matroska needs a single mkvmerge run. MP4 needs up to three tools run in
sequence, each taking the previous one's output:

1. the muxer for video, audio and (when there is no timecode) chapters,
2. the timeline editor to apply a VFR timecode file to the video track,
3. MP4Box to add SRT subtitles and any chapters still pending.

The timeline editor drops chapters from its input, so chapters go in with step
1 only when step 2 is not needed, and with step 3 otherwise. The returned list
order is the execution order.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from loguru import logger

from ..config.common import SUBTITLE_TITLE_SRT
from ..domain.exceptions import ConfigException
from ..domain.media import ContainerFormat, VideoFormat

PathLike = Union[str, Path]


@dataclass(frozen=True)
class MuxRequest:
    format: ContainerFormat
    muxer_path: PathLike
    timeline_editor_path: PathLike
    mp4box_path: PathLike
    in_video: PathLike
    video_format: VideoFormat
    in_audios: Sequence[PathLike]
    out_path: PathLike
    tmp_out_path: Optional[PathLike] = None
    chapter_path: Optional[PathLike] = None
    timecode_path: Optional[PathLike] = None
    # (timescale, timebase) for the timeline editor.
    timebase: Tuple[int, int] = (0, 0)
    in_subs: Sequence[PathLike] = field(default_factory=tuple)
    subs_titles: Sequence[str] = field(default_factory=tuple)


def make_muxer_args(request: MuxRequest) -> List[str]:
    """
    Returns the ordered mux commands for `request`.

    Raises:
        ConfigException: If the subtitle inputs and titles do not pair up, or an
            MP4 timecode step has no intermediate path to write to.
    """
    if len(request.in_subs) != len(request.subs_titles):
        raise ConfigException(
            f"{len(request.in_subs)} subtitle inputs but {len(request.subs_titles)} titles"
        )
    if request.format is ContainerFormat.MP4:
        commands = _make_mp4_args(request)
    else:
        commands = [_make_mkv_args(request)]

    for i, cmd in enumerate(commands, 1):
        logger.debug(f"Mux step {i}/{len(commands)}: {cmd}")
    return commands


def _make_mp4_args(request: MuxRequest) -> List[str]:
    commands = []
    need_chapter = bool(request.chapter_path)
    need_timecode = bool(request.timecode_path)
    need_subs = bool(request.in_subs)

    fmt = request.video_format
    parts = [f'"{request.muxer_path}"']
    if fmt.fixed_frame_rate:
        parts.append(f'-i "{request.in_video}?fps={fmt.frame_rate_num}/{fmt.frame_rate_den}"')
    else:
        parts.append(f'-i "{request.in_video}"')
    for in_audio in request.in_audios:
        parts.append(f'-i "{in_audio}"')
    if need_chapter and not need_timecode:
        parts.append(f'--chapter "{request.chapter_path}"')
        need_chapter = False
    parts.append("--optimize-pd")

    if need_timecode:
        if not request.tmp_out_path:
            raise ConfigException("MP4 timecode embedding needs an intermediate output path")
        dst = request.tmp_out_path
    else:
        dst = request.out_path
    parts.append(f'-o "{dst}"')
    commands.append(" ".join(parts))

    if need_timecode:
        timescale, timebase = request.timebase
        commands.append(
            f'"{request.timeline_editor_path}" --track 1'
            f' --timecode "{request.timecode_path}"'
            f" --media-timescale {timescale}"
            f" --media-timebase {timebase}"
            f' "{dst}" "{request.out_path}"'
        )
        need_timecode = False

    if need_chapter or need_subs:
        parts = [f'"{request.mp4box_path}"']
        for in_sub, title in zip(request.in_subs, request.subs_titles):
            # MP4 only carries SRT subtitles
            if title == SUBTITLE_TITLE_SRT:
                parts.append(f'-add "{in_sub}#:name={title}"')
        need_subs = False
        if need_chapter:
            parts.append(f'-chap "{request.chapter_path}"')
            need_chapter = False
        parts.append(f'"{request.out_path}"')
        commands.append(" ".join(parts))

    return commands


def _make_mkv_args(request: MuxRequest) -> str:
    parts = [f'"{request.muxer_path}"']
    if request.chapter_path:
        parts.append(f'--chapters "{request.chapter_path}"')
    parts.append(f'-o "{request.out_path}"')
    if request.timecode_path:
        parts.append(f'--timestamps "0:{request.timecode_path}"')
    parts.append(f'"{request.in_video}"')
    for in_audio in request.in_audios:
        parts.append(f'"{in_audio}"')
    for in_sub, title in zip(request.in_subs, request.subs_titles):
        parts.append(f'--track-name "0:{title}" "{in_sub}"')
    return " ".join(parts)


def make_timeline_editor_args(
    bin_path: PathLike, in_path: PathLike, out_path: PathLike, timecode_path: PathLike
) -> str:
    """A stand-alone timecode re-mux that keeps the tool's default timescale."""
    return (
        f'"{bin_path}" --track 1 --timecode "{timecode_path}"'
        f' "{in_path}" "{out_path}"'
    )
