"""
Assembles the complete command plan for a run.

For every requested output and every CM variant the config asks for, the plan
holds the encoder invocations (one per pass) followed by the mux invocations.
All intermediate files are named by the run's `TempFileRegistry`, so the encode
step writes exactly the file the mux step reads.

Planning is all-or-nothing: any error raised while building aborts `build()`
and no partial plan is returned.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import yaml
from loguru import logger

from ..config.common import SUBTITLE_TITLE_ASS, SUBTITLE_TITLE_SRT
from ..domain.exceptions import ConfigException
from ..domain.media import (
    CMType,
    ContainerFormat,
    EncoderZone,
    VideoFormat,
    VideoStreamFormat,
    parse_enum,
    validate_zones,
)
from ..services.encoder_args import make_encoder_args
from ..services.mux_planner import MuxRequest, make_muxer_args
from ..services.transcode_setting import ConfigWrapper


@dataclass(frozen=True)
class SourceInfo:
    format: VideoStreamFormat
    # kbps
    bitrate: float
    video_format: VideoFormat
    # (timescale, timebase) for VFR timecode embedding; defaults to the frame rate.
    timebase: Optional[Tuple[int, int]] = None

    @property
    def is_vfr(self) -> bool:
        return not self.video_format.fixed_frame_rate

    @property
    def media_timebase(self) -> Tuple[int, int]:
        if self.timebase:
            return self.timebase
        return self.video_format.frame_rate_num, self.video_format.frame_rate_den


@dataclass(frozen=True)
class OutputJob:
    vindex: int = 0
    index: int = 0
    # CM zones in frames of this output; only the undivided (BOTH) variant uses them.
    zones: Tuple[EncoderZone, ...] = ()
    audio_count: int = 1
    subtitle_langs: int = 0
    has_chapter: bool = False


@dataclass
class OutputPlan:
    vindex: int
    index: int
    cmtype: CMType
    out_path: str
    encode_commands: List[str] = field(default_factory=list)
    mux_commands: List[str] = field(default_factory=list)

    @property
    def commands(self) -> List[str]:
        return self.encode_commands + self.mux_commands

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vindex": self.vindex,
            "index": self.index,
            "cmtype": self.cmtype.name,
            "out_path": self.out_path,
            "encode": list(self.encode_commands),
            "mux": list(self.mux_commands),
        }


@dataclass
class TranscodePlan:
    outputs: List[OutputPlan] = field(default_factory=list)

    @property
    def commands(self) -> List[str]:
        return [cmd for output in self.outputs for cmd in output.commands]

    def to_dict(self) -> Dict[str, Any]:
        return {"outputs": [output.to_dict() for output in self.outputs]}


class OutputPipeline:
    def __init__(self, setting: ConfigWrapper, source: SourceInfo):
        self.setting = setting
        self.source = source

    def build(self, jobs: Sequence[OutputJob]) -> TranscodePlan:
        plan = TranscodePlan()
        for job in jobs:
            for cmtype in self.setting.cmtypes:
                plan.outputs.append(self.plan_output(job, cmtype))
        logger.info(f"Planned {len(plan.outputs)} output(s), {len(plan.commands)} command(s)")
        return plan

    def plan_output(self, job: OutputJob, cmtype: CMType) -> OutputPlan:
        setting = self.setting
        out_path = setting.out_file_path(job.index, cmtype)
        logger.debug(f"Planning {out_path} (video {job.vindex}, output {job.index}, {cmtype.name})")

        output = OutputPlan(job.vindex, job.index, cmtype, out_path)
        enc_video_path = setting.temp.enc_video_file_path(job.vindex, job.index, cmtype)
        output.encode_commands = self._encode_commands(job, cmtype, enc_video_path)
        output.mux_commands = make_muxer_args(self._mux_request(job, cmtype, enc_video_path, out_path))
        return output

    def _encode_commands(self, job: OutputJob, cmtype: CMType, enc_video_path: Path) -> List[str]:
        conf = self.setting.conf
        zones = validate_zones(job.zones) if cmtype is CMType.BOTH else []
        passes: List[Optional[int]] = [1, 2] if conf.two_pass else [None]

        commands = []
        for pass_index in passes:
            options = self.setting.make_options(
                self.source.format, self.source.bitrate, pass_index, zones, job.vindex, job.index, cmtype
            )
            commands.append(
                make_encoder_args(conf.encoder, conf.encoder_path, options, self.source.video_format, enc_video_path)
            )
        return commands

    def _mux_request(self, job: OutputJob, cmtype: CMType, enc_video_path: Path, out_path: str) -> MuxRequest:
        conf = self.setting.conf
        temp = self.setting.temp
        vindex, index = job.vindex, job.index

        in_audios = [temp.int_audio_file_path(vindex, index, aindex, cmtype) for aindex in range(job.audio_count)]

        chapter_path = None
        if conf.chapter and job.has_chapter:
            chapter_path = temp.tmp_chapter_path(vindex, index, cmtype)

        timecode_path = None
        tmp_out_path = None
        if self.source.is_vfr:
            timecode_path = temp.timecode_file_path(vindex, index, cmtype)
            if conf.format is ContainerFormat.MP4:
                tmp_out_path = temp.vfr_tmp_file_path(vindex, index, cmtype)

        in_subs = []
        subs_titles = []
        if conf.subtitles:
            for lang in range(job.subtitle_langs):
                in_subs.append(temp.tmp_ass_file_path(vindex, index, lang, cmtype))
                subs_titles.append(SUBTITLE_TITLE_ASS)
                in_subs.append(temp.tmp_srt_file_path(vindex, index, lang, cmtype))
                subs_titles.append(SUBTITLE_TITLE_SRT)

        return MuxRequest(
            format=conf.format,
            muxer_path=conf.muxer_path,
            timeline_editor_path=conf.timeline_editor_path,
            mp4box_path=conf.mp4box_path,
            in_video=enc_video_path,
            video_format=self.source.video_format,
            in_audios=in_audios,
            out_path=out_path,
            tmp_out_path=tmp_out_path,
            chapter_path=chapter_path,
            timecode_path=timecode_path,
            timebase=self.source.media_timebase,
            in_subs=in_subs,
            subs_titles=subs_titles,
        )


# --- Job description files ---


@dataclass(frozen=True)
class JobDescription:
    source_format: VideoStreamFormat
    source_bitrate: float
    video_format: Optional[VideoFormat]
    timebase: Optional[Tuple[int, int]]
    outputs: Tuple[OutputJob, ...]

    def source_info(self, video_format: Optional[VideoFormat] = None) -> SourceInfo:
        video_format = video_format or self.video_format
        if video_format is None:
            raise ConfigException("Job description has no video_format and none was probed")
        return SourceInfo(self.source_format, self.source_bitrate, video_format, self.timebase)


def _parse_video_format(section: Any) -> VideoFormat:
    if not isinstance(section, Mapping):
        raise ConfigException(f"video_format must be a mapping, got {section!r}")
    rate = str(section.get("frame_rate", ""))
    try:
        num, den = (int(x) for x in rate.split("/"))
        values = {k: v for k, v in section.items() if k != "frame_rate"}
        video_format = VideoFormat(frame_rate_num=num, frame_rate_den=den, **values)
    except (TypeError, ValueError) as e:
        raise ConfigException(f"Invalid video_format {section}: {e}") from e
    if num <= 0 or den <= 0:
        raise ConfigException(f"Invalid frame_rate '{rate}': numerator and denominator must be positive")
    return video_format


def _parse_timebase(value: Any) -> Tuple[int, int]:
    """
    Parses a `[timescale, timebase]` pair.

    Raises:
        ConfigException: Unless the value is exactly two positive integers.
    """
    try:
        timebase = tuple(int(x) for x in value)
    except (TypeError, ValueError) as e:
        raise ConfigException(f"Invalid timebase {value!r}: {e}") from e
    if len(timebase) != 2 or min(timebase) <= 0:
        raise ConfigException(f"Invalid timebase {value!r}: expected [timescale, timebase] of positive integers")
    return timebase


def _parse_zones(value: Any) -> Tuple[EncoderZone, ...]:
    try:
        zones = [EncoderZone(int(start), int(end)) for start, end in (value or [])]
    except (TypeError, ValueError) as e:
        raise ConfigException(f"Invalid zones {value!r}: {e}") from e
    return tuple(validate_zones(zones))


def _parse_output(section: Any) -> OutputJob:
    try:
        return OutputJob(
            vindex=int(section.get("vindex", 0)),
            index=int(section.get("index", 0)),
            zones=_parse_zones(section.get("zones")),
            audio_count=int(section.get("audio_count", 1)),
            subtitle_langs=int(section.get("subtitle_langs", 0)),
            has_chapter=bool(section.get("chapter", False)),
        )
    except (TypeError, ValueError, AttributeError) as e:
        raise ConfigException(f"Invalid output entry {section!r}: {e}") from e


def load_job(path: Path) -> JobDescription:
    """
    Loads a job description: the source stream properties and the outputs to plan.

        source:
          format: h264
          bitrate: 15000
          video_format: {frame_rate: 30000/1001, fixed_frame_rate: true, progressive: false}
        outputs:
          - {vindex: 0, index: 0, zones: [[0, 1200]], audio_count: 1, subtitle_langs: 1, chapter: true}

    Args:
        path: The YAML job file.

    Returns:
        JobDescription: The parsed source properties and output jobs.

    Raises:
        ConfigException: If the file cannot be read or is malformed.
    """
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigException(f"Could not load job description '{path}': {e}") from e

    if not isinstance(data, Mapping):
        raise ConfigException(f"Job description '{path}' must be a mapping, got {type(data).__name__}")
    source = data.get("source") or {}
    if not isinstance(source, Mapping):
        raise ConfigException(f"'source' in '{path}' must be a mapping, got {source!r}")
    if "bitrate" not in source:
        raise ConfigException(f"Job description '{path}' has no source bitrate")
    try:
        source_bitrate = float(source["bitrate"])
    except (TypeError, ValueError) as e:
        raise ConfigException(f"Invalid source bitrate {source['bitrate']!r}: {e}") from e

    video_format = None
    if source.get("video_format"):
        video_format = _parse_video_format(source["video_format"])
    timebase = _parse_timebase(source["timebase"]) if source.get("timebase") else None

    outputs = data.get("outputs") or [{}]
    if not isinstance(outputs, list):
        raise ConfigException(f"'outputs' in '{path}' must be a list, got {outputs!r}")

    return JobDescription(
        source_format=parse_enum(VideoStreamFormat, source.get("format", "unknown"), "source format"),
        source_bitrate=source_bitrate,
        video_format=video_format,
        timebase=timebase,
        outputs=tuple(_parse_output(o) for o in outputs),
    )
