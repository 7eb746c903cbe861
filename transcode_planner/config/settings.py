"""
The transcode configuration: an immutable snapshot of everything a run needs.

A `TranscodeConfig` is normally loaded from a YAML file with `load_config`:

    work_dir: D:/tmp
    src_file_path: D:/rec/show.ts
    out_video_path: D:/out/show
    encoder: x264
    encoder_options: --preset slow --crf 23
    format: mp4
    two_pass: false
    auto_bitrate: true
    bitrate: {a: 0.5, b: 2000, h264: 0.6, h265: 0.5}
    bitrate_cm: 0.5
    cm_out_mask: 1

Tool paths that are left out default to the executables named in
`config.common`, resolved in the user's tool directory when one is set.
"""
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, Tuple

import yaml
from loguru import logger

from ..domain.exceptions import ConfigException
from ..domain.media import ContainerFormat, DecoderType, EncoderFamily, parse_enum
from .common import (
    DEFAULT_ENCODER_NAMES,
    DEFAULT_MP4BOX_NAME,
    DEFAULT_MUXER_NAMES,
    DEFAULT_TIMELINE_EDITOR_NAME,
    default_tool_path,
)


@dataclass(frozen=True)
class BitrateSetting:
    """Linear model `a * src + b`, scaled by a per-codec multiplier."""

    a: float = 0.5
    b: float = 2000.0
    h264: float = 0.6
    h265: float = 0.5


@dataclass(frozen=True)
class DecoderSetting:
    mpeg2: DecoderType = DecoderType.DEFAULT
    h264: DecoderType = DecoderType.DEFAULT


@dataclass(frozen=True)
class TranscodeConfig:
    # Temporary files
    work_dir: str = ""
    mode: str = "ts"
    mode_args: str = ""
    # Input file path (with extension)
    src_file_path: str = ""
    # Output file path (without extension)
    out_video_path: str = ""
    out_info_json_path: str = ""
    drcs_map_path: str = ""
    drcs_out_path: str = ""
    filter_script_path: str = ""
    post_filter_script_path: str = ""
    # Encoder / muxer
    encoder: EncoderFamily = EncoderFamily.X264
    encoder_path: str = ""
    encoder_options: str = ""
    muxer_path: str = ""
    timeline_editor_path: str = ""
    mp4box_path: str = ""
    format: ContainerFormat = ContainerFormat.MP4
    split_sub: bool = False
    two_pass: bool = False
    auto_bitrate: bool = False
    chapter: bool = False
    subtitles: bool = False
    bitrate: BitrateSetting = field(default_factory=BitrateSetting)
    bitrate_cm: float = 1.0
    service_id: int = -1
    decoder_setting: DecoderSetting = field(default_factory=DecoderSetting)
    # CM analysis
    logo_paths: Tuple[str, ...] = ()
    ignore_no_logo: bool = False
    ignore_no_drcs_map: bool = False
    no_delogo: bool = False
    chapter_exe_path: str = ""
    join_logo_scp_path: str = ""
    join_logo_scp_cmd_path: str = ""
    join_logo_scp_options: str = ""
    cm_out_mask: int = 1
    # Debugging
    dump_stream_info: bool = False
    system_avs_plugin: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TranscodeConfig":
        """
        Builds a config from a plain mapping such as a parsed YAML document.

        Enum fields accept their value or member name. `bitrate` and `decoder`
        are nested mappings. Flags must be real booleans, so a quoted "false" is
        rejected. Unknown keys are ignored with a warning.

        Raises:
            ConfigException: For unknown enum values, non-boolean flags or
                malformed sections.
        """
        if not isinstance(data, Mapping):
            raise ConfigException(f"Transcode config must be a mapping, got {type(data).__name__}")

        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            if key == "decoder":
                key = "decoder_setting"
            if key not in known:
                logger.warning(f"Ignoring unknown config key '{key}'")
                continue
            values[key] = value

        values["encoder"] = parse_enum(EncoderFamily, values.get("encoder", EncoderFamily.X264), "encoder")
        values["format"] = parse_enum(ContainerFormat, values.get("format", ContainerFormat.MP4), "format")
        values["bitrate"] = _parse_bitrate(values.get("bitrate"))
        values["decoder_setting"] = _parse_decoder(values.get("decoder_setting"))
        values["logo_paths"] = tuple(str(p) for p in values.get("logo_paths") or ())

        try:
            values["bitrate_cm"] = float(values.get("bitrate_cm", 1.0))
            values["cm_out_mask"] = int(values.get("cm_out_mask", 1))
            values["service_id"] = int(values.get("service_id", -1))
        except (TypeError, ValueError) as e:
            raise ConfigException(f"Invalid numeric config value: {e}") from e
        if values["cm_out_mask"] <= 0:
            raise ConfigException(f"cm_out_mask must select at least one output, got {values['cm_out_mask']}")

        for f in fields(cls):
            if f.type is bool and f.name in values and not isinstance(values[f.name], bool):
                raise ConfigException(f"'{f.name}' must be true or false, got {values[f.name]!r}")

        for key in known:
            if key.endswith("_path") and values.get(key) is not None and not isinstance(values[key], str):
                values[key] = str(values[key])

        fmt = values["format"]
        encoder = values["encoder"]
        if not values.get("encoder_path"):
            values["encoder_path"] = default_tool_path(DEFAULT_ENCODER_NAMES[encoder.value])
        if not values.get("muxer_path"):
            values["muxer_path"] = default_tool_path(DEFAULT_MUXER_NAMES[fmt.value])
        if not values.get("timeline_editor_path"):
            values["timeline_editor_path"] = default_tool_path(DEFAULT_TIMELINE_EDITOR_NAME)
        if not values.get("mp4box_path"):
            values["mp4box_path"] = default_tool_path(DEFAULT_MP4BOX_NAME)

        return cls(**values)


def _parse_bitrate(section: Any) -> BitrateSetting:
    if section is None:
        return BitrateSetting()
    if isinstance(section, BitrateSetting):
        return section
    if not isinstance(section, Mapping):
        raise ConfigException(f"'bitrate' must be a mapping, got {section!r}")
    try:
        return BitrateSetting(**{k: float(v) for k, v in section.items()})
    except (TypeError, ValueError) as e:
        raise ConfigException(f"Invalid bitrate setting {dict(section)}: {e}") from e


def _parse_decoder(section: Any) -> DecoderSetting:
    if section is None:
        return DecoderSetting()
    if isinstance(section, DecoderSetting):
        return section
    if not isinstance(section, Mapping):
        raise ConfigException(f"'decoder' must be a mapping, got {section!r}")
    return DecoderSetting(
        mpeg2=parse_enum(DecoderType, section.get("mpeg2", DecoderType.DEFAULT), "mpeg2 decoder"),
        h264=parse_enum(DecoderType, section.get("h264", DecoderType.DEFAULT), "h264 decoder"),
    )


def load_config(path: Path) -> TranscodeConfig:
    """
    Loads a transcode config from a YAML file.

    Raises:
        ConfigException: If the file cannot be read or parsed, or is invalid.
    """
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigException(f"Could not load transcode config '{path}': {e}") from e

    config = TranscodeConfig.from_dict(data or {})
    logger.debug(f"Loaded transcode config from {path}")
    return config
