"""
Builds the command line of one video encoder invocation.

The encoder always reads y4m from stdin; everything it needs to know about the
stream beyond the y4m header (color tags, field order) and about rate control
(bitrate, pass, zones) is spelled out here. The flag set and its order are the
same for every encoder family, only the spellings differ.
"""
import re
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from loguru import logger

from ..config.settings import TranscodeConfig
from ..domain.exceptions import ConfigException, FormatException
from ..domain.media import (
    AVCOL_PRI_BT709,
    AVCOL_PRI_BT2020,
    AVCOL_SPC_BT709,
    AVCOL_SPC_BT2020_NCL,
    AVCOL_TRC_ARIB_STD_B67,
    AVCOL_TRC_BT709,
    AVCOL_TRC_BT2020_10,
    AVCOL_TRC_IEC61966_2_4,
    AVCOL_TRC_SMPTEST2084,
    AVCOL_UNSPECIFIED,
    CMType,
    EncoderFamily,
    EncoderZone,
    VideoFormat,
    VideoStreamFormat,
)
from ..domain.temp_models import TempFileRegistry
from .bitrate import bitrate_options, compute_bitrate

# Only the tags ARIB STD-B32 allows for broadcast video.
COLOR_PRIMARIES = {
    AVCOL_PRI_BT709: "bt709",
    AVCOL_PRI_BT2020: "bt2020",
}
TRANSFER_CHARACTERISTICS = {
    AVCOL_TRC_BT709: "bt709",
    AVCOL_TRC_IEC61966_2_4: "iec61966-2-4",
    AVCOL_TRC_BT2020_10: "bt2020-10",
    AVCOL_TRC_SMPTEST2084: "smpte-st-2084",
    AVCOL_TRC_ARIB_STD_B67: "arib-std-b67",
}
COLOR_SPACES = {
    AVCOL_SPC_BT709: "bt709",
    AVCOL_SPC_BT2020_NCL: "bt2020nc",
}

INPUT_TAILS = {
    EncoderFamily.X264: "--stitchable --demuxer y4m -",
    EncoderFamily.X265: "--no-opt-qp-pps --no-opt-ref-list-length-pps --y4m --input -",
    EncoderFamily.QSVENC: "--format raw --y4m -i -",
    EncoderFamily.NVENC: "--format raw --y4m -i -",
}

_ZONE_PATTERN = re.compile(r"(\d+),(\d+),b=([0-9.eE+-]+)")


def color_primaries_str(value: int) -> str:
    """
    Returns the encoder spelling of an `AVCOL_PRI_*` code.

    Raises:
        FormatException: If the code has no entry in `COLOR_PRIMARIES`.
    """
    try:
        return COLOR_PRIMARIES[value]
    except KeyError:
        raise FormatException(f"Unsupported color primaries ({value})") from None


def transfer_characteristics_str(value: int) -> str:
    try:
        return TRANSFER_CHARACTERISTICS[value]
    except KeyError:
        raise FormatException(f"Unsupported color transfer characteristics ({value})") from None


def color_space_str(value: int) -> str:
    try:
        return COLOR_SPACES[value]
    except KeyError:
        raise FormatException(f"Unsupported color space ({value})") from None


def interlace_flag(encoder: EncoderFamily, progressive: bool) -> str:
    """x265 always states the field order; the others only flag interlaced input."""
    if encoder is EncoderFamily.X265:
        return "--no-interlace" if progressive else "--interlace tff"
    return "" if progressive else "--tff"


def format_zones(zones: Sequence[EncoderZone], scale: float) -> str:
    """Formats zones as `start,end,b=scale` joined by `/`."""
    return "/".join(f"{z.start_frame},{z.end_frame},b={scale:.3g}" for z in zones)


def parse_zones(text: str) -> List[Tuple[int, int, float]]:
    """
    Parses a zone string produced by `format_zones` back into triples.

    Raises:
        ConfigException: If any entry is not `start,end,b=scale`.
    """
    triples = []
    for entry in text.strip().split("/"):
        match = _ZONE_PATTERN.fullmatch(entry.strip())
        if not match:
            raise ConfigException(f"Invalid zone entry '{entry}' (expected start,end,b=scale)")
        start, end, scale = match.groups()
        triples.append((int(start), int(end), float(scale)))
    return triples


def make_encoder_options(
    conf: TranscodeConfig,
    registry: TempFileRegistry,
    src_format: VideoStreamFormat,
    src_bitrate: float,
    pass_index: Optional[int],
    zones: Sequence[EncoderZone],
    vindex: int,
    index: int,
    cmtype: CMType,
) -> str:
    """
    Builds the rate-control part of the encoder arguments.

    The user options come first, verbatim. `pass_index` of None means a single
    pass encode without a stats file.

    Args:
        conf: The transcode config (encoder family, user options, bitrate model).
        registry: Names and registers the multi-pass stats file.
        src_format: The source video stream format.
        src_bitrate: The source bitrate in kbps.
        pass_index: 1 or 2 for a two-pass encode, None for a single pass.
        zones: CM zones to encode at `conf.bitrate_cm`.
        vindex: Video index of the output.
        index: Output index.
        cmtype: The output variant.

    Returns:
        str: The options joined by single spaces; empty when nothing applies.

    Raises:
        NoTempDirectoryException: If a stats file is needed without a work directory.
    """
    parts = [conf.encoder_options] if conf.encoder_options else []

    if conf.auto_bitrate:
        bitrate = compute_bitrate(conf.bitrate, src_format, src_bitrate, cmtype, conf.bitrate_cm)
        parts.append(bitrate_options(conf.encoder, bitrate))

    if pass_index is not None:
        stats_path = registry.enc_stats_file_path(vindex, index, cmtype)
        parts.append(f'--pass {pass_index} --stats "{stats_path}"')

    if zones and conf.bitrate_cm != 1.0 and conf.encoder.supports_zones:
        parts.append(f"--zones {format_zones(zones, conf.bitrate_cm)}")

    return " ".join(parts)


def make_encoder_args(
    encoder: EncoderFamily,
    bin_path: Union[str, Path],
    options: str,
    fmt: VideoFormat,
    out_path: Union[str, Path],
) -> str:
    """
    Builds the full encoder command line.

    Raises:
        FormatException: If a color tag has no encoder spelling.
    """
    parts = [f'"{bin_path}"']

    if fmt.color_primaries != AVCOL_UNSPECIFIED:
        parts.append(f"--colorprim {color_primaries_str(fmt.color_primaries)}")
    if fmt.transfer_characteristics != AVCOL_UNSPECIFIED:
        parts.append(f"--transfer {transfer_characteristics_str(fmt.transfer_characteristics)}")
    if fmt.color_space != AVCOL_UNSPECIFIED:
        parts.append(f"--colormatrix {color_space_str(fmt.color_space)}")

    interlace = interlace_flag(encoder, fmt.progressive)
    if interlace:
        parts.append(interlace)

    if options:
        parts.append(options)
    parts.append(f'-o "{out_path}"')
    parts.append(INPUT_TAILS[encoder])

    args = " ".join(parts)
    logger.debug(f"Encoder args: {args}")
    return args
