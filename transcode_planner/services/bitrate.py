"""
Automatic bitrate selection.

The target bitrate is a linear function of the source bitrate, scaled per
source codec, since an H.264/H.265 broadcast needs less bitrate than MPEG-2 for
the same quality. Bitrates are in kbps, like the encoders' own flags.
"""
from typing import NamedTuple

from ..config.settings import BitrateSetting
from ..domain.media import CMType, EncoderFamily, VideoStreamFormat


class Bitrate(NamedTuple):
    target: float
    max: float


def codec_multiplier(setting: BitrateSetting, fmt: VideoStreamFormat) -> float:
    """
    Returns the per-codec scale applied to the linear bitrate model.

    Args:
        setting: The configured bitrate model.
        fmt: The source video stream format, as a member or its value.

    Returns:
        float: `setting.h264` or `setting.h265` for those codecs, 1.0 otherwise.

    Raises:
        ValueError: If `fmt` is not a known stream format.
    """
    fmt = VideoStreamFormat(fmt)
    if fmt is VideoStreamFormat.H264:
        return setting.h264
    if fmt is VideoStreamFormat.H265:
        return setting.h265
    return 1.0


def target_bitrate(setting: BitrateSetting, fmt: VideoStreamFormat, src_bitrate: float) -> float:
    """Computes `(a * src_bitrate + b) * codec multiplier` in kbps."""
    return (setting.a * src_bitrate + setting.b) * codec_multiplier(setting, fmt)


def compute_bitrate(
    setting: BitrateSetting,
    fmt: VideoStreamFormat,
    src_bitrate: float,
    cmtype: CMType = CMType.BOTH,
    bitrate_cm: float = 1.0,
) -> Bitrate:
    """
    Returns the target and maximum bitrate for one output variant.

    The maximum is taken from the full target before the CM scale is applied,
    so CM segments get a lower average but the same peak allowance.

    Args:
        setting: The configured bitrate model.
        fmt: The source video stream format.
        src_bitrate: The source bitrate in kbps.
        cmtype: The output variant. Only `CMType.CM` is scaled.
        bitrate_cm: The scale for the CM variant.

    Returns:
        Bitrate: The (target, max) pair in kbps.
    """
    target = target_bitrate(setting, fmt, src_bitrate)
    max_bitrate = max(target * 2, src_bitrate)
    if cmtype is CMType.CM:
        target *= bitrate_cm
    return Bitrate(target, max_bitrate)


def bitrate_options(encoder: EncoderFamily, bitrate: Bitrate) -> str:
    """Encoder flags for the bitrate pair, truncated to whole kbps."""
    target = int(bitrate.target)
    max_bitrate = int(bitrate.max)
    if encoder is EncoderFamily.QSVENC:
        return f"--la {target} --maxbitrate {max_bitrate}"
    if encoder is EncoderFamily.NVENC:
        return f"--vbrhq {target} --maxbitrate {max_bitrate}"
    return f"--bitrate {target} --vbv-maxrate {max_bitrate} --vbv-bufsize {max_bitrate}"
