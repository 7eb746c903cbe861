"""
Read-only view over a `TranscodeConfig` for one run.

`ConfigWrapper` adds what a run derives from the static config: the list of CM
variants to emit, the output file names, and the temporary file registry. The
registry's directory is created when the wrapper is constructed and removed
when the wrapper is closed, so use it as a context manager:

    with ConfigWrapper(conf) as setting:
        plan = OutputPipeline(setting, source).build(jobs)
"""
from pathlib import Path
from typing import List, Optional, Sequence

from loguru import logger

from ..config.common import DRCS_IMAGE_EXTENSION, STREAM_INFO_SUFFIX, SUMMARY_SUFFIX
from ..config.settings import TranscodeConfig
from ..domain.media import CMType, ContainerFormat, DecoderType, EncoderFamily, EncoderZone, VideoStreamFormat
from ..domain.temp_models import TempFileRegistry
from .encoder_args import make_encoder_options

CM_OUT_MASK_DESCRIPTIONS = {
    1: "normal",
    2: "cut CM",
    3: "normal and CM cut",
    4: "CM only",
    5: "normal and CM",
    6: "main and CM separated",
    7: "normal, main and CM",
}


def encoder_to_string(encoder: EncoderFamily) -> str:
    return encoder.display_name


def format_to_string(fmt: ContainerFormat) -> str:
    return fmt.display_name


def decoder_to_string(decoder: DecoderType) -> str:
    return decoder.display_name


def cm_out_mask_to_string(mask: int) -> str:
    return CM_OUT_MASK_DESCRIPTIONS.get(mask, "unknown")


class ConfigWrapper:
    def __init__(self, conf: TranscodeConfig):
        self.conf = conf
        self.cmtypes: List[CMType] = [cm for cm in CMType if conf.cm_out_mask & cm.mask_bit]
        self.temp = TempFileRegistry(conf.work_dir)

    def __enter__(self) -> "ConfigWrapper":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def close(self):
        self.temp.close()

    @property
    def output_extension(self) -> str:
        return self.conf.format.extension

    def out_file_path(self, index: int, cmtype: CMType) -> str:
        path = self.conf.out_video_path
        if index != 0:
            path += f"-{index}"
        return f"{path}{cmtype.suffix}.{self.output_extension}"

    @property
    def out_summary_path(self) -> str:
        return f"{self.conf.out_video_path}{SUMMARY_SUFFIX}"

    @property
    def stream_info_path(self) -> str:
        return f"{self.conf.out_video_path}{STREAM_INFO_SUFFIX}"

    @property
    def out_info_json_path(self) -> Optional[str]:
        return self.conf.out_info_json_path or None

    def drcs_out_path(self, md5: str) -> Path:
        return Path(self.conf.drcs_out_path) / f"{md5}{DRCS_IMAGE_EXTENSION}"

    def make_options(
        self,
        src_format: VideoStreamFormat,
        src_bitrate: float,
        pass_index: Optional[int],
        zones: Sequence[EncoderZone],
        vindex: int,
        index: int,
        cmtype: CMType,
    ) -> str:
        return make_encoder_options(
            self.conf, self.temp, src_format, src_bitrate, pass_index, zones, vindex, index, cmtype
        )

    def dump(self):
        """Logs a summary of the settings for this run."""
        conf = self.conf
        logger.info("[Settings]")
        if conf.mode != "ts":
            logger.info(f"Mode: {conf.mode}")
        logger.info(f"Input: {conf.src_file_path}")
        logger.info(f"Output: {conf.out_video_path}")
        if self.temp.temp_dir.exists:
            logger.info(f"Temporary directory: {self.temp.path}")
        else:
            logger.info("Temporary directory: not configured")
        logger.info(f"Output format: {format_to_string(conf.format)}")
        logger.info(f"Encoder: {conf.encoder_path} ({encoder_to_string(conf.encoder)})")
        logger.info(f"Encoder options: {conf.encoder_options}")
        if conf.auto_bitrate:
            b = conf.bitrate
            logger.info(f"Auto bitrate: enabled ({b.a:g}:{b.b:g}:{b.h264:g}:{b.h265:g})")
        else:
            logger.info("Auto bitrate: disabled")
        logger.info(
            f"Encode/output: {'2 pass' if conf.two_pass else '1 pass'}/"
            f"{cm_out_mask_to_string(conf.cm_out_mask)}"
        )
        logger.info(
            f"Chapter analysis: {'enabled' if conf.chapter else 'disabled'}"
            f"{'' if (conf.chapter and conf.ignore_no_logo) else ' (logo required)'}"
        )
        if conf.chapter:
            for i, logo in enumerate(conf.logo_paths, 1):
                logger.info(f"logo{i}: {logo}")
            logger.info(f"Delogo: {'no' if conf.no_delogo else 'yes'}")
        logger.info(f"Subtitles: {'enabled' if conf.subtitles else 'disabled'}")
        if conf.subtitles:
            logger.info(f"DRCS mapping: {conf.drcs_map_path}")
        if conf.service_id > 0:
            logger.info(f"Service ID: {conf.service_id}")
        else:
            logger.info("Service ID: not specified")
        logger.info(
            f"Decoder: MPEG2:{decoder_to_string(conf.decoder_setting.mpeg2)} "
            f"H264:{decoder_to_string(conf.decoder_setting.h264)}"
        )
