"""
Main entry point for the Transcode Planner.

This script parses command-line arguments, loads the transcode config and the
job description, and prints the ordered encoder and muxer command lines for
every output. The temporary directory of the run is released on every exit
path, including planning errors.
"""

import sys
from dataclasses import replace
from pathlib import Path

from loguru import logger

from transcode_planner.cli import get_args
from transcode_planner.config.common import LOGGER_FORMAT
from transcode_planner.config.settings import load_config
from transcode_planner.domain.exceptions import TranscodePlannerException
from transcode_planner.domain.media import EncoderZone, probe_video_format
from transcode_planner.pipeline.output_pipeline import OutputPipeline, load_job
from transcode_planner.services.encoder_args import parse_zones
from transcode_planner.services.logging_service import PlanLog
from transcode_planner.services.transcode_setting import ConfigWrapper

# Initial logger setup; the level is replaced once arguments are parsed.
logger.remove()
logger.add(sys.stderr, level="INFO", format=LOGGER_FORMAT)


def main():
    args = get_args()

    logger.remove()
    logger.add(sys.stderr, level=args.log_level, format=LOGGER_FORMAT)
    logger.debug(f"Parsed arguments: {args}")

    try:
        conf = load_config(args.config)
        if args.work_dir is not None:
            conf = replace(conf, work_dir=args.work_dir)

        job = load_job(args.job)
        outputs = job.outputs
        if args.zones:
            zones = tuple(EncoderZone(start, end) for start, end, _ in parse_zones(args.zones))
            outputs = (replace(outputs[0], zones=zones),) + outputs[1:]

        video_format = job.video_format
        if video_format is None:
            logger.info(f"No video_format in job description; probing {conf.src_file_path}")
            video_format = probe_video_format(Path(conf.src_file_path))

        with ConfigWrapper(conf) as setting:
            setting.dump()
            plan = OutputPipeline(setting, job.source_info(video_format)).build(outputs)
            for cmd in plan.commands:
                print(cmd)
            if args.plan_log:
                PlanLog(args.plan_log).write(
                    {"config": str(args.config), "job": str(args.job), **plan.to_dict()}
                )
    except TranscodePlannerException as e:
        logger.error(f"{type(e).__name__}: {e}")
        sys.exit(1)

    logger.info("Planning finished.")


if __name__ == "__main__":
    main()
