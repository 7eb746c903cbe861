"""
Command-Line Interface (CLI) setup for the Transcode Planner.

This module uses Python's `argparse` to define and parse the command-line
arguments that control which config and job description are planned and what
happens with the resulting command list.
"""
import argparse
from pathlib import Path
from typing import List, Optional


def get_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parses command-line arguments for the Transcode Planner.

    Args:
        argv: Argument list to parse instead of `sys.argv[1:]`.

    Returns:
        argparse.Namespace: The parsed arguments. Paths are `pathlib.Path`.
    """
    parser = argparse.ArgumentParser(
        description="Plan encoder and muxer command lines for a TS transcode."
    )
    parser.add_argument("config", type=Path, help="Transcode config YAML file.")
    parser.add_argument(
        "--job", type=Path, required=True,
        help="Job description YAML file (source stream properties and outputs).",
    )
    parser.add_argument(
        "--zones", type=str, default=None,
        help="CM zones for the first output as 'start,end,b=scale/...'. Overrides the job file; the scale always comes from bitrate_cm.",
    )
    parser.add_argument(
        "--work-dir", type=str, default=None,
        help="Directory for temporary files. Overrides work_dir from the config.",
    )
    parser.add_argument(
        "--plan-log", type=Path, default=None,
        help="Append the planned commands to this YAML file.",
    )
    parser.add_argument(
        "--log-level", type=str, default="INFO", choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set the logging level.",
    )
    parser.add_argument(
        "--debug", dest="debug_mode", action="store_true",
        help="Shortcut for --log-level DEBUG.",
    )

    args = parser.parse_args(argv)

    if not args.config.is_file():
        parser.error(f"Config file '{args.config}' does not exist.")
    if not args.job.is_file():
        parser.error(f"Job file '{args.job}' does not exist.")
    if args.debug_mode:
        args.log_level = "DEBUG"

    return args
