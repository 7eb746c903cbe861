"""
Common configuration settings used throughout the application.

This module contains globally shared constants for the Transcode Planner:
logging format, temporary directory naming, default external tool names, and
the output path suffixes. It also loads the optional user configuration file
that points the planner at a directory holding the external tool binaries,
so tool locations do not have to be repeated in every transcode config.
"""
from pathlib import Path

import yaml
from loguru import logger

# --- User-Defined Path Configuration ---
# 'config.user.yaml' at the project root may contain:
#
#   paths:
#     tool_dir: C:/tools/amt
#
# When set, default tool binaries are resolved inside that directory.
# Otherwise the bare executable names are used and looked up on PATH.

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
USER_CONFIG_PATH = PROJECT_ROOT / "config.user.yaml"

TOOL_DIR: Path | None = None

if USER_CONFIG_PATH.is_file():
    try:
        with USER_CONFIG_PATH.open("r", encoding="utf-8") as f:
            user_config = yaml.safe_load(f)
        if user_config and "paths" in user_config:
            paths_config = user_config.get("paths") or {}
            tool_dir_str = paths_config.get("tool_dir")
            if tool_dir_str:
                TOOL_DIR = Path(tool_dir_str)
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Could not load or parse '{USER_CONFIG_PATH}': {e}")
else:
    logger.debug(f"User config '{USER_CONFIG_PATH}' not found. Relying on system PATH for tools.")


# --- Logging Configuration ---

LOGGER_FORMAT = (
    "<green>{time:MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "{process} - <level>{message}</level>"
)


# --- Temporary Directory ---

# Temporary directories are created as '<work_dir>/<prefix><code>'.
TEMP_DIR_PREFIX = "tp"

# The seed code for the directory suffix is the current time masked to 24 bits.
TEMP_DIR_CODE_MASK = 0xFFFFFF


# --- External Tool Defaults ---
# Executable names used when the transcode config leaves a tool path empty.

DEFAULT_ENCODER_NAMES = {
    "x264": "x264",
    "x265": "x265",
    "qsvenc": "QSVEncC",
    "nvenc": "NVEncC",
}
DEFAULT_MUXER_NAMES = {
    "mp4": "muxer",
    "mkv": "mkvmerge",
}
DEFAULT_TIMELINE_EDITOR_NAME = "timelineeditor"
DEFAULT_MP4BOX_NAME = "mp4box"


def default_tool_path(name: str) -> str:
    """Returns the default location of an external tool binary."""
    if TOOL_DIR:
        return str(TOOL_DIR / name)
    return name


# --- Output Naming ---

SUMMARY_SUFFIX = ".txt"
STREAM_INFO_SUFFIX = "-streaminfo.dat"
DRCS_IMAGE_EXTENSION = ".bmp"

# Subtitle track titles as attached by the muxers. MP4 only takes SRT tracks.
SUBTITLE_TITLE_ASS = "ASS"
SUBTITLE_TITLE_SRT = "SRT"
