"""Shared test fixtures for the Transcode Planner."""

from pathlib import Path

import pytest
from loguru import logger

from transcode_planner.config.settings import TranscodeConfig
from transcode_planner.domain.media import VideoFormat

BASE_CONFIG = {
    "out_video_path": "out/show",
    "src_file_path": "rec/show.ts",
    "encoder": "x264",
    "encoder_path": "x264",
    "muxer_path": "muxer",
    "timeline_editor_path": "timelineeditor",
    "mp4box_path": "mp4box",
    "format": "mp4",
}


@pytest.fixture
def make_config(tmp_path: Path):
    """Return a factory for configs that use `tmp_path` as the work directory."""

    def _make(**overrides) -> TranscodeConfig:
        data = {"work_dir": str(tmp_path), **BASE_CONFIG, **overrides}
        return TranscodeConfig.from_dict(data)

    return _make


@pytest.fixture
def log_records():
    """Collect loguru records as (level name, message) tuples."""
    records = []
    handler_id = logger.add(
        lambda message: records.append((message.record["level"].name, message.record["message"])),
        level="DEBUG",
    )
    yield records
    logger.remove(handler_id)


@pytest.fixture
def cfr_format() -> VideoFormat:
    """Interlaced 29.97 fps BT.709 broadcast video."""
    return VideoFormat(
        frame_rate_num=30000,
        frame_rate_den=1001,
        fixed_frame_rate=True,
        progressive=False,
        color_primaries=1,
        transfer_characteristics=1,
        color_space=1,
    )


@pytest.fixture
def vfr_format() -> VideoFormat:
    """Progressive variable frame rate video with unspecified color tags."""
    return VideoFormat(frame_rate_num=60000, frame_rate_den=1001, fixed_frame_rate=False, progressive=True)
