"""Unit tests for the per-run config wrapper."""

from pathlib import Path

import pytest

from transcode_planner.domain.exceptions import NoTempDirectoryException
from transcode_planner.domain.media import CMType, DecoderType, EncoderFamily, VideoStreamFormat
from transcode_planner.services.transcode_setting import (
    ConfigWrapper,
    cm_out_mask_to_string,
    decoder_to_string,
    encoder_to_string,
)


class TestCmTypes:
    @pytest.mark.parametrize(
        ("mask", "expected"),
        [
            (1, [CMType.BOTH]),
            (2, [CMType.NONCM]),
            (4, [CMType.CM]),
            (6, [CMType.NONCM, CMType.CM]),
            (7, [CMType.BOTH, CMType.NONCM, CMType.CM]),
        ],
    )
    def test_mask_selects_variants_in_order(self, make_config, mask: int, expected) -> None:
        with ConfigWrapper(make_config(cm_out_mask=mask)) as setting:
            assert setting.cmtypes == expected


class TestOutputNames:
    def test_first_output_has_no_index(self, make_config) -> None:
        with ConfigWrapper(make_config()) as setting:
            assert setting.out_file_path(0, CMType.BOTH) == "out/show.mp4"

    def test_index_and_suffix(self, make_config) -> None:
        with ConfigWrapper(make_config(format="mkv")) as setting:
            assert setting.out_file_path(2, CMType.CM) == "out/show-2-cm.mkv"
            assert setting.out_file_path(0, CMType.NONCM) == "out/show-main.mkv"

    def test_side_files(self, make_config) -> None:
        conf = make_config(drcs_out_path="drcs", out_info_json_path="info.json")
        with ConfigWrapper(conf) as setting:
            assert setting.out_summary_path == "out/show.txt"
            assert setting.stream_info_path == "out/show-streaminfo.dat"
            assert setting.out_info_json_path == "info.json"
            assert setting.drcs_out_path("0123abcd") == Path("drcs") / "0123abcd.bmp"

    def test_no_info_json(self, make_config) -> None:
        with ConfigWrapper(make_config()) as setting:
            assert setting.out_info_json_path is None


class TestLifecycle:
    def test_temp_directory_lives_as_long_as_the_wrapper(self, make_config) -> None:
        with ConfigWrapper(make_config()) as setting:
            temp_dir = setting.temp.path
            assert temp_dir.is_dir()
            setting.temp.enc_video_file_path(0, 0, CMType.BOTH).write_bytes(b"x")
        assert not temp_dir.exists()

    def test_without_work_dir(self, make_config) -> None:
        with ConfigWrapper(make_config(work_dir="")) as setting:
            with pytest.raises(NoTempDirectoryException):
                setting.make_options(VideoStreamFormat.MPEG2, 8000, 1, [], 0, 0, CMType.BOTH)


class TestDump:
    def test_logs_settings(self, make_config, log_records) -> None:
        conf = make_config(auto_bitrate=True, cm_out_mask=6, two_pass=True, decoder={"h264": "qsv"})
        with ConfigWrapper(conf) as setting:
            setting.dump()
        messages = [msg for _, msg in log_records]
        assert "Encoder: x264 (x264)" in messages
        assert "Auto bitrate: enabled (0.5:2000:0.6:0.5)" in messages
        assert "Encode/output: 2 pass/main and CM separated" in messages
        assert "Decoder: MPEG2:default H264:QSV" in messages


class TestDisplayNames:
    def test_helpers(self) -> None:
        assert encoder_to_string(EncoderFamily.NVENC) == "NVEnc"
        assert decoder_to_string(DecoderType.CUVID) == "CUVID"
        assert cm_out_mask_to_string(5) == "normal and CM"
        assert cm_out_mask_to_string(9) == "unknown"
