"""Unit tests for the shared media types and the ffprobe helper."""

from pathlib import Path
from unittest.mock import patch

import ffmpeg
import pytest

from transcode_planner.domain.exceptions import ConfigException, MediaFileException
from transcode_planner.domain.media import (
    AVCOL_RESERVED,
    AVCOL_UNSPECIFIED,
    CMType,
    ContainerFormat,
    EncoderFamily,
    EncoderZone,
    VideoFormat,
    parse_enum,
    probe_video_format,
    validate_zones,
    video_format_from_stream,
)


class TestCMType:
    @pytest.mark.parametrize(
        ("cmtype", "suffix", "bit"),
        [(CMType.BOTH, "", 1), (CMType.NONCM, "-main", 2), (CMType.CM, "-cm", 4)],
    )
    def test_suffix_and_mask_bit(self, cmtype: CMType, suffix: str, bit: int) -> None:
        assert cmtype.suffix == suffix
        assert cmtype.mask_bit == bit


class TestParseEnum:
    def test_by_value_case_insensitive(self) -> None:
        assert parse_enum(EncoderFamily, "QSVEnc", "encoder") is EncoderFamily.QSVENC

    def test_by_member_name(self) -> None:
        assert parse_enum(ContainerFormat, "MKV", "format") is ContainerFormat.MKV

    def test_member_passes_through(self) -> None:
        assert parse_enum(CMType, CMType.CM, "cmtype") is CMType.CM

    def test_int_value(self) -> None:
        assert parse_enum(CMType, 1, "cmtype") is CMType.NONCM

    def test_unknown_lists_choices(self) -> None:
        with pytest.raises(ConfigException, match="x264, x265, qsvenc, nvenc"):
            parse_enum(EncoderFamily, "vce", "encoder")


class TestValidateZones:
    def test_ordered_zones_pass(self) -> None:
        zones = [EncoderZone(0, 100), EncoderZone(100, 200), EncoderZone(500, 600)]
        assert validate_zones(zones) == zones

    def test_empty_is_fine(self) -> None:
        assert validate_zones([]) == []

    @pytest.mark.parametrize(
        "zones",
        [
            [EncoderZone(10, 10)],
            [EncoderZone(20, 10)],
            [EncoderZone(-1, 10)],
            [EncoderZone(0, 100), EncoderZone(50, 150)],
            [EncoderZone(200, 300), EncoderZone(0, 100)],
        ],
    )
    def test_invalid_zones(self, zones) -> None:
        with pytest.raises(ConfigException):
            validate_zones(zones)


class TestVideoFormatFromStream:
    def test_interlaced_broadcast_stream(self) -> None:
        stream = {
            "codec_type": "video",
            "r_frame_rate": "30000/1001",
            "avg_frame_rate": "30000/1001",
            "field_order": "tt",
            "color_primaries": "bt709",
            "color_transfer": "bt709",
            "color_space": "bt709",
            "width": 1440,
            "height": 1080,
        }
        fmt = video_format_from_stream(stream)
        assert fmt == VideoFormat(
            frame_rate_num=30000,
            frame_rate_den=1001,
            fixed_frame_rate=True,
            progressive=False,
            color_primaries=1,
            transfer_characteristics=1,
            color_space=1,
            width=1440,
            height=1080,
        )

    def test_average_rate_mismatch_means_variable_rate(self) -> None:
        fmt = video_format_from_stream(
            {"r_frame_rate": "60000/1001", "avg_frame_rate": "44000/1001", "field_order": "progressive"}
        )
        assert not fmt.fixed_frame_rate
        assert fmt.progressive

    def test_missing_tags_are_unspecified(self) -> None:
        fmt = video_format_from_stream({"r_frame_rate": "24/1"})
        assert fmt.fixed_frame_rate
        assert fmt.progressive
        assert fmt.color_primaries == AVCOL_UNSPECIFIED
        assert fmt.transfer_characteristics == AVCOL_UNSPECIFIED
        assert fmt.color_space == AVCOL_UNSPECIFIED

    def test_hdr_tags(self) -> None:
        fmt = video_format_from_stream(
            {
                "r_frame_rate": "60/1",
                "color_primaries": "bt2020",
                "color_transfer": "smpte2084",
                "color_space": "bt2020nc",
            }
        )
        assert (fmt.color_primaries, fmt.transfer_characteristics, fmt.color_space) == (9, 16, 9)

    def test_unknown_tag_name_is_reserved(self) -> None:
        fmt = video_format_from_stream({"r_frame_rate": "24/1", "color_primaries": "made-up"})
        assert fmt.color_primaries == AVCOL_RESERVED

    @pytest.mark.parametrize("rate", [None, "0/0", "garbage", "30000/0"])
    def test_unusable_frame_rate(self, rate) -> None:
        with pytest.raises(MediaFileException):
            video_format_from_stream({"r_frame_rate": rate})


class TestProbeVideoFormat:
    @patch("transcode_planner.domain.media.ffmpeg.probe")
    def test_uses_first_video_stream(self, mock_probe) -> None:
        mock_probe.return_value = {
            "streams": [
                {"codec_type": "audio"},
                {"codec_type": "video", "r_frame_rate": "30000/1001", "field_order": "tt"},
                {"codec_type": "video", "r_frame_rate": "24/1"},
            ]
        }
        fmt = probe_video_format(Path("rec/show.ts"))
        mock_probe.assert_called_once_with(str(Path("rec/show.ts")))
        assert fmt.frame_rate_num == 30000
        assert not fmt.progressive

    @patch("transcode_planner.domain.media.ffmpeg.probe")
    def test_no_video_stream(self, mock_probe) -> None:
        mock_probe.return_value = {"streams": [{"codec_type": "audio"}]}
        with pytest.raises(MediaFileException, match="No video stream"):
            probe_video_format(Path("a.ts"))

    @patch("transcode_planner.domain.media.ffmpeg.probe")
    def test_ffprobe_error(self, mock_probe) -> None:
        mock_probe.side_effect = ffmpeg.Error("ffprobe", b"", b"Invalid data found")
        with pytest.raises(MediaFileException, match="Invalid data found"):
            probe_video_format(Path("broken.ts"))
