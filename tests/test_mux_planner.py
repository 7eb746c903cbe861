"""Unit tests for mux command planning."""

import pytest

from transcode_planner.domain.exceptions import ConfigException
from transcode_planner.domain.media import ContainerFormat, VideoFormat
from transcode_planner.services.mux_planner import MuxRequest, make_muxer_args, make_timeline_editor_args


def mp4_request(video_format: VideoFormat, **overrides) -> MuxRequest:
    values = dict(
        format=ContainerFormat.MP4,
        muxer_path="muxer",
        timeline_editor_path="timelineeditor",
        mp4box_path="mp4box",
        in_video="v.raw",
        video_format=video_format,
        in_audios=["a0.aac"],
        out_path="out.mp4",
        tmp_out_path="tmp.mp4",
        timebase=(120000, 1001),
    )
    values.update(overrides)
    return MuxRequest(**values)


def mkv_request(video_format: VideoFormat, **overrides) -> MuxRequest:
    values = dict(
        format=ContainerFormat.MKV,
        muxer_path="mkvmerge",
        timeline_editor_path="timelineeditor",
        mp4box_path="mp4box",
        in_video="v.raw",
        video_format=video_format,
        in_audios=["a0.aac"],
        out_path="out.mkv",
    )
    values.update(overrides)
    return MuxRequest(**values)


class TestMp4Planning:
    def test_plain_mux_is_single_command(self, cfr_format: VideoFormat) -> None:
        commands = make_muxer_args(mp4_request(cfr_format))
        assert commands == ['"muxer" -i "v.raw?fps=30000/1001" -i "a0.aac" --optimize-pd -o "out.mp4"']

    def test_chapter_only_attaches_in_base_mux(self, cfr_format: VideoFormat) -> None:
        commands = make_muxer_args(mp4_request(cfr_format, chapter_path="chap.txt"))
        assert commands == [
            '"muxer" -i "v.raw?fps=30000/1001" -i "a0.aac" --chapter "chap.txt" --optimize-pd -o "out.mp4"'
        ]

    def test_multiple_audio_tracks_in_order(self, cfr_format: VideoFormat) -> None:
        commands = make_muxer_args(mp4_request(cfr_format, in_audios=["a0.aac", "a1.aac"]))
        assert '-i "a0.aac" -i "a1.aac" --optimize-pd' in commands[0]

    def test_variable_frame_rate_has_no_fps_override(self, vfr_format: VideoFormat) -> None:
        commands = make_muxer_args(mp4_request(vfr_format))
        assert commands[0].startswith('"muxer" -i "v.raw" -i')
        assert "?fps=" not in commands[0]

    def test_timecode_only(self, vfr_format: VideoFormat) -> None:
        commands = make_muxer_args(mp4_request(vfr_format, timecode_path="tc.txt"))
        assert commands == [
            '"muxer" -i "v.raw" -i "a0.aac" --optimize-pd -o "tmp.mp4"',
            '"timelineeditor" --track 1 --timecode "tc.txt" --media-timescale 120000'
            ' --media-timebase 1001 "tmp.mp4" "out.mp4"',
        ]

    def test_chapter_and_timecode_defers_chapter_to_mp4box(self, vfr_format: VideoFormat) -> None:
        commands = make_muxer_args(mp4_request(vfr_format, chapter_path="chap.txt", timecode_path="tc.txt"))
        assert len(commands) == 3
        assert "--chapter" not in commands[0]
        assert commands[0].endswith('-o "tmp.mp4"')
        assert commands[1].startswith('"timelineeditor"')
        assert "chap" not in commands[1]
        assert commands[2] == '"mp4box" -chap "chap.txt" "out.mp4"'

    def test_subtitles_only_adds_srt_tracks(self, cfr_format: VideoFormat) -> None:
        request = mp4_request(
            cfr_format,
            in_subs=["c0.ass", "c0.srt", "c1.ass", "c1.srt"],
            subs_titles=["ASS", "SRT", "ASS", "SRT"],
        )
        commands = make_muxer_args(request)
        assert len(commands) == 2
        assert commands[0].endswith('-o "out.mp4"')
        assert commands[1] == '"mp4box" -add "c0.srt#:name=SRT" -add "c1.srt#:name=SRT" "out.mp4"'

    def test_subtitles_with_chapter_keep_chapter_in_base_mux(self, cfr_format: VideoFormat) -> None:
        request = mp4_request(cfr_format, chapter_path="chap.txt", in_subs=["c0.srt"], subs_titles=["SRT"])
        commands = make_muxer_args(request)
        assert len(commands) == 2
        assert '--chapter "chap.txt"' in commands[0]
        assert commands[1] == '"mp4box" -add "c0.srt#:name=SRT" "out.mp4"'

    def test_all_features_is_three_commands(self, vfr_format: VideoFormat) -> None:
        request = mp4_request(
            vfr_format,
            chapter_path="chap.txt",
            timecode_path="tc.txt",
            in_subs=["c0.ass", "c0.srt"],
            subs_titles=["ASS", "SRT"],
        )
        commands = make_muxer_args(request)
        assert len(commands) == 3
        assert commands[2] == '"mp4box" -add "c0.srt#:name=SRT" -chap "chap.txt" "out.mp4"'

    def test_only_non_srt_subtitles_still_runs_embed_step(self, cfr_format: VideoFormat) -> None:
        request = mp4_request(cfr_format, in_subs=["c0.ass"], subs_titles=["ASS"])
        commands = make_muxer_args(request)
        assert commands[1] == '"mp4box" "out.mp4"'

    def test_timecode_without_intermediate_path_is_an_error(self, vfr_format: VideoFormat) -> None:
        with pytest.raises(ConfigException):
            make_muxer_args(mp4_request(vfr_format, timecode_path="tc.txt", tmp_out_path=None))


class TestMkvPlanning:
    def test_plain(self, cfr_format: VideoFormat) -> None:
        assert make_muxer_args(mkv_request(cfr_format)) == ['"mkvmerge" -o "out.mkv" "v.raw" "a0.aac"']

    def test_all_features_in_one_command(self, vfr_format: VideoFormat) -> None:
        request = mkv_request(
            vfr_format,
            in_audios=["a0.aac", "a1.aac"],
            chapter_path="chap.txt",
            timecode_path="tc.txt",
            in_subs=["c0.ass", "c0.srt"],
            subs_titles=["ASS", "SRT"],
        )
        assert make_muxer_args(request) == [
            '"mkvmerge" --chapters "chap.txt" -o "out.mkv" --timestamps "0:tc.txt"'
            ' "v.raw" "a0.aac" "a1.aac"'
            ' --track-name "0:ASS" "c0.ass" --track-name "0:SRT" "c0.srt"'
        ]


class TestValidation:
    def test_subtitle_titles_must_pair_with_inputs(self, cfr_format: VideoFormat) -> None:
        with pytest.raises(ConfigException):
            make_muxer_args(mkv_request(cfr_format, in_subs=["c0.ass"], subs_titles=[]))


class TestTimelineEditorArgs:
    def test_standalone_command(self) -> None:
        assert make_timeline_editor_args("te", "in.mp4", "out.mp4", "tc.txt") == (
            '"te" --track 1 --timecode "tc.txt" "in.mp4" "out.mp4"'
        )
